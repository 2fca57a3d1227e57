"""
Agora

Value-bearing state machines for on-ledger markets and ballots:
- Open English auctions with refund-on-outbid and one-time settlement
- Credential-gated elections with a fixed voting window
- A native value ledger and an injectable clock
- Deployment helpers and a CLI for driving both end to end
"""
