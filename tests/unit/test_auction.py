"""
Tests for the Auction state machine.

Tests cover:
1. State derivation from the clock
2. Bid acceptance and rejection
3. Refund on outbid (push, with pull fallback)
4. Seller withdrawal and settlement
5. Funds conservation
"""

import pytest

from agora.core import (
    AuctionRegistry,
    AuctionState,
    AuctionEnded,
    Ledger,
    ManualClock,
    NewBid,
    Refund,
)
from agora.core.errors import (
    AlreadySettled,
    AuctionClosed,
    AuctionNotEnded,
    BidTooLow,
    InsufficientFunds,
    NotSeller,
    TransferFailed,
)
from agora.crypto import generate_keypair
from agora.utils.units import parse_value


START = 1_700_000_000
DURATION = 3600


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock():
    return ManualClock(start=START)


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def seller():
    return generate_keypair().address


@pytest.fixture
def bidders(ledger):
    """Two funded bidders."""
    a = generate_keypair().address
    b = generate_keypair().address
    ledger.mint(a, parse_value("10"))
    ledger.mint(b, parse_value("10"))
    return a, b


@pytest.fixture
def auction(ledger, clock, seller):
    registry = AuctionRegistry(ledger, clock)
    return registry.create_auction(
        "Rare Coin", parse_value("1"), START + DURATION, caller=seller
    )


def assert_funds_conserved(auction):
    locked = 0 if auction.settled else auction.highest_bid
    assert auction.funds_held() == locked + sum(auction.refundable.values())


# =============================================================================
# State Tests
# =============================================================================


class TestAuctionState:
    """Tests for state derived from time and settlement."""

    def test_starts_open(self, auction):
        assert auction.state == AuctionState.OPEN
        assert auction.highest_bid == 0
        assert auction.highest_bidder is None
        assert not auction.settled

    def test_open_at_end_time(self, auction, clock):
        """end_time itself is still inside the bidding window."""
        clock.increase_to(auction.end_time)
        assert auction.state == AuctionState.OPEN
        assert auction.time_remaining() == 0

    def test_ended_after_end_time(self, auction, clock):
        clock.increase_to(auction.end_time + 1)
        assert auction.state == AuctionState.ENDED
        assert not auction.is_open()

    def test_time_remaining(self, auction, clock):
        clock.increase(600)
        assert auction.time_remaining() == DURATION - 600

    def test_minimum_next_bid(self, auction, bidders):
        assert auction.minimum_next_bid() == parse_value("1")
        auction.place_bid(parse_value("1.5"), caller=bidders[0])
        assert auction.minimum_next_bid() == parse_value("1.5") + 1


# =============================================================================
# Bidding Tests
# =============================================================================


class TestBidding:
    """Tests for place_bid."""

    def test_bid_above_minimum_accepted(self, auction, bidders):
        event = auction.place_bid(parse_value("1.1"), caller=bidders[0])

        assert event == NewBid(bidder=bidders[0], amount=parse_value("1.1"))
        assert auction.log.last() == event
        assert auction.highest_bid == parse_value("1.1")
        assert auction.highest_bidder == bidders[0]

    def test_first_bid_equal_to_minimum_accepted(self, auction, bidders):
        auction.place_bid(parse_value("1"), caller=bidders[0])
        assert auction.highest_bid == parse_value("1")

    def test_first_bid_below_minimum_rejected(self, auction, bidders, ledger):
        balance = ledger.balance_of(bidders[0])

        with pytest.raises(BidTooLow):
            auction.place_bid(parse_value("0.5"), caller=bidders[0])

        assert auction.highest_bid == 0
        assert auction.highest_bidder is None
        assert ledger.balance_of(bidders[0]) == balance
        assert len(auction.log) == 0

    def test_tie_rejected(self, auction, bidders):
        auction.place_bid(parse_value("2"), caller=bidders[0])

        with pytest.raises(BidTooLow):
            auction.place_bid(parse_value("2"), caller=bidders[1])

        assert auction.highest_bidder == bidders[0]

    def test_lower_bid_rejected(self, auction, bidders):
        auction.place_bid(parse_value("2"), caller=bidders[0])

        with pytest.raises(BidTooLow):
            auction.place_bid(parse_value("1.5"), caller=bidders[1])

        assert auction.highest_bid == parse_value("2")

    def test_bid_after_end_rejected(self, auction, bidders, clock):
        clock.increase_to(auction.end_time + 1)

        with pytest.raises(AuctionClosed):
            auction.place_bid(parse_value("5"), caller=bidders[0])

        assert auction.highest_bidder is None

    def test_bid_after_settlement_rejected(self, auction, bidders, clock, seller):
        clock.increase_to(auction.end_time + 1)
        auction.withdraw(caller=seller)

        with pytest.raises(AuctionClosed):
            auction.place_bid(parse_value("5"), caller=bidders[0])

    def test_unfunded_bid_rejected(self, auction, ledger):
        broke = generate_keypair().address

        with pytest.raises(InsufficientFunds):
            auction.place_bid(parse_value("1.1"), caller=broke)

        assert auction.highest_bidder is None
        assert auction.funds_held() == 0

    def test_bids_strictly_increase(self, auction, bidders):
        amounts = ["1", "1.2", "1.2", "1.1", "3", "2.9", "3.5"]
        accepted = []
        for i, amount in enumerate(amounts):
            try:
                auction.place_bid(parse_value(amount), caller=bidders[i % 2])
            except BidTooLow:
                continue
            accepted.append(auction.highest_bid)

        assert accepted == sorted(set(accepted))
        assert [e.amount for e in auction.log.of_type(NewBid)] == accepted

    def test_bid_moves_funds_into_auction(self, auction, bidders, ledger):
        auction.place_bid(parse_value("1.1"), caller=bidders[0])

        assert ledger.balance_of(bidders[0]) == parse_value("8.9")
        assert auction.funds_held() == parse_value("1.1")


# =============================================================================
# Refund Tests
# =============================================================================


class TestRefunds:
    """Tests for refund-on-outbid and claim_refund."""

    def test_outbid_bidder_refunded_immediately(self, auction, bidders, ledger):
        a, b = bidders
        auction.place_bid(parse_value("1.1"), caller=a)
        balance_before = ledger.balance_of(a)

        auction.place_bid(parse_value("1.3"), caller=b)

        assert ledger.balance_of(a) == balance_before + parse_value("1.1")
        assert auction.refundable_of(a) == 0
        assert auction.log.of_type(Refund) == (Refund(bidder=a, amount=parse_value("1.1")),)
        assert auction.highest_bidder == b
        assert_funds_conserved(auction)

    def test_failing_subscriber_does_not_abort_bid(self, auction, bidders, ledger):
        a, b = bidders
        auction.place_bid(parse_value("1.1"), caller=a)

        def broken(source, event):
            raise RuntimeError("subscriber down")

        auction.log.subscribe(broken)
        balance_before = ledger.balance_of(a)

        event = auction.place_bid(parse_value("1.3"), caller=b)

        assert event == NewBid(bidder=b, amount=parse_value("1.3"))
        assert auction.highest_bidder == b
        assert ledger.balance_of(a) == balance_before + parse_value("1.1")
        assert auction.refundable_of(a) == 0
        assert_funds_conserved(auction)

    def test_refused_refund_stays_claimable(self, auction, bidders, ledger):
        a, b = bidders
        auction.place_bid(parse_value("1.1"), caller=a)
        ledger.set_refusing(a)

        auction.place_bid(parse_value("1.3"), caller=b)

        # The new bid stands even though the refund could not be pushed
        assert auction.highest_bidder == b
        assert auction.refundable_of(a) == parse_value("1.1")
        assert auction.log.of_type(Refund) == ()
        assert_funds_conserved(auction)

    def test_claim_refund_after_refusal(self, auction, bidders, ledger):
        a, b = bidders
        auction.place_bid(parse_value("1.1"), caller=a)
        ledger.set_refusing(a)
        auction.place_bid(parse_value("1.3"), caller=b)

        with pytest.raises(TransferFailed):
            auction.claim_refund(caller=a)
        assert auction.refundable_of(a) == parse_value("1.1")

        ledger.set_refusing(a, False)
        paid = auction.claim_refund(caller=a)

        assert paid == parse_value("1.1")
        assert auction.refundable_of(a) == 0
        assert ledger.balance_of(a) == parse_value("10")
        assert_funds_conserved(auction)

    def test_claim_refund_with_nothing_owed_is_noop(self, auction, bidders):
        assert auction.claim_refund(caller=bidders[0]) == 0
        assert len(auction.log) == 0

    def test_refunds_accumulate_when_outbid_twice(self, auction, bidders, ledger):
        """Balances add up, they do not overwrite."""
        a, b = bidders
        ledger.set_refusing(a)

        auction.place_bid(parse_value("1.1"), caller=a)
        auction.place_bid(parse_value("1.3"), caller=b)
        auction.place_bid(parse_value("1.5"), caller=a)
        auction.place_bid(parse_value("1.7"), caller=b)

        assert auction.refundable_of(a) == parse_value("2.6")
        assert_funds_conserved(auction)

        ledger.set_refusing(a, False)
        assert auction.claim_refund(caller=a) == parse_value("2.6")

    def test_push_pays_whole_outstanding_balance(self, auction, bidders, ledger):
        a, b = bidders
        ledger.set_refusing(a)
        auction.place_bid(parse_value("1.1"), caller=a)
        auction.place_bid(parse_value("1.3"), caller=b)
        auction.place_bid(parse_value("1.5"), caller=a)
        ledger.set_refusing(a, False)

        auction.place_bid(parse_value("2"), caller=b)

        assert auction.refundable_of(a) == 0
        assert auction.log.of_type(Refund)[-1] == Refund(bidder=a, amount=parse_value("2.6"))
        assert ledger.balance_of(a) == parse_value("10")

    def test_leader_raising_own_bid(self, auction, bidders, ledger):
        a, _ = bidders
        auction.place_bid(parse_value("1.1"), caller=a)
        auction.place_bid(parse_value("1.4"), caller=a)

        assert auction.highest_bidder == a
        assert ledger.balance_of(a) == parse_value("8.6")
        assert_funds_conserved(auction)


# =============================================================================
# Withdrawal Tests
# =============================================================================


class TestWithdraw:
    """Tests for seller settlement."""

    def test_withdraw_before_end_rejected(self, auction, seller):
        with pytest.raises(AuctionNotEnded):
            auction.withdraw(caller=seller)
        assert not auction.settled

    def test_withdraw_by_non_seller_rejected(self, auction, bidders, clock):
        auction.place_bid(parse_value("2"), caller=bidders[0])
        clock.increase_to(auction.end_time + 1)

        with pytest.raises(NotSeller):
            auction.withdraw(caller=bidders[0])
        assert auction.state == AuctionState.ENDED

    def test_non_seller_checked_before_window(self, auction, bidders):
        with pytest.raises(NotSeller):
            auction.withdraw(caller=bidders[0])

    def test_withdraw_pays_seller(self, auction, bidders, clock, ledger, seller):
        auction.place_bid(parse_value("2"), caller=bidders[0])
        clock.increase_to(auction.end_time + 1)

        event = auction.withdraw(caller=seller)

        assert event == AuctionEnded(winner=bidders[0], amount=parse_value("2"))
        assert ledger.balance_of(seller) == parse_value("2")
        assert auction.state == AuctionState.SETTLED
        assert auction.funds_held() == 0

    def test_withdraw_twice_rejected(self, auction, bidders, clock, ledger, seller):
        auction.place_bid(parse_value("2"), caller=bidders[0])
        clock.increase_to(auction.end_time + 1)
        auction.withdraw(caller=seller)

        with pytest.raises(AlreadySettled):
            auction.withdraw(caller=seller)
        assert ledger.balance_of(seller) == parse_value("2")
        assert len(auction.log.of_type(AuctionEnded)) == 1

    def test_withdraw_without_bids(self, auction, clock, ledger, seller):
        clock.increase_to(auction.end_time + 1)

        event = auction.withdraw(caller=seller)

        assert event == AuctionEnded(winner=None, amount=0)
        assert ledger.balance_of(seller) == 0
        assert auction.settled

    def test_refused_seller_payout_claimable(self, auction, bidders, clock, ledger, seller):
        auction.place_bid(parse_value("2"), caller=bidders[0])
        clock.increase_to(auction.end_time + 1)
        ledger.set_refusing(seller)

        auction.withdraw(caller=seller)

        assert auction.settled
        assert auction.refundable_of(seller) == parse_value("2")
        assert auction.funds_held() == parse_value("2")
        assert_funds_conserved(auction)

        ledger.set_refusing(seller, False)
        assert auction.claim_refund(caller=seller) == parse_value("2")
        assert ledger.balance_of(seller) == parse_value("2")

    def test_outbid_refund_claimable_after_settlement(self, auction, bidders, clock, ledger, seller):
        a, b = bidders
        auction.place_bid(parse_value("1.1"), caller=a)
        ledger.set_refusing(a)
        auction.place_bid(parse_value("1.3"), caller=b)
        clock.increase_to(auction.end_time + 1)
        auction.withdraw(caller=seller)

        ledger.set_refusing(a, False)
        assert auction.claim_refund(caller=a) == parse_value("1.1")
        assert auction.funds_held() == 0


# =============================================================================
# Scenario
# =============================================================================


class TestAuctionScenario:
    """Full lifecycle with the amounts from the reference scenario."""

    def test_full_lifecycle(self, auction, bidders, clock, ledger, seller):
        a, b = bidders

        auction.place_bid(parse_value("1.1"), caller=a)
        assert auction.highest_bid == parse_value("1.1")

        with pytest.raises(BidTooLow):
            auction.place_bid(parse_value("1.0"), caller=b)

        auction.place_bid(parse_value("1.3"), caller=b)
        assert auction.highest_bid == parse_value("1.3")
        assert Refund(bidder=a, amount=parse_value("1.1")) in auction.log.events

        clock.increase_to(auction.end_time + 1)
        event = auction.withdraw(caller=seller)

        assert event == AuctionEnded(winner=b, amount=parse_value("1.3"))
        assert ledger.balance_of(seller) == parse_value("1.3")
        assert ledger.balance_of(a) == parse_value("10")
        assert ledger.balance_of(b) == parse_value("8.7")
        assert [e.name for e in auction.log.events] == [
            "NewBid", "NewBid", "Refund", "AuctionEnded",
        ]


class TestAuctionStats:
    def test_stats(self, auction, bidders, seller):
        auction.place_bid(parse_value("1.5"), caller=bidders[0])
        stats = auction.stats()

        assert stats["state"] == "OPEN"
        assert stats["seller"] == seller
        assert stats["highest_bid"] == parse_value("1.5")
        assert stats["highest_bidder"] == bidders[0]
        assert stats["outstanding_refunds"] == 0
        assert stats["funds_held"] == parse_value("1.5")
