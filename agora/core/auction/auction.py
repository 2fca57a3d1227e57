"""
Auction - open English auction with refund-on-outbid and one-time settlement.

Lifecycle:
1. Open: bids accepted while clock.now() <= end_time
2. Ended: bidding over, waiting for the seller to withdraw
3. Settled: seller has withdrawn the winning bid (terminal)

The lifecycle state is never stored. It is derived from the clock and the
`settled` flag on every read, so it cannot drift from actual time.

Funds:
------
Each accepted bid is moved from the bidder's ledger account into the
auction's own account. When a bid is outbid, the previous stake is credited
to `refundable` first and then pushed back to its owner. If the push is
refused, the balance stays in `refundable` and can be pulled later with
`claim_refund`. Settlement works the same way for the seller.

At all times:
    ledger.balance_of(auction.address) == locked bid + sum(refundable)
"""

import threading
from enum import IntEnum
from typing import Dict, Optional

from agora.core.clock import Clock
from agora.core.errors import (
    AlreadySettled,
    AuctionClosed,
    AuctionNotEnded,
    BidTooLow,
    InvalidPrice,
    NotSeller,
    TransferFailed,
)
from agora.core.events import AuctionEnded, EventLog, NewBid, Refund
from agora.core.ledger import Ledger


class AuctionState(IntEnum):
    """State of an auction, derived from time and settlement."""
    OPEN = 0      # Accepting bids
    ENDED = 1     # Past end_time, not yet settled
    SETTLED = 2   # Seller withdrew (terminal)


class Auction:
    """
    A single auction for one item.

    Attributes:
        address: Ledger account holding the bids
        seller: Identity allowed to withdraw after the end
        item: Label of the item for sale
        min_price: Minimum acceptable first bid (base units)
        end_time: Last second at which bids are accepted
        highest_bid: Current leading bid (0 before any bid)
        highest_bidder: Current leader, None before any bid
        refundable: Amounts owed to outbid bidders (and an unpaid seller)
        settled: Whether the seller has withdrawn
    """

    def __init__(
        self,
        address: str,
        seller: str,
        item: str,
        min_price: int,
        end_time: int,
        ledger: Ledger,
        clock: Clock,
    ):
        if min_price <= 0:
            raise InvalidPrice(f"Minimum price must be positive, got {min_price}")

        self.address = address
        self.seller = seller
        self.item = item
        self.min_price = min_price
        self.end_time = end_time

        self.highest_bid: int = 0
        self.highest_bidder: Optional[str] = None
        self.refundable: Dict[str, int] = {}
        self.settled: bool = False

        self.ledger = ledger
        self.clock = clock
        self.log = EventLog(address)
        self._lock = threading.RLock()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> AuctionState:
        """Current lifecycle state."""
        if self.settled:
            return AuctionState.SETTLED
        if self.clock.now() <= self.end_time:
            return AuctionState.OPEN
        return AuctionState.ENDED

    def is_open(self) -> bool:
        return self.state == AuctionState.OPEN

    def time_remaining(self) -> int:
        """Seconds left in the bidding window (0 once it has closed)."""
        return max(0, self.end_time - self.clock.now())

    def refundable_of(self, identity: str) -> int:
        """Amount currently owed to an identity."""
        return self.refundable.get(identity, 0)

    def funds_held(self) -> int:
        """Balance of the auction's ledger account."""
        return self.ledger.balance_of(self.address)

    def minimum_next_bid(self) -> int:
        """Smallest amount that `place_bid` would accept now."""
        if self.highest_bidder is None:
            return self.min_price
        return self.highest_bid + 1

    # =========================================================================
    # Bidding
    # =========================================================================

    def place_bid(self, amount: int, caller: str) -> NewBid:
        """
        Place a bid, paying `amount` from the caller's ledger balance.

        The previous leader's stake becomes refundable and is pushed back
        immediately. A refused push leaves it claimable; the bid still stands.

        Raises:
            AuctionClosed: If the auction is not open
            BidTooLow: If amount is below min_price (first bid) or not above
                the current highest bid
            InsufficientFunds: If the caller cannot pay the amount
        """
        with self._lock:
            if self.state != AuctionState.OPEN:
                raise AuctionClosed(f"Auction {self.address} is {self.state.name}")

            if self.highest_bidder is None:
                if amount < self.min_price:
                    raise BidTooLow(f"Bid {amount} below minimum price {self.min_price}")
            elif amount <= self.highest_bid:
                raise BidTooLow(f"Bid {amount} not above highest bid {self.highest_bid}")

            # Raises before any bookkeeping if the caller cannot pay
            self.ledger.transfer(caller, self.address, amount)

            previous_bidder = self.highest_bidder
            if previous_bidder is not None:
                self.refundable[previous_bidder] = (
                    self.refundable.get(previous_bidder, 0) + self.highest_bid
                )

            self.highest_bid = amount
            self.highest_bidder = caller
            event = NewBid(bidder=caller, amount=amount)
            self.log.emit(event)

            if previous_bidder is not None:
                try:
                    paid = self._pay_out(previous_bidder)
                except TransferFailed:
                    pass  # stays claimable
                else:
                    self.log.emit(Refund(bidder=previous_bidder, amount=paid))

            return event

    def claim_refund(self, caller: str) -> int:
        """
        Pull the caller's refundable balance.

        Returns:
            Amount paid (0 if nothing was owed)

        Raises:
            TransferFailed: If the payout is refused; the balance is kept
        """
        with self._lock:
            paid = self._pay_out(caller)
            if paid:
                self.log.emit(Refund(bidder=caller, amount=paid))
            return paid

    # =========================================================================
    # Settlement
    # =========================================================================

    def withdraw(self, caller: str) -> AuctionEnded:
        """
        Settle the auction, paying the highest bid to the seller.

        The winning bid is credited to the seller's refundable balance and
        then pushed. A refused push leaves it for `claim_refund`; settlement
        still completes. With no bids, settlement transfers nothing.

        Raises:
            NotSeller: If caller is not the seller
            AlreadySettled: If the auction was already settled
            AuctionNotEnded: If bidding is still open
        """
        with self._lock:
            if caller != self.seller:
                raise NotSeller(f"{caller} is not the seller of {self.address}")

            state = self.state
            if state == AuctionState.SETTLED:
                raise AlreadySettled(f"Auction {self.address} already settled")
            if state == AuctionState.OPEN:
                raise AuctionNotEnded(
                    f"Auction {self.address} open for {self.time_remaining()} more seconds"
                )

            self.settled = True
            if self.highest_bid > 0:
                self.refundable[self.seller] = (
                    self.refundable.get(self.seller, 0) + self.highest_bid
                )

            event = AuctionEnded(winner=self.highest_bidder, amount=self.highest_bid)
            self.log.emit(event)

            if self.highest_bid > 0:
                try:
                    self._pay_out(self.seller)
                except TransferFailed:
                    pass  # seller pulls it with claim_refund

            return event

    # =========================================================================
    # Internal
    # =========================================================================

    def _pay_out(self, recipient: str) -> int:
        """
        Transfer the recipient's whole refundable balance.

        The balance is removed only after the transfer succeeds, so a
        refused transfer (TransferFailed) leaves it intact.
        """
        owed = self.refundable.get(recipient, 0)
        if owed == 0:
            return 0
        self.ledger.transfer(self.address, recipient, owed)
        del self.refundable[recipient]
        return owed

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return (
            f"Auction(address={self.address}, item={self.item!r}, "
            f"state={self.state.name}, highest_bid={self.highest_bid})"
        )

    def stats(self) -> dict:
        """Get auction statistics."""
        return {
            "address": self.address,
            "item": self.item,
            "seller": self.seller,
            "state": self.state.name,
            "min_price": self.min_price,
            "end_time": self.end_time,
            "highest_bid": self.highest_bid,
            "highest_bidder": self.highest_bidder,
            "outstanding_refunds": sum(self.refundable.values()),
            "funds_held": self.funds_held(),
        }
