"""
Auction Registry - creates and enumerates auctions.

The registry owns an append-only list of the auctions it created. Each new
auction gets an address derived from the registry's address and the number
of auctions created before it, so addresses are unique per registry.
"""

import threading
from typing import Dict, List, Optional, Tuple

from agora.core.auction.auction import Auction, AuctionState
from agora.core.clock import Clock
from agora.core.errors import InvalidPrice, InvalidWindow
from agora.core.events import AuctionCreated, EventLog
from agora.core.ledger import Ledger
from agora.crypto import derive_instance_address, random_address


class AuctionRegistry:
    """
    Factory and index of auctions.

    Attributes:
        address: Identity of the registry
        ledger: Ledger that new auctions hold funds on
        clock: Clock shared with new auctions
        log: Event log for AuctionCreated events
    """

    def __init__(self, ledger: Ledger, clock: Clock, address: Optional[str] = None):
        self.address = address or random_address()
        self.ledger = ledger
        self.clock = clock
        self.log = EventLog(self.address)

        self._auctions: List[Auction] = []
        self._by_address: Dict[str, Auction] = {}
        self._lock = threading.RLock()

    def create_auction(
        self,
        item: str,
        min_price: int,
        end_time: int,
        caller: str,
    ) -> Auction:
        """
        Create a new auction with `caller` as seller.

        Args:
            item: Label of the item for sale
            min_price: Minimum first bid in base units
            end_time: Last timestamp at which bids are accepted
            caller: Seller identity

        Returns:
            The new Auction

        Raises:
            InvalidWindow: If end_time is not in the future
            InvalidPrice: If min_price is not positive
        """
        with self._lock:
            now = self.clock.now()
            if end_time <= now:
                raise InvalidWindow(f"End time {end_time} must be after current time {now}")
            if min_price <= 0:
                raise InvalidPrice(f"Minimum price must be positive, got {min_price}")

            address = derive_instance_address(self.address, len(self._auctions))
            auction = Auction(
                address=address,
                seller=caller,
                item=item,
                min_price=min_price,
                end_time=end_time,
                ledger=self.ledger,
                clock=self.clock,
            )
            self._auctions.append(auction)
            self._by_address[address] = auction

            self.log.emit(AuctionCreated(
                auction=address,
                seller=caller,
                item=item,
                min_price=min_price,
                end_time=end_time,
            ))
            return auction

    # =========================================================================
    # Lookup
    # =========================================================================

    def list_auctions(self) -> Tuple[Auction, ...]:
        """All auctions in creation order."""
        with self._lock:
            return tuple(self._auctions)

    def get_auction(self, address: str) -> Optional[Auction]:
        """Get auction by address."""
        return self._by_address.get(address)

    def __len__(self) -> int:
        return len(self._auctions)

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self) -> dict:
        """Get registry statistics."""
        states = [a.state for a in self.list_auctions()]
        return {
            "total_auctions": len(states),
            "open": states.count(AuctionState.OPEN),
            "ended": states.count(AuctionState.ENDED),
            "settled": states.count(AuctionState.SETTLED),
        }
