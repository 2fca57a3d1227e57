"""
Events - structured records emitted by auctions, elections and registries.

Each instance appends immutable event records to its EventLog. Subscribers
(the deployer's logging hook, tests) are notified synchronously in emission
order. Events are the only side channel besides state reads and transfers.

An event is emitted after the state change it reports, so a failing
subscriber cannot undo or abort the operation: the failure is logged and
the remaining subscribers still run.
"""

from dataclasses import asdict, dataclass
from typing import Callable, List, Optional, Tuple, Type, TypeVar

from agora.utils.logger import get_logger

logger = get_logger("core.events")


@dataclass(frozen=True)
class Event:
    """Base class for emitted events."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        data = asdict(self)
        data["event"] = self.name
        return data


@dataclass(frozen=True)
class AuctionCreated(Event):
    auction: str  # Address of the new auction
    seller: str
    item: str
    min_price: int
    end_time: int


@dataclass(frozen=True)
class NewBid(Event):
    bidder: str
    amount: int


@dataclass(frozen=True)
class Refund(Event):
    bidder: str
    amount: int


@dataclass(frozen=True)
class AuctionEnded(Event):
    winner: Optional[str]
    amount: int


@dataclass(frozen=True)
class VoterRegistered(Event):
    voter: str
    credential_id: int


@dataclass(frozen=True)
class VoteCast(Event):
    voter: str
    candidate_id: int


E = TypeVar("E", bound=Event)
Subscriber = Callable[[str, Event], None]


class EventLog:
    """
    Append-only log of events emitted by one instance.

    Attributes:
        source: Address of the emitting instance
        events: Emitted events in order
    """

    def __init__(self, source: str):
        self.source = source
        self.events: List[Event] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        """Register `callback(source, event)` for every future event."""
        self._subscribers.append(callback)

    def emit(self, event: Event) -> None:
        self.events.append(event)
        for callback in self._subscribers:
            try:
                callback(self.source, event)
            except Exception:
                logger.exception(
                    f"Subscriber {callback!r} failed on {event.name} from {self.source}"
                )

    def of_type(self, event_type: Type[E]) -> Tuple[E, ...]:
        """Events of one type, in emission order."""
        return tuple(e for e in self.events if isinstance(e, event_type))

    def last(self) -> Optional[Event]:
        return self.events[-1] if self.events else None

    def __len__(self) -> int:
        return len(self.events)
