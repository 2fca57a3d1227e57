"""
Deployer - wires ledger, clock and registries together and drives them.

This is orchestration glue around the core state machines:
- builds a deployment for a named environment
- records component addresses in the deployment book
- logs every event emitted by the deployed instances
- moves time forward (ManualClock) or waits for it (SystemClock)
- runs the end-to-end auction and election scenarios used by the CLI
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from agora.core.auction import Auction, AuctionRegistry
from agora.core.clock import Clock, ManualClock
from agora.core.election import Election, EligibilityRegistry
from agora.core.errors import AgoraError
from agora.core.events import Event, EventLog
from agora.core.ledger import Ledger
from agora.crypto import generate_keypair
from agora.deploy.book import DeploymentBook
from agora.utils.logger import get_logger
from agora.utils.units import format_value, parse_value

logger = get_logger("deploy")
event_logger = get_logger("events")

# Polling interval when waiting on a wall clock (seconds)
DEFAULT_POLL_INTERVAL = 1.0


# =============================================================================
# Time
# =============================================================================


def advance_past(
    clock: Clock,
    timestamp: int,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> int:
    """
    Return once clock.now() > timestamp.

    A ManualClock is moved forward directly; any other clock is polled.

    Returns:
        The clock's time on return
    """
    if isinstance(clock, ManualClock):
        if clock.now() <= timestamp:
            clock.increase_to(timestamp + 1)
        return clock.now()

    while clock.now() <= timestamp:
        logger.info(f"Waiting {timestamp - clock.now() + 1}s for time {timestamp}...")
        time.sleep(poll_interval)
    return clock.now()


def log_event(source: str, event: Event) -> None:
    """EventLog subscriber that writes events to the 'events' logger."""
    fields_str = ", ".join(
        f"{k}={v}" for k, v in event.to_dict().items() if k != "event"
    )
    event_logger.info(f"{event.name}({fields_str}) from {source[:10]}...")


# =============================================================================
# Deployment
# =============================================================================


class Deployment:
    """
    One environment's ledger, clock and registries.

    Attributes:
        environment: Name used as the deployment book key
        clock: Time source for every instance
        ledger: Balances of all participants and auctions
        admin: Administrator identity (issues voting credentials)
        auctions: AuctionRegistry
        eligibility: EligibilityRegistry
        elections: Elections created through this deployment
    """

    def __init__(
        self,
        environment: str = "local",
        clock: Optional[Clock] = None,
        ledger: Optional[Ledger] = None,
        book: Optional[DeploymentBook] = None,
        admin: Optional[str] = None,
    ):
        self.environment = environment
        self.clock = clock if clock is not None else ManualClock()
        self.ledger = ledger if ledger is not None else Ledger()
        self.book = book
        self.admin = admin or generate_keypair().address

        logger.info(f"Deploying to '{environment}' with admin {self.admin}")

        self.auctions = AuctionRegistry(self.ledger, self.clock)
        self._watch(self.auctions.log)
        logger.info(f"AuctionRegistry deployed at: {self.auctions.address}")

        self.eligibility = EligibilityRegistry(self.admin)
        self._watch(self.eligibility.log)
        logger.info(f"EligibilityRegistry deployed at: {self.eligibility.address}")

        self.elections: List[Election] = []

        self._record("AuctionRegistry", self.auctions.address)
        self._record("EligibilityRegistry", self.eligibility.address)

    # =========================================================================
    # Participants
    # =========================================================================

    def new_participant(self, funds: int = 0) -> str:
        """Create a fresh identity, optionally funded on the ledger."""
        identity = generate_keypair().address
        if funds > 0:
            self.ledger.mint(identity, funds)
        return identity

    # =========================================================================
    # Instances
    # =========================================================================

    def create_auction(
        self,
        seller: str,
        item: str,
        min_price: int,
        duration: int,
    ) -> Auction:
        """Create an auction ending `duration` seconds from now."""
        end_time = self.clock.now() + duration
        auction = self.auctions.create_auction(item, min_price, end_time, caller=seller)
        self._watch(auction.log)
        logger.info(f"Auction created at: {auction.address}")
        return auction

    def create_election(
        self,
        candidates: Sequence[str],
        delay: int,
        period: int,
    ) -> Election:
        """Create an election opening `delay` seconds from now for `period` seconds."""
        start_time = self.clock.now() + delay
        election = Election(
            admin=self.admin,
            candidates=candidates,
            start_time=start_time,
            end_time=start_time + period,
            registry=self.eligibility,
            clock=self.clock,
        )
        self._watch(election.log)
        self.elections.append(election)
        self._record(f"Election{len(self.elections)}", election.address)
        logger.info(f"Election deployed at: {election.address}")
        return election

    # =========================================================================
    # Internal
    # =========================================================================

    def _watch(self, log: EventLog) -> None:
        log.subscribe(log_event)

    def _record(self, name: str, address: str) -> None:
        if self.book is None:
            return
        self.book.record(self.environment, name, address)
        self.book.save()


# =============================================================================
# Scenarios
# =============================================================================


@dataclass
class AuctionReport:
    """Outcome of an auction scenario."""
    auction: str
    item: str
    seller: str
    highest_bidder: Optional[str]
    highest_bid: int
    seller_received: int
    rejected_bids: List[Tuple[str, str]] = field(default_factory=list)  # (amount, error kind)


@dataclass
class ElectionReport:
    """Outcome of an election scenario."""
    election: str
    results: Dict[str, int]
    winners: Tuple[str, ...]


def run_auction_scenario(
    deployment: Deployment,
    item: str = "Exclusive Painting",
    min_price: str = "1.0",
    bids: Sequence[str] = ("1.1", "1.21"),
    duration: int = 10,
) -> AuctionReport:
    """
    Deploy an auction, bid on it, wait for the end and settle.

    Bids are placed in order by fresh bidders. Rejected bids are recorded
    in the report instead of aborting the scenario.
    """
    seller = deployment.new_participant()
    auction = deployment.create_auction(seller, item, parse_value(min_price), duration)

    logger.info("Bidding starts...")
    rejected = []
    for amount in bids:
        value = parse_value(amount)
        bidder = deployment.new_participant(funds=value)
        try:
            auction.place_bid(value, caller=bidder)
        except AgoraError as e:
            logger.warning(f"Bid of {amount} by {bidder} rejected: {e.kind}: {e.message}")
            rejected.append((amount, e.kind))
        else:
            logger.info(f"Bidder {bidder} placed a bid of {amount}")

    logger.info("Waiting for auction to end...")
    advance_past(deployment.clock, auction.end_time)

    logger.info("Withdrawing funds...")
    balance_before = deployment.ledger.balance_of(seller)
    auction.withdraw(caller=seller)
    seller_received = deployment.ledger.balance_of(seller) - balance_before
    logger.info("Funds withdrawn by seller.")

    logger.info(
        f"Auction ended. Highest Bid: {format_value(auction.highest_bid)} "
        f"by {auction.highest_bidder}"
    )
    return AuctionReport(
        auction=auction.address,
        item=auction.item,
        seller=seller,
        highest_bidder=auction.highest_bidder,
        highest_bid=auction.highest_bid,
        seller_received=seller_received,
        rejected_bids=rejected,
    )


def run_election_scenario(
    deployment: Deployment,
    candidates: Sequence[str] = ("Alice", "Bob", "Carol"),
    choices: Sequence[int] = (0, 1, 0),
    delay: int = 5,
    period: int = 10,
) -> ElectionReport:
    """
    Register one voter per choice, vote during the window and tally.

    `choices[i]` is the candidate index voter i votes for.
    """
    election = deployment.create_election(candidates, delay, period)

    voters = []
    for _ in choices:
        voter = deployment.new_participant()
        deployment.eligibility.register(voter, caller=deployment.admin)
        voters.append(voter)
    logger.info(f"Registered {len(voters)} voters")

    advance_past(deployment.clock, election.start_time - 1)
    for voter, choice in zip(voters, choices):
        election.vote(choice, caller=voter)
    logger.info(f"{len(voters)} votes cast, waiting for the election to close...")

    advance_past(deployment.clock, election.end_time - 1)
    results = dict(zip(election.candidates, election.results()))
    winners = election.winners()
    logger.info(f"Election closed. Results: {results}, winners: {', '.join(winners)}")

    return ElectionReport(election=election.address, results=results, winners=winners)
