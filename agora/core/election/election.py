"""
Election - credential-gated, single-vote ballot with a fixed window.

Lifecycle (derived from the clock on every read, never stored):
1. Pending: clock.now() < start_time
2. Active: start_time <= clock.now() < end_time
3. Closed: clock.now() >= end_time (terminal)

Eligibility comes from an EligibilityRegistry: the caller's credential id is
looked up there, so a vote cannot be cast with someone else's credential.
"""

import threading
from enum import IntEnum
from typing import List, Optional, Sequence, Set, Tuple

from agora.core.clock import Clock
from agora.core.election.eligibility import EligibilityRegistry
from agora.core.errors import (
    AlreadyVoted,
    ElectionNotClosed,
    InvalidCandidate,
    InvalidWindow,
    NotEligible,
    VotingNotOpen,
)
from agora.core.events import EventLog, VoteCast
from agora.crypto import random_address


class ElectionState(IntEnum):
    """State of an election, derived from time."""
    PENDING = 0
    ACTIVE = 1
    CLOSED = 2


class Election:
    """
    A single election over a fixed list of candidates.

    Attributes:
        admin: Identity that created the election
        candidates: Candidate labels; the index is the candidate id
        start_time: First second votes are accepted
        end_time: First second votes are no longer accepted
        registry: Source of voting credentials
        tally: Vote counts parallel to candidates
        voted: Credential ids that have voted
    """

    def __init__(
        self,
        admin: str,
        candidates: Sequence[str],
        start_time: int,
        end_time: int,
        registry: EligibilityRegistry,
        clock: Clock,
        address: Optional[str] = None,
    ):
        if not candidates:
            raise InvalidCandidate("An election needs at least one candidate")
        if start_time >= end_time:
            raise InvalidWindow(f"Start time {start_time} must be before end time {end_time}")

        self.admin = admin
        self.candidates: Tuple[str, ...] = tuple(candidates)
        self.start_time = start_time
        self.end_time = end_time
        self.registry = registry
        self.clock = clock
        self.address = address or random_address()

        self.tally: List[int] = [0] * len(self.candidates)
        self.voted: Set[int] = set()

        self.log = EventLog(self.address)
        self._lock = threading.RLock()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> ElectionState:
        now = self.clock.now()
        if now < self.start_time:
            return ElectionState.PENDING
        if now < self.end_time:
            return ElectionState.ACTIVE
        return ElectionState.CLOSED

    def has_voted(self, identity: str) -> bool:
        credential_id = self.registry.credential_of(identity)
        return credential_id is not None and credential_id in self.voted

    # =========================================================================
    # Voting
    # =========================================================================

    def vote(self, candidate_id: int, caller: str) -> VoteCast:
        """
        Cast the caller's single vote.

        Raises:
            VotingNotOpen: If the election is not active
            NotEligible: If caller holds no credential
            AlreadyVoted: If caller's credential has already voted
            InvalidCandidate: If candidate_id is out of range
        """
        with self._lock:
            state = self.state
            if state != ElectionState.ACTIVE:
                raise VotingNotOpen(f"Election {self.address} is {state.name}")

            credential_id = self.registry.credential_of(caller)
            if credential_id is None:
                raise NotEligible(f"{caller} holds no voting credential")
            if credential_id in self.voted:
                raise AlreadyVoted(f"Credential {credential_id} has already voted")

            # bool is an int subclass but never a candidate index
            if (
                isinstance(candidate_id, bool)
                or not isinstance(candidate_id, int)
                or not 0 <= candidate_id < len(self.candidates)
            ):
                raise InvalidCandidate(
                    f"Candidate {candidate_id!r} not in range [0, {len(self.candidates)})"
                )

            self.voted.add(credential_id)
            self.tally[candidate_id] += 1

            event = VoteCast(voter=caller, candidate_id=candidate_id)
            self.log.emit(event)
            return event

    # =========================================================================
    # Results
    # =========================================================================

    def results(self) -> Tuple[int, ...]:
        """
        Vote counts parallel to candidates.

        Readable in any state. While ACTIVE this is the running tally; it is
        final only once the election is CLOSED.
        """
        with self._lock:
            return tuple(self.tally)

    def winners(self) -> Tuple[str, ...]:
        """
        Labels of the candidates with the most votes (several on a tie).

        Raises:
            ElectionNotClosed: If voting has not finished
        """
        if self.state != ElectionState.CLOSED:
            raise ElectionNotClosed(f"Election {self.address} is {self.state.name}")
        counts = self.results()
        top = max(counts)
        return tuple(c for c, n in zip(self.candidates, counts) if n == top)

    def __repr__(self) -> str:
        return (
            f"Election(address={self.address}, candidates={len(self.candidates)}, "
            f"state={self.state.name}, votes={len(self.voted)})"
        )

    def stats(self) -> dict:
        """Get election statistics."""
        return {
            "address": self.address,
            "state": self.state.name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "votes_cast": len(self.voted),
            "results": dict(zip(self.candidates, self.results())),
        }
