"""Auction and election state machines, plus the ledger and clock they run on"""
from agora.core.clock import Clock, ManualClock, SystemClock
from agora.core.ledger import Ledger
from agora.core.events import (
    Event,
    EventLog,
    AuctionCreated,
    NewBid,
    Refund,
    AuctionEnded,
    VoterRegistered,
    VoteCast,
)
from agora.core.auction import Auction, AuctionState, AuctionRegistry
from agora.core.election import EligibilityRegistry, Election, ElectionState

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "Ledger",
    "Event",
    "EventLog",
    "AuctionCreated",
    "NewBid",
    "Refund",
    "AuctionEnded",
    "VoterRegistered",
    "VoteCast",
    "Auction",
    "AuctionState",
    "AuctionRegistry",
    "EligibilityRegistry",
    "Election",
    "ElectionState",
]
