"""
Errors raised by the auction and election state machines.

Every error is a local condition the caller can recover from: the instance
that raised it is left unchanged and stays usable.
"""


class AgoraError(Exception):
    """Base class for all Agora errors."""

    kind = "AgoraError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind


# Auction creation
class InvalidWindow(AgoraError):
    kind = "InvalidWindow"


class InvalidPrice(AgoraError):
    kind = "InvalidPrice"


# Bidding and settlement
class AuctionClosed(AgoraError):
    kind = "AuctionClosed"


class BidTooLow(AgoraError):
    kind = "BidTooLow"


class NotSeller(AgoraError):
    kind = "NotSeller"


class AuctionNotEnded(AgoraError):
    kind = "AuctionNotEnded"


class AlreadySettled(AgoraError):
    kind = "AlreadySettled"


# Eligibility
class NotAdmin(AgoraError):
    kind = "NotAdmin"


class AlreadyRegistered(AgoraError):
    kind = "AlreadyRegistered"


# Voting
class NotEligible(AgoraError):
    kind = "NotEligible"


class AlreadyVoted(AgoraError):
    kind = "AlreadyVoted"


class InvalidCandidate(AgoraError):
    kind = "InvalidCandidate"


class VotingNotOpen(AgoraError):
    kind = "VotingNotOpen"


class ElectionNotClosed(AgoraError):
    kind = "ElectionNotClosed"


# Funds
class TransferFailed(AgoraError):
    """Payout could not complete; the owed amount stays claimable."""
    kind = "TransferFailed"


class InsufficientFunds(AgoraError):
    """Payer's ledger balance does not cover the amount."""
    kind = "InsufficientFunds"


__all__ = [
    "AgoraError",
    "InvalidWindow",
    "InvalidPrice",
    "AuctionClosed",
    "BidTooLow",
    "NotSeller",
    "AuctionNotEnded",
    "AlreadySettled",
    "NotAdmin",
    "AlreadyRegistered",
    "NotEligible",
    "AlreadyVoted",
    "InvalidCandidate",
    "VotingNotOpen",
    "ElectionNotClosed",
    "TransferFailed",
    "InsufficientFunds",
]
