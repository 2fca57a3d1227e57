"""
Agora Election Module.

This module provides:
- Voting credentials issued by an administrator
- Credential-gated elections with a voting window and tally
"""

from agora.core.election.eligibility import EligibilityRegistry
from agora.core.election.election import Election, ElectionState

__all__ = [
    "EligibilityRegistry",
    "Election",
    "ElectionState",
]
