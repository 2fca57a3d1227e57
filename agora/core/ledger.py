"""
Ledger - native value balances for Agora.

Conceptual Background:
---------------------
Auctions hold bids in trust, so every participant and every auction has an
account on a single ledger of the native value unit (integer base units).

1. **Genesis**: `mint` allocates initial balances.
2. **Transfer**: moves value between accounts atomically. A transfer either
   completes or raises with no balance change.
3. **Refusal**: an account can refuse incoming funds, which makes payouts to
   it fail. This is how a recipient that rejects payment is modelled, and it
   is what the auctions' pull-refund fallback protects against.
"""

import threading
from typing import Dict, Set

from agora.core.errors import InsufficientFunds, TransferFailed


class Ledger:
    """
    Balance ledger shared by the participants of one deployment.

    Attributes:
        balances: Mapping of identity to balance in base units
        refusing: Identities that currently refuse incoming funds
    """

    def __init__(self):
        self.balances: Dict[str, int] = {}
        self.refusing: Set[str] = set()
        self._lock = threading.RLock()

    # =========================================================================
    # State Access
    # =========================================================================

    def balance_of(self, identity: str) -> int:
        """Balance of an identity (0 if it never held funds)."""
        with self._lock:
            return self.balances.get(identity, 0)

    def total_supply(self) -> int:
        with self._lock:
            return sum(self.balances.values())

    # =========================================================================
    # Mutation
    # =========================================================================

    def mint(self, identity: str, amount: int) -> None:
        """Credit new funds to an identity (genesis allocation)."""
        if amount <= 0:
            raise ValueError(f"Mint amount must be positive, got {amount}")
        with self._lock:
            self.balances[identity] = self.balances.get(identity, 0) + amount

    def set_refusing(self, identity: str, refusing: bool = True) -> None:
        """Make an identity refuse (or accept again) incoming transfers."""
        with self._lock:
            if refusing:
                self.refusing.add(identity)
            else:
                self.refusing.discard(identity)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move `amount` from sender to recipient.

        Raises:
            ValueError: If amount is negative
            InsufficientFunds: If sender's balance does not cover amount
            TransferFailed: If recipient refuses incoming funds
        """
        if amount < 0:
            raise ValueError(f"Transfer amount must be non-negative, got {amount}")
        if amount == 0:
            return

        with self._lock:
            available = self.balances.get(sender, 0)
            if available < amount:
                raise InsufficientFunds(
                    f"{sender} holds {available}, cannot pay {amount}"
                )
            if recipient in self.refusing:
                raise TransferFailed(f"{recipient} refused {amount}")

            self.balances[sender] = available - amount
            self.balances[recipient] = self.balances.get(recipient, 0) + amount

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return f"Ledger(accounts={len(self.balances)}, supply={self.total_supply()})"
