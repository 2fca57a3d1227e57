"""
Eligibility Registry - voting credentials issued by an administrator.

Each registered identity receives exactly one credential: a positive integer
id assigned from a counter, like a token minted by a non-fungible token
contract. Only the administrator can issue credentials and a credential is
never re-issued to the same identity.
"""

import threading
from typing import Dict, Optional

from agora.core.errors import AlreadyRegistered, NotAdmin
from agora.core.events import EventLog, VoterRegistered
from agora.crypto import random_address


class EligibilityRegistry:
    """
    Registry of voting credentials.

    Attributes:
        admin: Only identity allowed to register voters
        address: Identity of the registry
        log: Event log for VoterRegistered events
    """

    def __init__(self, admin: str, address: Optional[str] = None):
        self.admin = admin
        self.address = address or random_address()
        self.log = EventLog(self.address)

        # Identity -> credential id, and the reverse
        self._credentials: Dict[str, int] = {}
        self._holders: Dict[int, str] = {}

        self._next_id = 1
        self._lock = threading.RLock()

    def register(self, identity: str, caller: str) -> int:
        """
        Issue a credential to `identity`.

        Returns:
            The new credential id

        Raises:
            NotAdmin: If caller is not the administrator
            AlreadyRegistered: If identity already holds a credential
        """
        with self._lock:
            if caller != self.admin:
                raise NotAdmin(f"{caller} is not the registry admin")
            if identity in self._credentials:
                raise AlreadyRegistered(
                    f"{identity} already holds credential {self._credentials[identity]}"
                )

            credential_id = self._next_id
            self._next_id += 1
            self._credentials[identity] = credential_id
            self._holders[credential_id] = identity

            self.log.emit(VoterRegistered(voter=identity, credential_id=credential_id))
            return credential_id

    # =========================================================================
    # Lookup
    # =========================================================================

    def credential_of(self, identity: str) -> Optional[int]:
        """Credential id held by identity, or None."""
        return self._credentials.get(identity)

    def holder_of(self, credential_id: int) -> Optional[str]:
        """Identity holding a credential, or None."""
        return self._holders.get(credential_id)

    def is_eligible(self, identity: str) -> bool:
        return identity in self._credentials

    @property
    def total_issued(self) -> int:
        return len(self._credentials)
