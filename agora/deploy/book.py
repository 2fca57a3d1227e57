"""
Deployment Book - persisted addresses of deployed components.

A JSON file mapping environment name -> component name -> address, so an
orchestrator can find what it deployed in an earlier run:

    {
      "local": {"AuctionRegistry": "0x...", "EligibilityRegistry": "0x..."}
    }
"""

import json
from pathlib import Path
from typing import Dict, Optional

from agora.crypto import is_valid_address
from agora.utils.logger import get_logger

logger = get_logger("deploy")

BOOK_FILENAME = "deployments.json"


class DeploymentBook:
    """
    Name -> address map per environment, stored as JSON.

    Attributes:
        path: Location of the JSON file
        entries: environment -> {component name -> address}
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.entries: Dict[str, Dict[str, str]] = {}

    @classmethod
    def in_dir(cls, data_dir: Path) -> "DeploymentBook":
        """Load (or start) the book stored in a data directory."""
        return cls.load(Path(data_dir) / BOOK_FILENAME)

    @classmethod
    def load(cls, path: Path) -> "DeploymentBook":
        book = cls(path)
        if book.path.exists():
            data = json.loads(book.path.read_text())
            if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
                raise ValueError(f"{book.path}: expected an object of environments")
            book.entries = {env: dict(names) for env, names in data.items()}
            logger.debug(f"Loaded {len(book.entries)} environment(s) from {book.path}")
        return book

    def record(self, environment: str, name: str, address: str) -> None:
        """Record the address of a deployed component."""
        if not is_valid_address(address):
            raise ValueError(f"Invalid address for {name}: {address!r}")
        self.entries.setdefault(environment, {})[name] = address

    def get(self, environment: str, name: str) -> Optional[str]:
        return self.entries.get(environment, {}).get(name)

    def environment(self, environment: str) -> Dict[str, str]:
        """All recorded components of an environment."""
        return dict(self.entries.get(environment, {}))

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.entries, indent=2, sort_keys=True))
        logger.debug(f"Saved deployment book to {self.path}")
