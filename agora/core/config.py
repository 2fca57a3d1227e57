"""
Configuration parameters for Agora.

Defines logging, storage and demo timing defaults. Values can be overridden
through AGORA_* environment variables, optionally loaded from a .env file.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "AGORA_"


@dataclass
class AgoraConfig:
    """Deployment-wide configuration parameters"""

    # Environment name (key into the deployment book)
    environment: str = "local"

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False

    # Auction defaults (seconds)
    auction_duration: int = 3600  # Bidding window for demo auctions

    # Election defaults (seconds)
    voting_delay: int = 60  # Time between creation and opening of the vote
    voting_period: int = 3600  # Length of the voting window

    # Paths
    data_dir: Path = Path("data")
    log_dir: Path = Path("logs")

    def __post_init__(self):
        """Normalize types coming from the environment"""
        self.data_dir = Path(self.data_dir).expanduser()
        self.log_dir = Path(self.log_dir).expanduser()
        if self.auction_duration <= 0:
            raise ValueError(f"auction_duration must be positive, got {self.auction_duration}")
        if self.voting_period <= 0:
            raise ValueError(f"voting_period must be positive, got {self.voting_period}")
        if self.voting_delay < 0:
            raise ValueError(f"voting_delay must be non-negative, got {self.voting_delay}")

    @property
    def log_level_value(self) -> int:
        """Numeric logging level for `log_level`."""
        level = logging.getLevelName(self.log_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {self.log_level}")
        return level


def _coerce(raw: str, default):
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, Path):
        return Path(raw)
    return raw


def load_config(env_file: Optional[str] = None) -> AgoraConfig:
    """
    Load configuration from the environment.

    Args:
        env_file: Optional path to a .env file. Variables already set in the
            process environment take precedence over the file.

    Returns:
        AgoraConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)

    defaults = AgoraConfig()
    overrides = {}
    for f in fields(AgoraConfig):
        raw = os.environ.get(ENV_PREFIX + f.name.upper())
        if raw is not None:
            overrides[f.name] = _coerce(raw, getattr(defaults, f.name))

    return AgoraConfig(**overrides)
