"""
Runtime configuration from environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dazzle_wire.specs.binding import DEFAULT_DEBOUNCE_MS

_DEV_SECRET = "dazzle-wire-dev-secret-key"


@dataclass
class WireConfig:
    """Configuration for the dazzle-wire runtime."""

    secret_key: str = _DEV_SECRET
    prefix: str = "/_wire"
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    computed_ttl: float = 3600.0
    log_dir: Path = Path(".dazzle/logs")
    log_level: int = logging.INFO
    redis_url: str = ""

    @classmethod
    def from_env(cls) -> WireConfig:
        """Load configuration from environment variables."""
        level_name = os.environ.get("DAZZLE_WIRE_LOG_LEVEL", "INFO").upper()
        return cls(
            secret_key=os.environ.get("DAZZLE_WIRE_SECRET_KEY", _DEV_SECRET),
            prefix=os.environ.get("DAZZLE_WIRE_PREFIX", "/_wire").rstrip("/") or "/_wire",
            debounce_ms=int(os.environ.get("DAZZLE_WIRE_DEBOUNCE_MS", str(DEFAULT_DEBOUNCE_MS))),
            computed_ttl=float(os.environ.get("DAZZLE_WIRE_COMPUTED_TTL", "3600")),
            log_dir=Path(os.environ.get("DAZZLE_WIRE_LOG_DIR", ".dazzle/logs")),
            log_level=getattr(logging, level_name, logging.INFO),
            redis_url=os.environ.get("DAZZLE_WIRE_REDIS_URL") or os.environ.get("REDIS_URL", ""),
        )

    @property
    def uses_dev_secret(self) -> bool:
        return self.secret_key == _DEV_SECRET
