"""Engine configuration via environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal


@dataclass
class EngineConfig:
    """Engine configuration loaded from environment variables."""

    storage: Literal["memory", "file"] = "memory"
    state_dir: str = ".wizflow/snapshots"
    lookup_timeout: float = 5.0
    submit_timeout: float = 10.0
    backend_url: str | None = None
    log_level: str = "INFO"
    log_json: bool = False
    portal_port: int = 8001

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load config from environment variables."""
        storage = os.environ.get("WIZ_STORAGE", "memory").lower()
        if storage not in ("memory", "file"):
            raise ValueError(f"WIZ_STORAGE must be 'memory' or 'file', got {storage!r}")
        return cls(
            storage=storage,  # type: ignore[arg-type]
            state_dir=os.environ.get("WIZ_STATE_DIR", ".wizflow/snapshots"),
            lookup_timeout=float(os.environ.get("WIZ_LOOKUP_TIMEOUT", "5.0")),
            submit_timeout=float(os.environ.get("WIZ_SUBMIT_TIMEOUT", "10.0")),
            backend_url=os.environ.get("WIZ_BACKEND_URL") or None,
            log_level=os.environ.get("WIZ_LOG_LEVEL", "INFO"),
            log_json=os.environ.get("WIZ_LOG_JSON", "false").lower() == "true",
            portal_port=int(os.environ.get("WIZ_PORTAL_PORT", "8001")),
        )
