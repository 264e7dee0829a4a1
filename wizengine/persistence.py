"""Snapshot persistence for flow sessions."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from wizengine.logger import get_logger
from wizengine.models import FlowSnapshot

log = get_logger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class SnapshotStore(ABC):
    """Keyed storage for flow snapshots."""

    @abstractmethod
    def save(self, key: str, snapshot: FlowSnapshot) -> None:
        """Persist a snapshot, replacing any earlier one under the same key."""

    @abstractmethod
    def load(self, key: str) -> FlowSnapshot | None:
        """Return the stored snapshot, or None when absent or unreadable."""

    @abstractmethod
    def clear(self, key: str) -> None:
        """Remove the stored snapshot. Clearing a missing key is a no-op."""


class MemorySnapshotStore(SnapshotStore):
    """Snapshots held in a process-wide dictionary."""

    def __init__(self) -> None:
        self._snapshots: dict[str, str] = {}

    def save(self, key: str, snapshot: FlowSnapshot) -> None:
        self._snapshots[key] = snapshot.model_dump_json()

    def load(self, key: str) -> FlowSnapshot | None:
        raw = self._snapshots.get(key)
        if raw is None:
            return None
        return FlowSnapshot.model_validate_json(raw)

    def clear(self, key: str) -> None:
        self._snapshots.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)


class FileSnapshotStore(SnapshotStore):
    """One JSON file per session key under ``state_dir``."""

    def __init__(self, state_dir: Path | str) -> None:
        self.state_dir = Path(state_dir)
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def save(self, key: str, snapshot: FlowSnapshot) -> None:
        path = self._path(key)
        path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
        log.debug("snapshot_saved", key=key, path=str(path))

    def load(self, key: str) -> FlowSnapshot | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return FlowSnapshot.model_validate(data)
        except (OSError, ValueError, ValidationError) as exc:
            log.warning("snapshot_unreadable", key=key, path=str(path), error=str(exc))
            return None

    def clear(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
            log.debug("snapshot_cleared", key=key)

    def _path(self, key: str) -> Path:
        return self.state_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.snapshot.json"
