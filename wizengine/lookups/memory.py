"""Dictionary-backed lookup for tests and local runs."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from wizengine.exceptions import LookupFailedError
from wizengine.lookups import BaseLookup


class MemoryLookup(BaseLookup):
    """Serves payloads from a mapping, optionally after a delay per key."""

    def __init__(
        self,
        kind: str,
        records: Mapping[str, Mapping[str, Any]] | None = None,
        delay: float = 0.0,
        delays: Mapping[str, float] | None = None,
    ) -> None:
        self._kind = kind
        self.records: dict[str, dict[str, Any]] = {
            key: dict(payload) for key, payload in (records or {}).items()
        }
        self.delay = delay
        self.delays = dict(delays or {})
        self.calls: list[str] = []

    @property
    def kind(self) -> str:
        return self._kind

    async def lookup(self, key: str) -> dict[str, Any]:
        self.calls.append(key)
        delay = self.delays.get(key, self.delay)
        if delay > 0:
            await asyncio.sleep(delay)
        if key not in self.records:
            raise LookupFailedError(self._kind, key, "not found")
        return dict(self.records[key])
