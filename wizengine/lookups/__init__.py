"""External lookup interface and implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseLookup(ABC):
    """Base class for asynchronous external lookups."""

    @property
    @abstractmethod
    def kind(self) -> str:
        """Resolution kind this lookup serves (e.g. ``invitation``)."""

    @abstractmethod
    async def lookup(self, key: str) -> dict[str, Any]:
        """Resolve ``key`` to a payload. Raise ``LookupFailedError`` when it cannot."""
