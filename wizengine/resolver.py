"""External resolution with request ordering and staleness discard."""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Iterable

from wizengine.exceptions import LookupFailedError, UnknownLookupError
from wizengine.logger import get_logger
from wizengine.lookups import BaseLookup
from wizengine.models import ExternalResolution, ResolutionStatus

log = get_logger(__name__)

_DEFAULT_TIMEOUT = 5.0  # seconds per lookup

# Shared across resolvers so request ids never repeat within a process.
_request_ids = itertools.count(1)


class ExternalResolver:
    """Issues lookups and tags each with a monotonically increasing request id.

    Only the most recently issued request per kind may be applied; any other
    response is reported as ``stale`` when it arrives.
    """

    def __init__(
        self, lookups: Iterable[BaseLookup] = (), timeout: float = _DEFAULT_TIMEOUT
    ) -> None:
        self._lookups = {lookup.kind: lookup for lookup in lookups}
        self.timeout = timeout
        self._latest: dict[str, int] = {}

    @property
    def kinds(self) -> list[str]:
        return list(self._lookups)

    def has_lookup(self, kind: str) -> bool:
        return kind in self._lookups

    def issue(self, kind: str, key: str) -> ExternalResolution:
        """Reserve a request id for ``(kind, key)`` and mark it as the latest."""
        if kind not in self._lookups:
            raise UnknownLookupError(kind)
        request_id = next(_request_ids)
        self._latest[kind] = request_id
        log.debug("lookup_issued", kind=kind, key=key, request_id=request_id)
        return ExternalResolution(request_id=request_id, kind=kind, key=key)

    def is_latest(self, resolution: ExternalResolution) -> bool:
        return self._latest.get(resolution.kind) == resolution.request_id

    async def resolve(self, resolution: ExternalResolution) -> ExternalResolution:
        """Await the lookup for an issued request and classify the outcome."""
        lookup = self._lookups.get(resolution.kind)
        if lookup is None:
            raise UnknownLookupError(resolution.kind)

        status = ResolutionStatus.RESOLVED
        payload: dict = {}
        error: str | None = None
        try:
            payload = await asyncio.wait_for(lookup.lookup(resolution.key), timeout=self.timeout)
        except asyncio.TimeoutError:
            status, error = ResolutionStatus.FAILED, "timed out"
            log.warning("lookup_timeout", kind=resolution.kind, key=resolution.key)
        except LookupFailedError as exc:
            status, error = ResolutionStatus.FAILED, exc.detail
            log.info("lookup_failed", kind=resolution.kind, key=resolution.key, detail=exc.detail)
        except Exception as exc:
            status, error = ResolutionStatus.FAILED, str(exc) or type(exc).__name__
            log.warning("lookup_error", kind=resolution.kind, key=resolution.key, error=str(exc))

        if not self.is_latest(resolution):
            log.info(
                "lookup_stale",
                kind=resolution.kind,
                key=resolution.key,
                request_id=resolution.request_id,
                latest=self._latest.get(resolution.kind),
            )
            return resolution.model_copy(
                update={"status": ResolutionStatus.STALE, "payload": {}, "error": None}
            )

        return resolution.model_copy(
            update={"status": status, "payload": dict(payload), "error": error}
        )

    async def fetch(self, kind: str, key: str) -> ExternalResolution:
        """Issue and resolve in one call."""
        return await self.resolve(self.issue(kind, key))
