"""Lookup against an HTTP backend."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from wizengine.exceptions import LookupFailedError
from wizengine.logger import get_logger
from wizengine.lookups import BaseLookup

log = get_logger(__name__)


class HttpLookup(BaseLookup):
    """GETs ``path_template`` (formatted with the key) and returns the JSON body."""

    def __init__(self, kind: str, client: httpx.AsyncClient, path_template: str) -> None:
        self._kind = kind
        self._client = client
        self.path_template = path_template

    @property
    def kind(self) -> str:
        return self._kind

    async def lookup(self, key: str) -> dict[str, Any]:
        path = self.path_template.format(key=quote(key, safe=""))
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as exc:
            raise LookupFailedError(self._kind, key, f"transport error: {exc}") from exc

        if response.status_code == 404:
            raise LookupFailedError(self._kind, key, "not found")
        if response.status_code >= 400:
            raise LookupFailedError(
                self._kind, key, f"HTTP {response.status_code}: {response.text[:200]}"
            )

        data = response.json()
        if not isinstance(data, dict):
            raise LookupFailedError(self._kind, key, "unexpected response body")
        log.debug("lookup_fetched", kind=self._kind, key=key)
        return data
