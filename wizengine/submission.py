"""Account-creation collaborators that receive finished flow payloads."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from wizengine.exceptions import SubmissionRejectedError
from wizengine.logger import get_logger
from wizengine.models import SubmissionPayload

log = get_logger(__name__)


class BaseSubmitter(ABC):
    """Receives a submission payload; raises ``SubmissionRejectedError`` on refusal."""

    @abstractmethod
    async def submit(self, payload: SubmissionPayload) -> dict[str, Any]:
        """Create the account and return the backend's response body."""


class MemorySubmitter(BaseSubmitter):
    """Records payloads in memory; optionally rejects every submission."""

    def __init__(self, reject_with: str | None = None) -> None:
        self.reject_with = reject_with
        self.payloads: list[SubmissionPayload] = []

    async def submit(self, payload: SubmissionPayload) -> dict[str, Any]:
        if self.reject_with is not None:
            raise SubmissionRejectedError(self.reject_with)
        self.payloads.append(payload)
        return {"id": f"acct-{len(self.payloads)}", "flow_id": payload.flow_id}


class HttpSubmitter(BaseSubmitter):
    """POSTs the payload as JSON to the account backend."""

    def __init__(self, client: httpx.AsyncClient, path: str = "/api/registrations") -> None:
        self._client = client
        self.path = path

    async def submit(self, payload: SubmissionPayload) -> dict[str, Any]:
        try:
            response = await self._client.post(self.path, json=payload.model_dump(mode="json"))
        except httpx.HTTPError as exc:
            raise SubmissionRejectedError(f"Account service unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise SubmissionRejectedError(_error_detail(response))

        log.info("submission_delivered", flow_id=payload.flow_id, status=response.status_code)
        if not response.content:
            return {}
        body = response.json()
        return body if isinstance(body, dict) else {"result": body}


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"
