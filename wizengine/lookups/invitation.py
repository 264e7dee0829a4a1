"""Tenant invitation lookup."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from wizengine.exceptions import LookupFailedError
from wizengine.lookups import BaseLookup


class InvitationLookup(BaseLookup):
    """Validates an invitation code and flattens the invitation record.

    ``source`` fetches the raw backend record for a code (an ``HttpLookup``
    against the invitations endpoint, or a ``MemoryLookup`` locally). Only
    pending, unexpired invitations resolve; the payload carries the invited
    email plus landlord and property details for display.
    """

    kind = "invitation"

    def __init__(self, source: BaseLookup) -> None:
        self._source = source

    async def lookup(self, key: str) -> dict[str, Any]:
        code = key.strip()
        if not code:
            raise LookupFailedError(self.kind, key, "empty invitation code")

        record = await self._source.lookup(code)

        status = record.get("status", "pending")
        if status != "pending":
            raise LookupFailedError(self.kind, code, f"invitation is {status}")
        expires_at = _parse_datetime(record.get("expires_at"))
        if expires_at is not None and expires_at <= datetime.now(tz=timezone.utc):
            raise LookupFailedError(self.kind, code, "invitation has expired")

        inviter = record.get("invited_by") or {}
        unit = record.get("unit") or {}
        property_ = unit.get("property") or {}
        return {
            "code": code,
            "email": record.get("email") or "",
            "landlord_name": inviter.get("full_name") or "Unknown",
            "landlord_email": inviter.get("email") or "",
            "property_address": (
                f"{property_.get('name') or 'Property'} - {unit.get('name') or 'Unit'}"
            ),
        }


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
