"""Synchronous wrapper around WizFlow for scripts."""

from __future__ import annotations

import asyncio
from typing import Any

from wizflow.client import WizFlow
from wizflow.models import FlowInfo, SessionState, SubmissionOutcome


class WizFlowSync:
    """Synchronous wrapper around WizFlow for use in scripts.

    Every call runs on a private event loop owned by this wrapper.
    """

    def __init__(self, **kwargs: Any) -> None:
        self._kwargs = kwargs
        self._client: WizFlow | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._start()

    def _start(self) -> None:
        self._loop = asyncio.new_event_loop()
        self._client = WizFlow(**self._kwargs)
        self._loop.run_until_complete(self._client.start())

    def _run(self, coro: Any) -> Any:
        assert self._loop is not None
        return self._loop.run_until_complete(coro)

    def list_flows(self) -> list[str]:
        return self._run(self._client.list_flows())

    def get_flow(self, flow_id: str) -> FlowInfo:
        return self._run(self._client.get_flow(flow_id))

    def start_session(self, flow_id: str, session_id: str | None = None) -> SessionState:
        return self._run(self._client.start_session(flow_id, session_id=session_id))

    def get_session(self, session_id: str) -> SessionState:
        return self._run(self._client.get_session(session_id))

    def set_field(
        self, session_id: str, key: str, value: Any, step_id: str | None = None
    ) -> SessionState:
        return self._run(self._client.set_field(session_id, key, value, step_id=step_id))

    def fill(self, session_id: str, **values: Any) -> SessionState:
        return self._run(self._client.fill(session_id, **values))

    def advance(self, session_id: str) -> SessionState:
        return self._run(self._client.advance(session_id))

    def retreat(self, session_id: str) -> SessionState:
        return self._run(self._client.retreat(session_id))

    def jump(self, session_id: str, index: int) -> SessionState:
        return self._run(self._client.jump(session_id, index))

    def choose(self, session_id: str, choice: str) -> SessionState:
        return self._run(self._client.choose(session_id, choice))

    def lookup(self, session_id: str, kind: str, key: str) -> SessionState:
        return self._run(self._client.lookup(session_id, kind, key))

    def submit(self, session_id: str) -> SubmissionOutcome:
        return self._run(self._client.submit(session_id))

    def end_session(self, session_id: str, abandon: bool = False) -> None:
        self._run(self._client.end_session(session_id, abandon=abandon))

    def close(self) -> None:
        """Shut down the client and event loop."""
        if self._client and self._loop:
            self._loop.run_until_complete(self._client.stop())
            self._loop.close()
            self._loop = None
            self._client = None

    def __enter__(self) -> WizFlowSync:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
