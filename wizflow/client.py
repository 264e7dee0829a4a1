"""WizFlow client: drive flow sessions locally or via a portal server."""

from __future__ import annotations

from typing import Any

import httpx

from wizflow.exceptions import (
    ConnectionError,
    FlowNotFoundError,
    SessionNotFoundError,
    TimeoutError,
    WizFlowClientError,
)
from wizflow.models import FlowInfo, SessionState, SubmissionOutcome


class WizFlow:
    """WizFlow client for onboarding flow sessions.

    Use ``local=True`` for local mode (embeds WizardEngine in-process) or
    ``server`` for remote mode (talks to the portal server's HTTP API).
    """

    def __init__(
        self,
        *,
        local: bool = False,
        server: str | None = None,
        config: Any = None,
        timeout: float = 30.0,
    ) -> None:
        if not local and not server:
            raise WizFlowClientError("Provide either local=True or server (remote)")
        if local and server:
            raise WizFlowClientError("Provide local=True or server, not both")

        self._local = local
        self._server = server.rstrip("/") if server else None
        self._config = config
        self._timeout = timeout

        # Local mode state
        self._engine: Any = None

        # Remote mode state
        self._http: httpx.AsyncClient | None = None

    # --- Lifecycle ---

    async def start(self) -> None:
        """Initialize the client (start engine or HTTP session)."""
        if self._local:
            await self._start_local()
        else:
            self._http = httpx.AsyncClient(base_url=self._server, timeout=self._timeout)

    async def stop(self) -> None:
        """Shut down the client."""
        if self._engine:
            await self._engine.stop()
            self._engine = None
        if self._http:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> WizFlow:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    # --- Flows ---

    async def list_flows(self) -> list[str]:
        """List all available flow IDs."""
        if self._engine:
            return self._engine.list_flows()
        resp = await self._request("GET", "/api/flows")
        return [f["flow_id"] for f in resp.json()]

    async def get_flow(self, flow_id: str) -> FlowInfo:
        """Get the outline of a specific flow."""
        if self._engine:
            return FlowInfo.model_validate(self._local_call(self._engine.get_flow, flow_id).describe())
        resp = await self._request(
            "GET", f"/api/flows/{flow_id}", not_found=FlowNotFoundError(flow_id)
        )
        return FlowInfo.model_validate(resp.json())

    # --- Sessions ---

    async def start_session(self, flow_id: str, session_id: str | None = None) -> SessionState:
        """Open a session; an existing snapshot for ``session_id`` is resumed."""
        if self._engine:
            session = self._local_call(self._engine.start_session, flow_id, session_id=session_id)
            return self._state(session)
        resp = await self._request(
            "POST",
            "/api/sessions",
            json={"flow_id": flow_id, "session_id": session_id},
            not_found=FlowNotFoundError(flow_id),
        )
        return SessionState.model_validate(resp.json())

    async def get_session(self, session_id: str) -> SessionState:
        if self._engine:
            return self._state(self._local_session(session_id))
        return await self._session_call("GET", session_id, "")

    async def set_field(
        self, session_id: str, key: str, value: Any, step_id: str | None = None
    ) -> SessionState:
        if self._engine:
            session = self._local_session(session_id)
            session.change_field(key, value, step_id=step_id)
            return self._state(session)
        return await self._session_call(
            "POST", session_id, "/fields", json={"key": key, "value": value, "step_id": step_id}
        )

    async def fill(self, session_id: str, **values: Any) -> SessionState:
        """Set several fields in order and return the resulting state."""
        state = await self.get_session(session_id)
        for key, value in values.items():
            state = await self.set_field(session_id, key, value)
        return state

    async def advance(self, session_id: str) -> SessionState:
        if self._engine:
            session = self._local_session(session_id)
            session.advance()
            return self._state(session)
        return await self._session_call("POST", session_id, "/advance")

    async def retreat(self, session_id: str) -> SessionState:
        if self._engine:
            session = self._local_session(session_id)
            session.retreat()
            return self._state(session)
        return await self._session_call("POST", session_id, "/retreat")

    async def jump(self, session_id: str, index: int) -> SessionState:
        if self._engine:
            session = self._local_session(session_id)
            session.jump(index)
            return self._state(session)
        return await self._session_call("POST", session_id, "/jump", json={"index": index})

    async def choose(self, session_id: str, choice: str) -> SessionState:
        """Answer a pending interstitial with ``continue`` or ``return``."""
        if self._engine:
            session = self._local_session(session_id)
            try:
                session.resolve_interstitial(choice)
            except ValueError:
                raise WizFlowClientError(f"Unknown interstitial choice: {choice}")
            return self._state(session)
        return await self._session_call("POST", session_id, "/interstitial", json={"choice": choice})

    async def lookup(self, session_id: str, kind: str, key: str) -> SessionState:
        if self._engine:
            from wizengine.exceptions import UnknownLookupError

            session = self._local_session(session_id)
            try:
                await session.lookup(kind, key)
            except UnknownLookupError as exc:
                raise WizFlowClientError(str(exc))
            return self._state(session)
        return await self._session_call(
            "POST", session_id, "/lookup", json={"kind": kind, "key": key}
        )

    async def submit(self, session_id: str) -> SubmissionOutcome:
        if self._engine:
            session = self._local_session(session_id)
            result = await self._engine.submit(session_id)
            data = result.model_dump(mode="json")
            return SubmissionOutcome(**data, session=self._state(session))
        resp = await self._request(
            "POST",
            f"/api/sessions/{session_id}/submit",
            not_found=SessionNotFoundError(session_id),
        )
        data = resp.json()
        return SubmissionOutcome(**data["result"], session=SessionState.model_validate(data["session"]))

    async def end_session(self, session_id: str, abandon: bool = False) -> None:
        """Close a session; ``abandon`` also discards its saved progress."""
        if self._engine:
            self._local_session(session_id)
            self._engine.end_session(session_id, abandon=abandon)
            return
        await self._request(
            "DELETE",
            f"/api/sessions/{session_id}",
            params={"abandon": "true" if abandon else "false"},
            not_found=SessionNotFoundError(session_id),
        )

    # --- Local mode ---

    async def _start_local(self) -> None:
        """Start the embedded WizardEngine."""
        from wizengine.config import EngineConfig
        from wizengine.engine import WizardEngine

        self._engine = WizardEngine.from_config(self._config or EngineConfig())
        await self._engine.start()

    @staticmethod
    def _local_call(fn: Any, *args: Any, **kwargs: Any) -> Any:
        from wizengine.exceptions import FlowNotFoundError as EngineFlowNotFound
        from wizengine.exceptions import WizardError

        try:
            return fn(*args, **kwargs)
        except EngineFlowNotFound as exc:
            raise FlowNotFoundError(exc.flow_id)
        except WizardError as exc:
            raise WizFlowClientError(str(exc))

    def _local_session(self, session_id: str) -> Any:
        from wizengine.exceptions import SessionNotFoundError as EngineSessionNotFound

        try:
            return self._engine.get_session(session_id)
        except EngineSessionNotFound:
            raise SessionNotFoundError(session_id)

    @staticmethod
    def _state(session: Any) -> SessionState:
        return SessionState.model_validate(session.view().model_dump(mode="json"))

    # --- Remote mode ---

    async def _request(
        self,
        method: str,
        path: str,
        not_found: WizFlowClientError | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an HTTP request with error handling."""
        assert self._http is not None
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.ConnectError as exc:
            raise ConnectionError(self._server, str(exc))
        except httpx.TimeoutException:
            raise TimeoutError(f"Request to {self._server}{path} timed out")

        if resp.status_code == 404:
            raise not_found or FlowNotFoundError(path.split("/")[-1])
        if resp.status_code >= 400:
            detail = resp.text
            raise WizFlowClientError(f"Server error {resp.status_code}: {detail}")
        return resp

    async def _session_call(
        self, method: str, session_id: str, suffix: str, **kwargs: Any
    ) -> SessionState:
        resp = await self._request(
            method,
            f"/api/sessions/{session_id}{suffix}",
            not_found=SessionNotFoundError(session_id),
            **kwargs,
        )
        return SessionState.model_validate(resp.json())
