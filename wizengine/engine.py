"""WizardEngine: main entry point for running guided flows."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any

import httpx

from wizengine.config import EngineConfig
from wizengine.exceptions import SessionNotFoundError, WizardError
from wizengine.logger import get_logger
from wizengine.lookups import BaseLookup
from wizengine.lookups.http import HttpLookup
from wizengine.lookups.invitation import InvitationLookup
from wizengine.lookups.memory import MemoryLookup
from wizengine.lookups.plan import PlanLookup
from wizengine.models import SubmissionResult
from wizengine.persistence import FileSnapshotStore, MemorySnapshotStore, SnapshotStore
from wizengine.resolver import ExternalResolver
from wizengine.session import FlowSession
from wizengine.steps import FlowDefinition, FlowRegistry
from wizengine.submission import BaseSubmitter, HttpSubmitter, MemorySubmitter

log = get_logger(__name__)


class WizardEngine:
    """Main entry point for flow sessions.

    Holds the flow registry and the collaborators shared by every session:
    the snapshot store, the external lookups and the account submitter.
    """

    def __init__(
        self,
        registry: FlowRegistry | None = None,
        store: SnapshotStore | None = None,
        lookups: Iterable[BaseLookup] | None = None,
        submitter: BaseSubmitter | None = None,
        lookup_timeout: float = 5.0,
        submit_timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if registry is None:
            from wizengine.flows import default_registry

            registry = default_registry()
        self.registry = registry
        self.store = store or MemorySnapshotStore()
        self.lookups: dict[str, BaseLookup] = {
            lookup.kind: lookup for lookup in (lookups if lookups is not None else _local_lookups())
        }
        self.submitter = submitter or MemorySubmitter()
        self.lookup_timeout = lookup_timeout
        self.submit_timeout = submit_timeout

        # Client created by from_config; closed on stop()
        self._http_client = http_client
        self._sessions: dict[str, FlowSession] = {}

    @classmethod
    def from_config(
        cls, config: EngineConfig | None = None, registry: FlowRegistry | None = None
    ) -> WizardEngine:
        """Assemble store, lookups and submitter from configuration."""
        config = config or EngineConfig.from_env()

        store: SnapshotStore
        if config.storage == "file":
            store = FileSnapshotStore(config.state_dir)
        else:
            store = MemorySnapshotStore()

        client: httpx.AsyncClient | None = None
        submitter: BaseSubmitter
        lookups: list[BaseLookup]
        if config.backend_url:
            client = httpx.AsyncClient(
                base_url=config.backend_url,
                timeout=max(config.lookup_timeout, config.submit_timeout),
            )
            lookups = [
                InvitationLookup(HttpLookup("invitation", client, "/api/invitations/{key}")),
                PlanLookup(),
            ]
            submitter = HttpSubmitter(client)
        else:
            lookups = _local_lookups()
            submitter = MemorySubmitter()

        log.info(
            "engine_configured",
            storage=config.storage,
            backend=config.backend_url or "memory",
        )
        return cls(
            registry=registry,
            store=store,
            lookups=lookups,
            submitter=submitter,
            lookup_timeout=config.lookup_timeout,
            submit_timeout=config.submit_timeout,
            http_client=client,
        )

    # --- Lifecycle ---

    async def start(self) -> None:
        log.info("engine_started", flows=len(self.registry))

    async def stop(self) -> None:
        """Drop live sessions and close any owned HTTP client."""
        self._sessions.clear()
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
        log.info("engine_stopped")

    async def __aenter__(self) -> WizardEngine:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    # --- Flows ---

    def list_flows(self) -> list[str]:
        return self.registry.list()

    def get_flow(self, flow_id: str) -> FlowDefinition:
        return self.registry.get(flow_id)

    def register_flow(self, definition: FlowDefinition) -> None:
        self.registry.register(definition)

    # --- Sessions ---

    def start_session(self, flow_id: str, session_id: str | None = None) -> FlowSession:
        """Open a session, resuming from a stored snapshot when one exists.

        Re-opening a live session id for the same flow returns that session.
        """
        definition = self.registry.get(flow_id)
        session_id = session_id or uuid.uuid4().hex[:12]

        existing = self._sessions.get(session_id)
        if existing is not None:
            if existing.definition.flow_id != flow_id:
                raise WizardError(
                    f"Session '{session_id}' belongs to flow '{existing.definition.flow_id}'"
                )
            return existing

        session = FlowSession(
            definition,
            session_id,
            store=self.store,
            resolver=ExternalResolver(self.lookups.values(), timeout=self.lookup_timeout),
            submit_timeout=self.submit_timeout,
        )
        self._sessions[session_id] = session
        log.info(
            "session_started",
            flow_id=flow_id,
            session_id=session_id,
            restored=session.restored,
        )
        return session

    def get_session(self, session_id: str) -> FlowSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def list_sessions(self) -> list[str]:
        return list(self._sessions)

    def end_session(self, session_id: str, abandon: bool = False) -> None:
        """Forget a live session; with ``abandon`` its snapshot is cleared too."""
        session = self.get_session(session_id)
        if abandon:
            session.abandon()
        del self._sessions[session_id]
        log.info("session_ended", session_id=session_id, abandoned=abandon)

    async def submit(self, session_id: str) -> SubmissionResult:
        """Submit a live session; an accepted session is no longer tracked."""
        session = self.get_session(session_id)
        result = await session.submit(self.submitter)
        if result.status == "accepted":
            self._sessions.pop(session_id, None)
            log.info("session_finished", flow_id=session.definition.flow_id, session_id=session_id)
        return result


def _local_lookups() -> list[BaseLookup]:
    return [InvitationLookup(MemoryLookup("invitation")), PlanLookup()]
