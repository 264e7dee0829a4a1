"""Tests for WizardEngine assembly and session management."""

import pytest

from wizengine.config import EngineConfig
from wizengine.engine import WizardEngine
from wizengine.exceptions import FlowNotFoundError, SessionNotFoundError, WizardError
from wizengine.lookups.http import HttpLookup
from wizengine.persistence import FileSnapshotStore, MemorySnapshotStore
from wizengine.steps import FlowDefinition, FlowRegistry
from wizengine.submission import HttpSubmitter, MemorySubmitter


class TestFromConfig:
    async def test_memory_defaults(self) -> None:
        engine = WizardEngine.from_config(EngineConfig())
        assert isinstance(engine.store, MemorySnapshotStore)
        assert isinstance(engine.submitter, MemorySubmitter)
        assert set(engine.lookups) == {"invitation", "plan"}
        assert "landlord_registration" in engine.list_flows()

    async def test_file_store_and_backend(self, tmp_path) -> None:
        config = EngineConfig(
            storage="file",
            state_dir=str(tmp_path / "snaps"),
            backend_url="http://backend:9000",
            lookup_timeout=2.0,
        )
        engine = WizardEngine.from_config(config)
        try:
            assert isinstance(engine.store, FileSnapshotStore)
            assert isinstance(engine.submitter, HttpSubmitter)
            assert isinstance(engine.lookups["invitation"]._source, HttpLookup)
            assert engine.lookup_timeout == 2.0
        finally:
            await engine.stop()
        assert engine._http_client is None

    def test_custom_registry(self, sample_flow) -> None:
        engine = WizardEngine.from_config(EngineConfig(), registry=FlowRegistry([sample_flow]))
        assert engine.list_flows() == ["sample"]


class TestSessions:
    @pytest.fixture
    def engine(self, sample_flow, store) -> WizardEngine:
        return WizardEngine(registry=FlowRegistry([sample_flow]), store=store)

    def test_start_session_generates_id(self, engine) -> None:
        session = engine.start_session("sample")
        assert len(session.session_id) == 12
        assert engine.list_sessions() == [session.session_id]

    def test_start_session_unknown_flow(self, engine) -> None:
        with pytest.raises(FlowNotFoundError):
            engine.start_session("missing")

    def test_reopen_returns_live_session(self, engine) -> None:
        first = engine.start_session("sample", session_id="s1")
        assert engine.start_session("sample", session_id="s1") is first

    def test_reopen_with_other_flow_rejected(self, engine, sample_flow) -> None:
        engine.start_session("sample", session_id="s1")
        engine.register_flow(
            FlowDefinition(flow_id="other", steps=sample_flow.steps[:1])
        )
        with pytest.raises(WizardError, match="belongs to flow"):
            engine.start_session("other", session_id="s1")

    def test_resume_after_end_session(self, engine) -> None:
        session = engine.start_session("sample", session_id="s1")
        session.change_field("email", "anna@example.com")
        session.change_field("password", "Abcdef12")
        session.change_field("confirm_password", "Abcdef12")
        session.advance()
        engine.end_session("s1")

        resumed = engine.start_session("sample", session_id="s1")
        assert resumed is not session
        assert resumed.restored
        assert resumed.state.current_index == 1

    def test_abandon_clears_snapshot(self, engine, store) -> None:
        session = engine.start_session("sample", session_id="s1")
        session.change_field("email", "anna@example.com")
        session.change_field("password", "Abcdef12")
        session.change_field("confirm_password", "Abcdef12")
        session.advance()
        engine.end_session("s1", abandon=True)

        assert store.load("sample:s1") is None
        assert not engine.start_session("sample", session_id="s1").restored

    def test_get_unknown_session(self, engine) -> None:
        with pytest.raises(SessionNotFoundError):
            engine.get_session("ghost")
        with pytest.raises(SessionNotFoundError):
            engine.end_session("ghost")

    async def test_submit_uses_engine_submitter(self, engine) -> None:
        session = engine.start_session("sample", session_id="s1")
        session.change_field("email", "anna@example.com")
        session.change_field("password", "Abcdef12")
        session.change_field("confirm_password", "Abcdef12")
        session.advance()
        session.change_field("company_name", "Acme")
        session.advance()
        session.change_field("accept_terms", True)
        session.advance()

        result = await engine.submit("s1")
        assert result.status == "accepted"
        assert engine.submitter.payloads[0].session_id == "s1"
        assert engine.list_sessions() == []
        with pytest.raises(SessionNotFoundError):
            engine.get_session("s1")

    async def test_rejected_submit_keeps_session(self, sample_flow, store) -> None:
        engine = WizardEngine(
            registry=FlowRegistry([sample_flow]),
            store=store,
            submitter=MemorySubmitter(reject_with="Email already registered"),
        )
        session = engine.start_session("sample", session_id="s1")
        session.change_field("email", "anna@example.com")
        session.change_field("password", "Abcdef12")
        session.change_field("confirm_password", "Abcdef12")
        session.advance()
        session.change_field("company_name", "Acme")
        session.advance()
        session.change_field("accept_terms", True)
        session.advance()

        result = await engine.submit("s1")
        assert result.status == "rejected"
        assert engine.get_session("s1") is session

    async def test_context_manager_clears_sessions(self, engine) -> None:
        async with engine:
            engine.start_session("sample", session_id="s1")
        assert engine.list_sessions() == []
