"""Portal server: FastAPI app exposing flow sessions over HTTP.

A presentation layer (web form, mobile app) drives a session through these
endpoints; every session endpoint answers with the rendered session view.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from wizengine.config import EngineConfig
from wizengine.engine import WizardEngine
from wizengine.exceptions import (
    FlowNotFoundError,
    SessionNotFoundError,
    UnknownLookupError,
    WizardError,
)
from wizengine.logger import configure_logging, get_logger
from wizengine.models import InterstitialChoice
from wizengine.plans import PRICING_PLANS
from wizengine.session import FlowSession
from wizengine.validation.strength import password_strength

log = get_logger(__name__)

# --- Engine state ---

_engine: WizardEngine | None = None


def get_engine() -> WizardEngine:
    """Return the shared engine, building it from the environment on first use."""
    global _engine
    if _engine is None:
        _engine = WizardEngine.from_config(EngineConfig.from_env())
    return _engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the engine on startup, stop it on shutdown."""
    engine = get_engine()
    await engine.start()
    yield
    await engine.stop()


app = FastAPI(title="WizFlow Portal", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request models ---


class StartSessionRequest(BaseModel):
    flow_id: str
    session_id: str | None = None


class FieldChangeRequest(BaseModel):
    key: str
    value: Any = None
    step_id: str | None = None


class JumpRequest(BaseModel):
    index: int


class InterstitialRequest(BaseModel):
    choice: InterstitialChoice


class LookupRequest(BaseModel):
    kind: str
    key: str


class PasswordRequest(BaseModel):
    password: str = ""


# --- Helpers ---


def _session(session_id: str) -> FlowSession:
    try:
        return get_engine().get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


def _view(session: FlowSession) -> dict[str, Any]:
    return session.view().model_dump(mode="json")


# --- Flow endpoints ---


@app.get("/api/flows")
async def list_flows() -> list[dict[str, Any]]:
    """List every registered flow."""
    engine = get_engine()
    return [engine.get_flow(flow_id).describe() for flow_id in engine.list_flows()]


@app.get("/api/flows/{flow_id}")
async def get_flow(flow_id: str) -> dict[str, Any]:
    try:
        definition = get_engine().get_flow(flow_id)
    except FlowNotFoundError:
        raise HTTPException(status_code=404, detail=f"Flow '{flow_id}' not found")
    return definition.describe()


@app.get("/api/plans")
async def list_plans() -> list[dict[str, Any]]:
    return [plan.model_dump() for plan in PRICING_PLANS]


@app.post("/api/password-strength")
async def check_password(req: PasswordRequest) -> dict[str, Any]:
    return password_strength(req.password).model_dump()


# --- Session endpoints ---


@app.post("/api/sessions")
async def start_session(req: StartSessionRequest) -> dict[str, Any]:
    """Open a session, resuming it when a snapshot exists for its id."""
    try:
        session = get_engine().start_session(req.flow_id, session_id=req.session_id)
    except FlowNotFoundError:
        raise HTTPException(status_code=404, detail=f"Flow '{req.flow_id}' not found")
    except WizardError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _view(session)


@app.get("/api/sessions/{session_id}")
async def get_session(session_id: str) -> dict[str, Any]:
    return _view(_session(session_id))


@app.post("/api/sessions/{session_id}/fields")
async def change_field(session_id: str, req: FieldChangeRequest) -> dict[str, Any]:
    session = _session(session_id)
    session.change_field(req.key, req.value, step_id=req.step_id)
    return _view(session)


@app.post("/api/sessions/{session_id}/advance")
async def advance(session_id: str) -> dict[str, Any]:
    session = _session(session_id)
    session.advance()
    return _view(session)


@app.post("/api/sessions/{session_id}/retreat")
async def retreat(session_id: str) -> dict[str, Any]:
    session = _session(session_id)
    session.retreat()
    return _view(session)


@app.post("/api/sessions/{session_id}/jump")
async def jump(session_id: str, req: JumpRequest) -> dict[str, Any]:
    session = _session(session_id)
    session.jump(req.index)
    return _view(session)


@app.post("/api/sessions/{session_id}/interstitial")
async def resolve_interstitial(session_id: str, req: InterstitialRequest) -> dict[str, Any]:
    session = _session(session_id)
    session.resolve_interstitial(req.choice)
    return _view(session)


@app.post("/api/sessions/{session_id}/lookup")
async def lookup(session_id: str, req: LookupRequest) -> dict[str, Any]:
    session = _session(session_id)
    try:
        await session.lookup(req.kind, req.key)
    except UnknownLookupError:
        raise HTTPException(status_code=400, detail=f"Unknown lookup kind '{req.kind}'")
    return _view(session)


@app.post("/api/sessions/{session_id}/submit")
async def submit(session_id: str) -> dict[str, Any]:
    session = _session(session_id)
    result = await get_engine().submit(session_id)
    return {"result": result.model_dump(mode="json"), "session": _view(session)}


@app.delete("/api/sessions/{session_id}")
async def end_session(session_id: str, abandon: bool = False) -> dict[str, str]:
    """Close a live session; ``abandon=true`` also discards its saved progress."""
    _session(session_id)
    get_engine().end_session(session_id, abandon=abandon)
    return {"status": "abandoned" if abandon else "closed", "session_id": session_id}


def main() -> None:
    """Run the portal server."""
    config = EngineConfig.from_env()
    configure_logging(level=config.log_level, json=config.log_json)
    port = config.portal_port
    uvicorn.run(app, host="0.0.0.0", port=port, loop="asyncio")


if __name__ == "__main__":
    main()
