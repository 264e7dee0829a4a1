"""WizFlow client models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class StepInfo(BaseModel):
    """Outline of one step of a flow."""

    step_id: str
    title: str | None = None
    fields: list[str] = []
    skippable: bool = False
    skip_field: str | None = None


class InterstitialInfo(BaseModel):
    title: str | None = None
    message: str


class FlowInfo(BaseModel):
    """Flow metadata."""

    flow_id: str
    title: str | None = None
    step_count: int = 0
    steps: list[StepInfo] = []
    defaults: dict[str, Any] = {}
    selection_field: str | None = None
    recommends: bool = False
    tiers: list[str] = []
    interstitials: dict[str, InterstitialInfo] = {}
    lookups: list[str] = []


class StepProgress(BaseModel):
    """Progress indicator entry for one step."""

    step_id: str
    index: int
    title: str | None = None
    completed: bool = False
    active: bool = False
    clickable: bool = False
    has_errors: bool = False
    locked: bool = False


class LookupState(BaseModel):
    request_id: int
    kind: str
    key: str
    status: str  # pending | resolved | stale | failed
    payload: dict[str, Any] = {}
    error: str | None = None


class TransitionInfo(BaseModel):
    """Outcome of the last event applied to a session."""

    status: str
    step_id: str
    current_index: int
    errors: dict[str, str] = {}
    reason: str | None = None
    interstitial_id: str | None = None


class SessionState(BaseModel):
    """Rendered state of a flow session."""

    session_id: str
    flow_id: str
    current_index: int
    current_step: str
    steps: list[StepProgress] = []
    values: dict[str, Any] = {}
    errors: dict[str, dict[str, str]] = {}
    interstitial: str | None = None
    resolutions: dict[str, LookupState] = {}
    recommended_tier: str | None = None
    selected_tier: str | None = None
    ai_assistant: bool = False
    submit_ready: bool = False
    progress: float = 0.0
    last_transition: TransitionInfo | None = None

    @property
    def current_errors(self) -> dict[str, str]:
        return self.errors.get(self.current_step, {})


class SubmissionOutcome(BaseModel):
    """Result of submitting a session."""

    status: str  # accepted | rejected | not_ready
    error: str | None = None
    payload: dict[str, Any] | None = None
    session: SessionState
