"""All Pydantic models for the wizard engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

ErrorMap = dict[str, str]


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# --- Guards and interstitials ---


class GuardAction(str, Enum):
    """Outcome of a step guard."""

    PROCEED = "proceed"
    BLOCK = "block"
    INTERSTITIAL = "interstitial"


class GuardDecision(BaseModel):
    """Decision returned by a step guard before a forward transition."""

    action: GuardAction
    reason: str | None = None
    interstitial_id: str | None = None

    @model_validator(mode="after")
    def _check_action_payload(self) -> GuardDecision:
        if self.action == GuardAction.BLOCK and not self.reason:
            raise ValueError("a blocking guard decision needs a user-facing reason")
        if self.action == GuardAction.INTERSTITIAL and not self.interstitial_id:
            raise ValueError("an interstitial guard decision needs an interstitial id")
        return self

    @classmethod
    def proceed(cls) -> GuardDecision:
        return cls(action=GuardAction.PROCEED)

    @classmethod
    def block(cls, reason: str) -> GuardDecision:
        return cls(action=GuardAction.BLOCK, reason=reason)

    @classmethod
    def interstitial(cls, step_id: str, reason: str | None = None) -> GuardDecision:
        return cls(
            action=GuardAction.INTERSTITIAL, interstitial_id=step_id, reason=reason
        )


class InterstitialChoice(str, Enum):
    """User decision on a pending interstitial."""

    CONTINUE = "continue"
    RETURN = "return"


# --- External resolution ---


class ResolutionStatus(str, Enum):
    """Lifecycle of an external lookup."""

    PENDING = "pending"
    RESOLVED = "resolved"
    STALE = "stale"
    FAILED = "failed"


class ExternalResolution(BaseModel):
    """Result of an asynchronous lookup, tagged with the request that issued it."""

    request_id: int
    kind: str
    key: str
    status: ResolutionStatus = ResolutionStatus.PENDING
    payload: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None


# --- Persistence ---


class FlowSnapshot(BaseModel):
    """Serializable subset of a flow session's state."""

    flow_id: str
    current_index: int = Field(default=0, ge=0)
    values: dict[str, Any] = Field(default_factory=dict)
    visited: set[str] = Field(default_factory=set)
    saved_at: datetime = Field(default_factory=_utcnow)


# --- Transitions and session views ---


TransitionStatus = Literal[
    "advanced",
    "stayed",
    "blocked",
    "interstitial",
    "retreated",
    "jumped",
    "ready",
    "changed",
    "ignored",
]


class TransitionResult(BaseModel):
    """Outcome of one event processed by the step sequencer."""

    status: TransitionStatus
    step_id: str
    current_index: int
    errors: ErrorMap = Field(default_factory=dict)
    reason: str | None = None
    interstitial_id: str | None = None


class StepStatus(BaseModel):
    """Per-step progress information for the presentation layer."""

    step_id: str
    index: int
    title: str | None = None
    completed: bool = False
    active: bool = False
    clickable: bool = False
    has_errors: bool = False
    locked: bool = False


class SessionView(BaseModel):
    """Read-only rendering of a flow session."""

    session_id: str
    flow_id: str
    current_index: int
    current_step: str
    steps: list[StepStatus]
    values: dict[str, Any]
    errors: dict[str, ErrorMap]
    interstitial: str | None = None
    resolutions: dict[str, ExternalResolution] = Field(default_factory=dict)
    recommended_tier: str | None = None
    selected_tier: str | None = None
    ai_assistant: bool = False
    submit_ready: bool = False
    progress: float = Field(default=0.0, ge=0, le=100)
    last_transition: TransitionResult | None = None


# --- Submission ---


class SubmissionPayload(BaseModel):
    """Assembled payload handed to the account-creation backend."""

    flow_id: str
    session_id: str
    values: dict[str, Any]
    recommended_tier: str | None = None
    selected_tier: str | None = None
    tier_overridden: bool = False
    skipped_steps: list[str] = Field(default_factory=list)
    lookups: dict[str, dict[str, Any]] = Field(default_factory=dict)
    submitted_at: datetime = Field(default_factory=_utcnow)


class SubmissionResult(BaseModel):
    """Outcome of a submission attempt."""

    status: Literal["accepted", "rejected", "not_ready"]
    error: str | None = None
    payload: SubmissionPayload | None = None


# --- Plans and passwords ---


class PlanTier(BaseModel):
    """A subscription tier."""

    id: str
    name: str
    price: int = Field(ge=0)
    property_limit: int | None = None
    ai_enabled: bool = False
    features: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class PasswordStrength(BaseModel):
    """Password strength score with the criteria still missing."""

    score: int = Field(ge=0, le=100)
    label: Literal["empty", "weak", "fair", "strong", "very_strong"]
    missing: list[str] = Field(default_factory=list)
