"""WizFlow Engine: guided multi-step onboarding flows."""

from wizengine.config import EngineConfig
from wizengine.engine import WizardEngine
from wizengine.exceptions import (
    FlowDefinitionError,
    FlowNotFoundError,
    LookupFailedError,
    SessionNotFoundError,
    SubmissionRejectedError,
    UnknownLookupError,
    WizardError,
)
from wizengine.models import (
    ExternalResolution,
    FlowSnapshot,
    GuardDecision,
    InterstitialChoice,
    ResolutionStatus,
    SessionView,
    SubmissionPayload,
    SubmissionResult,
    TransitionResult,
)
from wizengine.session import FlowSession
from wizengine.steps import FlowDefinition, FlowRegistry, StepDefinition

__version__ = "0.1.0"

__all__ = [
    "EngineConfig",
    "ExternalResolution",
    "FlowDefinition",
    "FlowDefinitionError",
    "FlowNotFoundError",
    "FlowRegistry",
    "FlowSession",
    "FlowSnapshot",
    "GuardDecision",
    "InterstitialChoice",
    "LookupFailedError",
    "ResolutionStatus",
    "SessionNotFoundError",
    "SessionView",
    "StepDefinition",
    "SubmissionPayload",
    "SubmissionResult",
    "SubmissionRejectedError",
    "TransitionResult",
    "UnknownLookupError",
    "WizardEngine",
    "WizardError",
    "__version__",
]
