"""WizFlow: Python client library for guided onboarding flows."""

from wizflow.client import WizFlow
from wizflow.exceptions import (
    ConnectionError,
    FlowNotFoundError,
    SessionNotFoundError,
    TimeoutError,
    WizFlowClientError,
)
from wizflow.models import FlowInfo, SessionState, StepProgress, SubmissionOutcome
from wizflow.sync_client import WizFlowSync

__version__ = "0.1.0"

__all__ = [
    "ConnectionError",
    "FlowInfo",
    "FlowNotFoundError",
    "SessionNotFoundError",
    "SessionState",
    "StepProgress",
    "SubmissionOutcome",
    "TimeoutError",
    "WizFlow",
    "WizFlowClientError",
    "WizFlowSync",
    "__version__",
]
