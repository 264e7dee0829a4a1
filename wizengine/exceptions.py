"""Wizard engine exception hierarchy."""


class WizardError(Exception):
    """Base exception for all wizard engine errors."""


class FlowNotFoundError(WizardError):
    """Raised when a flow definition is not registered."""

    def __init__(self, flow_id: str) -> None:
        self.flow_id = flow_id
        super().__init__(f"Flow not found: {flow_id}")


class FlowDefinitionError(WizardError):
    """Raised when a flow definition is internally inconsistent."""

    def __init__(self, flow_id: str, detail: str) -> None:
        self.flow_id = flow_id
        self.detail = detail
        super().__init__(f"Invalid flow definition '{flow_id}': {detail}")


class SessionNotFoundError(WizardError):
    """Raised when a flow session id is unknown."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class UnknownLookupError(WizardError):
    """Raised when no lookup is registered for a resolution kind."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"No lookup registered for kind: {kind}")


class LookupFailedError(WizardError):
    """Raised by a lookup when the external service rejects or cannot find a key."""

    def __init__(self, kind: str, key: str, detail: str) -> None:
        self.kind = kind
        self.key = key
        self.detail = detail
        super().__init__(f"Lookup '{kind}' failed for '{key}': {detail}")


class SubmissionRejectedError(WizardError):
    """Raised by a submitter when the account backend rejects a payload."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Submission rejected: {detail}")
