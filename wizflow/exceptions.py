"""WizFlow client exceptions."""


class WizFlowClientError(Exception):
    """Base exception for all WizFlow client errors."""


class ConnectionError(WizFlowClientError):
    """Raised when the client cannot connect to the portal server."""

    def __init__(self, url: str, detail: str = "") -> None:
        self.url = url
        msg = f"Cannot connect to {url}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class FlowNotFoundError(WizFlowClientError):
    """Raised when a requested flow does not exist."""

    def __init__(self, flow_id: str) -> None:
        self.flow_id = flow_id
        super().__init__(f"Flow not found: {flow_id}")


class SessionNotFoundError(WizFlowClientError):
    """Raised when a session id is unknown to the engine or server."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class TimeoutError(WizFlowClientError):
    """Raised when a request to the portal server times out."""

    def __init__(self, detail: str = "Operation timed out") -> None:
        super().__init__(detail)
