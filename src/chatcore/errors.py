# errors.py

class ChatError(Exception):
    """Base class for all chat core errors."""
    pass


class ValidationError(ChatError):
    """Raised when a submit is rejected before any request is made."""
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field or "input"


class SessionNotFound(ChatError):
    """Raised when an operation targets a session id that no longer exists."""
    def __init__(self, session_id: int):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class LastSessionError(ChatError):
    """Raised when deleting the only remaining session."""
    def __init__(self, session_id: int):
        super().__init__("Cannot delete the last remaining session")
        self.session_id = session_id


class TransportError(ChatError):
    """Raised when the inference server cannot be reached or answers with an error.

    kind is one of: connection_refused | cors | network | http_status | protocol
    """
    def __init__(self, message: str, kind: str = "network", status: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.status = status
