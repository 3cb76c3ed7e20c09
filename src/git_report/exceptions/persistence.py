"""Report store failures."""

from .base import GitReportError


class PersistenceError(GitReportError):
    """Raised when a write transaction fails and has been rolled back."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Failed to {operation}", details={"operation": operation, "reason": reason}
        )
        self.operation = operation
        self.reason = reason
