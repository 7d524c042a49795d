"""Domain errors raised by the workflow services and mapped to HTTP responses in main.py."""


class WorkflowError(Exception):
    """Base exception for leasing workflow failures."""

    status_code = 400


class InvalidTransitionError(WorkflowError):
    """Raised when an application status change is not in the transition table."""

    status_code = 409

    def __init__(self, current: str, event: str):
        self.current = current
        self.event = event
        super().__init__(f"Cannot apply '{event}' to an application in status '{current}'")


class PermissionDeniedError(WorkflowError):
    """Raised when the acting user may not perform the workflow action."""

    status_code = 403


class ConflictError(WorkflowError):
    """Raised when the request conflicts with stored state (e.g. duplicate username)."""

    status_code = 409
