"""Error taxonomy for the planner backend.

Each class maps to one response class in the HTTP API so that callers
can tell bad input, bad credentials and an unavailable store apart.
"""


class PlannerError(Exception):
    """Base class for all planner errors."""


class ConfigurationError(PlannerError):
    """A required setting is missing. Raised before any request is served."""


class ClientInputError(PlannerError):
    """Malformed request: missing field, wrong shape or unknown action."""


class AuthenticationError(PlannerError):
    """initData did not verify. Carries no detail on purpose."""

    def __init__(self, message: str = "invalid credentials"):
        super().__init__(message)


class StorageError(PlannerError):
    """The backing table store was unreachable or rejected the call."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
