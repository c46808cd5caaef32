"""Error taxonomy shared by the workflow helpers and the routers.

Every error carries the HTTP status it maps to; the app turns them into
``{"error": message}`` responses.
"""


class SafeWatchError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SafeWatchError):
    """Missing or malformed input, e.g. empty remarks."""
    status_code = 400


class StateTransitionError(ValidationError):
    """The requested status change is not allowed from the current state."""
    status_code = 409


class AuthorizationError(SafeWatchError):
    """Self-verification or insufficient role."""
    status_code = 403


class NotFoundError(SafeWatchError):
    status_code = 404


class StorageError(SafeWatchError):
    status_code = 500
