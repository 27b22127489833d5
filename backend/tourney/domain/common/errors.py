"""Domain error types."""


class DomainError(Exception):
    """Base domain error."""
    pass


class NotFoundError(DomainError):
    """Resource not found."""
    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with id {identifier} not found")


class ValidationError(DomainError):
    """Validation error."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthorizationError(DomainError):
    """Authorization error."""
    def __init__(self, message: str = "Not authorized"):
        self.message = message
        super().__init__(message)


class StoreUnavailableError(DomainError):
    """Persistence I/O failed (connectivity, timeout, driver error)."""
    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Notification store failed during {operation}: {cause}")


class ConnectionAlreadyBoundError(DomainError):
    """A live connection is already bound to a different user."""
    def __init__(self, bound_user_id: str, requested_user_id: str):
        self.bound_user_id = bound_user_id
        self.requested_user_id = requested_user_id
        super().__init__(
            f"Connection already bound to user {bound_user_id}; refusing rebind to {requested_user_id}"
        )
