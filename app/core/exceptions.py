class CaseGraphException(Exception):
    """Base exception for the case relationship graph"""

    pass


class UnauthorizedException(CaseGraphException):
    """Raised when JWT validation fails"""

    pass


class NotFoundException(CaseGraphException):
    """Raised when a resource id does not resolve to any record"""

    pass


class ForbiddenException(CaseGraphException):
    """Raised when the resource exists but the actor lacks permission"""

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class ValidationException(CaseGraphException):
    """Raised when input data violates a record invariant"""

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []


class ConflictException(CaseGraphException):
    """Raised when a duplicate-edge race could not be resolved to the surviving edge"""

    pass


class InfrastructureException(CaseGraphException):
    """Raised when the backing store is unavailable or times out (retryable)"""

    pass
