# app/core/errors.py
"""
Domain errors. Each carries an HTTP status and a machine-readable code;
exception_handlers renders them as {"error": message, "code": code}.
"""


class DomainError(Exception):
    status_code = 400
    code = "DOMAIN_ERROR"

    def __init__(self, message: str = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class InvalidTransition(DomainError):
    """Action is not legal from the current status"""

    status_code = 409
    code = "INVALID_TRANSITION"


class DuplicateConnection(DomainError):
    """An open connection already exists for this pair"""

    status_code = 409
    code = "DUPLICATE_CONNECTION"


class DuplicateSubmission(DomainError):
    """Already submitted"""

    status_code = 409
    code = "DUPLICATE_SUBMISSION"


class ValidationError(DomainError):
    """Invalid input"""

    status_code = 422
    code = "VALIDATION_ERROR"


class ChatLocked(DomainError):
    """Chat is locked for this connection"""

    status_code = 403
    code = "CHAT_LOCKED"


class NotFound(DomainError):
    """Not found"""

    status_code = 404
    code = "NOT_FOUND"


class Unauthorized(DomainError):
    """You are not a participant of this connection"""

    status_code = 403
    code = "UNAUTHORIZED"


class RateLimited(DomainError):
    """Too many requests, try again later"""

    status_code = 429
    code = "RATE_LIMITED"
