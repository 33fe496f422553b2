"""Errors raised by the exam catalog and the session lifecycle.

Each error carries the HTTP status the API layer maps it to and a stable
message that is safe to return to clients.
"""

from typing import Optional


class ExamServiceError(Exception):
    status_code = 500
    message = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


# ---------------------------
# Not found (404)
# ---------------------------

class NotFoundError(ExamServiceError):
    status_code = 404


class ExamNotFound(NotFoundError):
    message = "Exam not found"


class SessionNotFound(NotFoundError):
    message = "No active session found"


class NoAttempts(NotFoundError):
    message = "No attempts found"


# ---------------------------
# Invalid state (400)
# ---------------------------

class InvalidStateError(ExamServiceError):
    status_code = 400


class SessionAlreadyActive(InvalidStateError):
    message = "Exam already started"


class SessionExpired(InvalidStateError):
    message = "Exam time limit exceeded"


class AttemptLimitReached(ExamServiceError):
    status_code = 403
    message = "Maximum number of attempts reached"


class InvalidExamDefinition(ValueError):
    """Raised when a catalog entry breaks an exam invariant."""
