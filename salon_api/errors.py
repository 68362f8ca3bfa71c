"""
Application error taxonomy.

Services raise these; the handlers registered in ``main`` turn them into
JSON responses with the matching HTTP status.
"""


class AppError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class AuthorizationError(AppError):
    status_code = 403
    default_message = "You are not authorized to do this"


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(AppError):
    """A referenced entity does not exist or is outside the caller's scope."""

    status_code = 404

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity[:1].upper()}{entity[1:]} not found.")


class InternalError(AppError):
    """Unexpected storage failure. The message never carries internal detail."""

    status_code = 500

    def __init__(self):
        super().__init__(self.default_message)
