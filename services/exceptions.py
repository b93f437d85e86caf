class ServiceError(Exception):
    """Base class for errors raised at the service boundary."""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message=None):
        super().__init__(message or self.error)
        self.message = message or self.error


class BadRequestError(ServiceError):
    status_code = 400
    error = "Bad Request"


class UnauthorizedError(ServiceError):
    status_code = 401
    error = "Unauthorized"


class ForbiddenError(ServiceError):
    status_code = 403
    error = "Forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    error = "Not Found"


class ConflictError(ServiceError):
    status_code = 409
    error = "Conflict"


class ServiceUnavailableError(ServiceError):
    status_code = 503
    error = "Service Unavailable"


class InvalidRankingError(BadRequestError):
    """A rank submission that does not form a complete 1..N ordering."""
