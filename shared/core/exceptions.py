from shared.utils.app_status_code import AppStatusCode


class AppError(Exception):
    """Base for errors raised by the crud layer and rendered by the exception handlers."""

    http_status = 400
    status_code = AppStatusCode.OPERATION_FAILED

    def __init__(self, message: str, status_code: str | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    http_status = 400
    status_code = AppStatusCode.INVALID_INPUT


class NotFoundError(AppError):
    http_status = 404
    status_code = AppStatusCode.RECORD_NOT_FOUND


class InvalidStateError(AppError):
    http_status = 409
    status_code = AppStatusCode.INVALID_STATE_TRANSITION


class ForbiddenError(AppError):
    http_status = 403
    status_code = AppStatusCode.ACCESS_FORBIDDEN


class PersistenceError(AppError):
    http_status = 500
    status_code = AppStatusCode.PERSISTENCE_FAILED
