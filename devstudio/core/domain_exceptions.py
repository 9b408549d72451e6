"""Exceptions raised by the service layer and rendered by the HTTP handlers."""

from devstudio.core.error_codes import ErrorCode


class DomainException(Exception):
    def __init__(
        self,
        code: str = ErrorCode.VALIDATION_ERROR,
        message: str = "Request could not be processed.",
        status_code: int = 400,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
