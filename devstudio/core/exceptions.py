import logging

from fastapi import Request
from fastapi.exceptions import HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from devstudio.core.domain_exceptions import DomainException
from devstudio.core.error_codes import ErrorCode
from devstudio.schemas.common import APIError, APIResponse

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {
    401: ErrorCode.UNAUTHORIZED,
    404: ErrorCode.NOT_FOUND,
}


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse(
            success=False,
            error=APIError(code=code, message=message),
        ).model_dump(),
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    code = _HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.VALIDATION_ERROR)
    return _error_response(exc.status_code, code, str(exc.detail))


async def domain_exception_handler(request: Request, exc: DomainException):
    logger.info("Domain error on %s %s: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.code, exc.message)


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _error_response(500, ErrorCode.INTERNAL_ERROR, "Internal server error.")
