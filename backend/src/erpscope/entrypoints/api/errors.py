"""Mapping of access errors to HTTP responses."""

from fastapi import Request
from fastapi.responses import JSONResponse

from erpscope.core.access.errors import AccessError, ErrorCode

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INACTIVE_USER: 401,
    ErrorCode.ACCESS_DENIED: 403,
    ErrorCode.INVALID_ROLE: 422,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.DUPLICATE_GRANT: 409,
    ErrorCode.CONFLICT: 409,
}


def status_for(error: AccessError) -> int:
    """Get the HTTP status code for an access error."""
    return STATUS_BY_CODE.get(error.code, 400)


async def access_error_handler(request: Request, exc: AccessError) -> JSONResponse:
    """Render an AccessError as a JSON error body."""
    return JSONResponse(status_code=status_for(exc), content=exc.to_dict())
