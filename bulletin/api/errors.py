"""Centralized error transformation for API routes.

Maps failed decisions (`Err`) to HTTPException responses.
"""

from fastapi import HTTPException

from bulletin.core.result import FORBIDDEN_MESSAGE, Err, ErrorKind

ERROR_STATUS_MAP: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.INVALID_CREDENTIAL: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
}

UNKNOWN_ERROR_MESSAGE = "An unknown error has occurred. Please try again later."


def http_error(error: Err) -> HTTPException:
    """Map a failed decision to an HTTPException.

    Forbidden always carries the same message, whatever the cause.
    """
    status_code = ERROR_STATUS_MAP.get(error.kind, 400)

    if error.kind is ErrorKind.FORBIDDEN:
        return HTTPException(status_code=status_code, detail=FORBIDDEN_MESSAGE)

    if error.kind is ErrorKind.INVALID_CREDENTIAL:
        return HTTPException(
            status_code=status_code,
            detail=error.message or "Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return HTTPException(status_code=status_code, detail=error.message or error.kind.value)
