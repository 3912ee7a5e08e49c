import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

LOGGER = logging.getLogger(__name__)


def _readable(error: dict) -> str:
    message = str(error.get("msg", "Invalid value"))
    # pydantic prefixes messages raised from validators.
    return message.removeprefix("Value error, ")


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": " -> ".join(str(part) for part in error.get("loc", ())),
            "message": _readable(error),
        }
        for error in exc.errors()
    ]
    LOGGER.warning("Validation error on %s: %s", request.url.path, errors)
    detail = errors[0]["message"] if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail, "errors": errors},
    )


async def sqlalchemy_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    LOGGER.error("Database error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred"},
    )
