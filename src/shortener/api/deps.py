from collections.abc import Callable
from typing import Any, TypeVar
import functools

import anyio
import anyio.to_thread
from fastapi import HTTPException, Request, status

from src.shortener.core.config import Settings, logger
from src.shortener.core.exceptions import (
    CodeAllocationExhaustedError,
    InvalidIdentifierError,
    InvalidURLError,
    NotFoundError,
    RandomSourceError,
    ShortenerError,
    StoreTimeoutError,
    StoreUnavailableError,
)
from src.shortener.services.url_service import URLService

T = TypeVar("T")


def get_service(request: Request) -> URLService:
    return request.app.state.service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def run_store_call(settings: Settings, func: Callable[..., T], *args: Any) -> T:
    """
    Run a blocking service call on a worker thread under the request deadline.

    If the request is cancelled (client gone) or the deadline passes, the
    awaiting task is released at once; the worker may still finish its
    statement in the background.

    Raises:
        StoreTimeoutError: If the call does not finish within REQUEST_TIMEOUT
    """
    try:
        with anyio.fail_after(settings.REQUEST_TIMEOUT):
            return await anyio.to_thread.run_sync(
                functools.partial(func, *args), abandon_on_cancel=True
            )
    except TimeoutError as e:
        logger.error(f"Store call {func.__name__} exceeded {settings.REQUEST_TIMEOUT}s")
        raise StoreTimeoutError("Store call timed out") from e


def error_body(message: str, error_code: str) -> dict:
    return {"error": message, "error_code": error_code}


def to_http_exception(error: ShortenerError) -> HTTPException:
    """
    Map a service error onto the HTTP status the API promises for it.

    The response body is ``{"detail": {"error": <message>, "error_code": <code>}}``.
    """
    if isinstance(error, (InvalidURLError, InvalidIdentifierError)):
        status_code, message = status.HTTP_400_BAD_REQUEST, str(error)
    elif isinstance(error, NotFoundError):
        status_code, message = status.HTTP_404_NOT_FOUND, "URL not found"
    elif isinstance(error, StoreUnavailableError):
        status_code, message = status.HTTP_503_SERVICE_UNAVAILABLE, "Storage temporarily unavailable"
    elif isinstance(error, (CodeAllocationExhaustedError, RandomSourceError)):
        status_code, message = status.HTTP_500_INTERNAL_SERVER_ERROR, "Could not allocate a short code"
    else:
        status_code, message = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error"
    return HTTPException(status_code=status_code, detail=error_body(message, error.error_code))
