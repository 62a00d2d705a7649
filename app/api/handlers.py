"""
API handlers: call services, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Exception-to-HTTP mapping
lives here so services stay free of FastAPI/HTTP types.
"""

import logging
from typing import Any, Awaitable, TypeVar

from fastapi import HTTPException

from app.core.error_log import get_error_reporter
from app.core.errors import (
    AnswerNotFoundError,
    ExchangeCancelledError,
    ExchangeError,
    InvalidRequestError,
    JobFailedError,
    NotFoundError,
    RemoteUnavailableError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_EXCHANGE_STATUS: dict[type[ExchangeError], int] = {
    InvalidRequestError: 400,
    JobFailedError: 502,
    RemoteUnavailableError: 503,
    AnswerNotFoundError: 500,
    ExchangeCancelledError: 504,
}


def exchange_status_code(error: ExchangeError) -> int:
    for cls, status in _EXCHANGE_STATUS.items():
        if isinstance(error, cls):
            return status
    return 500


def exchange_detail(error: ExchangeError) -> dict[str, Any]:
    """Error kind, message and the ids a caller needs to follow up."""
    detail: dict[str, Any] = {"kind": error.kind, "message": error.message}
    for key in ("thread_id", "job_id", "status", "reason"):
        value = error.context.get(key)
        if value is not None:
            detail[key] = value
    return detail


async def call_service(source: str, awaitable: Awaitable[T], *, exchange_reported: bool = False) -> T:
    """
    Await a service call and translate its failures into HTTPException.

    Failures that become 5xx are sent to the error reporter, except
    ExchangeErrors when the service already reported them (exchange_reported).
    """
    try:
        return await awaitable
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except ServiceUnavailableError as e:
        await get_error_reporter().areport(e, source)
        raise HTTPException(status_code=503, detail=e.message) from e
    except ExchangeError as e:
        status = exchange_status_code(e)
        if status >= 500 and not exchange_reported:
            await get_error_reporter().areport(e, source)
        elif status < 500:
            logger.info("[%s] rejected: %s", source, e.message)
        raise HTTPException(status_code=status, detail=exchange_detail(e)) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Unhandled error in %s", source)
        await get_error_reporter().areport(e, source)
        raise HTTPException(status_code=500, detail="Internal server error") from e
