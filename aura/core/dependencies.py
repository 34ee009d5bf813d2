"""Dependencies for FastAPI endpoints."""
import asyncio
from functools import lru_cache
from typing import Awaitable, TypeVar

from fastapi import status

from aura.core.config import settings
from aura.core.exceptions import AppException
from aura.services.completion_broker import CompletionBroker

T = TypeVar("T")


@lru_cache(maxsize=1)
def get_completion_broker() -> CompletionBroker:
    """Process-wide broker built from settings. Overridden in tests."""
    return CompletionBroker.from_settings(settings)


async def with_request_timeout(operation: Awaitable[T]) -> T:
    """Bound one request's broker work by REQUEST_TIMEOUT_SECONDS; the broker itself has no timeout."""
    if settings.REQUEST_TIMEOUT_SECONDS is None:
        return await operation
    try:
        return await asyncio.wait_for(operation, timeout=settings.REQUEST_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        raise AppException(
            "Completion timed out",
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            data={"timeout_seconds": settings.REQUEST_TIMEOUT_SECONDS},
        )
