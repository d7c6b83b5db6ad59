"""
Timeout + linear-backoff retry for outbound collaborator calls.
Each attempt gets the full timeout budget; non-retryable failures propagate immediately.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from services.errors import (
    CollaboratorError,
    CollaboratorRequestError,
    CollaboratorTimeoutError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_call(
    make_call: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 2,
    delay_seconds: float = 1.0,
    timeout_seconds: Optional[float] = 25.0,
    translate: Optional[Callable[[Exception], CollaboratorError]] = None,
    label: str = "collaborator",
) -> T:
    """
    Run make_call() up to max_retries + 1 times.
    Raw exceptions are mapped through translate() so callers only ever see CollaboratorError
    subclasses; a timed-out attempt becomes CollaboratorTimeoutError.
    """
    attempts = max(max_retries, 0) + 1
    for attempt in range(1, attempts + 1):
        try:
            if timeout_seconds is None:
                return await make_call()
            return await asyncio.wait_for(make_call(), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            error: CollaboratorError = CollaboratorTimeoutError(f"{label} request timed out after {timeout_seconds}s")
        except CollaboratorError as e:
            error = e
        except Exception as e:
            error = translate(e) if translate else CollaboratorRequestError(f"{label} request failed: {e}")

        if not error.retryable:
            raise error
        if attempt == attempts:
            logger.error("%s failed after %d attempts: %s", label, attempts, error)
            raise error
        wait = delay_seconds * attempt
        logger.warning("%s attempt %d failed (%s); retrying in %.1fs", label, attempt, error, wait)
        await asyncio.sleep(wait)
    raise CollaboratorRequestError(f"{label} request was never attempted")
