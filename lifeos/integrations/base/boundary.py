"""Collaborator boundary helpers: bounded timeouts and shared retry policy.

Retries happen here, inside the HTTP adapters, and nowhere else. The
optimization core only bounds each call with a timeout and converts failures
into ``CollaboratorUnavailable``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

import aiohttp
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from lifeos.optimization.errors import CollaboratorUnavailable

T = TypeVar("T")


class RetryableAPIError(Exception):
    """Transient upstream error (5xx, 429, connection reset)"""


class NonRetryableAPIError(Exception):
    """Permanent upstream error (4xx other than 429)"""


RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


def raise_for_status(status: int, url: str) -> None:
    if status < 400:
        return
    if status in RETRYABLE_STATUSES:
        raise RetryableAPIError(f"HTTP {status} from {url}")
    raise NonRetryableAPIError(f"HTTP {status} from {url}")


collaborator_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type((RetryableAPIError, aiohttp.ClientConnectionError)),
    reraise=True,
)


async def bounded(
    call: Awaitable[T],
    *,
    timeout: float,
    collaborator: str,
    operation: str,
) -> T:
    """Await ``call`` with a timeout, mapping every failure to CollaboratorUnavailable."""
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except CollaboratorUnavailable:
        raise
    except TimeoutError as e:
        raise CollaboratorUnavailable(
            collaborator, operation, f"timed out after {timeout}s"
        ) from e
    except Exception as e:
        raise CollaboratorUnavailable(collaborator, operation, str(e)) from e
