"""Shared error handling utilities

Decorators used at the collaborator edges to log a failure and fall back to a
default value instead of letting it escape into the optimization pipeline.
"""

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class ErrorHandler:
    """Standard log-and-fallback patterns"""

    @staticmethod
    def log_and_return_default(
        operation_name: str, exception: Exception, default_value: T, **kwargs: Any
    ) -> T:
        logger.error(f"Failed to {operation_name}", error=str(exception), **kwargs)
        return default_value

    @staticmethod
    def log_and_reraise(
        operation_name: str, exception: Exception, **kwargs: Any
    ) -> None:
        logger.error(f"Failed to {operation_name}", error=str(exception), **kwargs)
        raise exception


def handle_errors(
    operation_name: str,
    default_return: Any = None,
    reraise: bool = False,
    **log_kwargs: Any,
):
    """
    Decorator that logs exceptions raised by the wrapped callable.

    Args:
        operation_name: name used in the log event
        default_return: value returned on failure (ignored when reraise=True)
        reraise: re-raise after logging
        **log_kwargs: extra context for the log event
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if reraise:
                    ErrorHandler.log_and_reraise(operation_name, e, **log_kwargs)
                return ErrorHandler.log_and_return_default(
                    operation_name, e, default_return, **log_kwargs
                )

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if reraise:
                    ErrorHandler.log_and_reraise(operation_name, e, **log_kwargs)
                return ErrorHandler.log_and_return_default(
                    operation_name, e, default_return, **log_kwargs
                )

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return wrapper

    return decorator


def safe_with_default(operation_name: str, default_value: Any, **log_kwargs: Any):
    """Log failures and return ``default_value``"""
    return handle_errors(operation_name, default_return=default_value, **log_kwargs)
