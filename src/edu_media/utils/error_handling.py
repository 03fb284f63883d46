"""Logging and error handling decorators for service operations.

Domain errors (denials, invalid states, missing records) are expected outcomes
and log at INFO; anything else logs at ERROR. Both always re-raise.
"""

import functools
import logging
import time
from typing import Any, Callable, Dict

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BusinessLogicError,
    EntityNotFoundError,
)

logger = logging.getLogger(__name__)

EXPECTED_ERRORS = (
    AuthenticationError,
    AuthorizationError,
    BusinessLogicError,
    EntityNotFoundError,
)

# Keyword arguments worth echoing into log context
_CONTEXT_KEYS = (
    "actor_id",
    "requester_id",
    "content_id",
    "bundle_id",
    "group_id",
    "order_id",
    "user_id",
    "target_user_id",
)


def _build_context(operation_name: str, func: Callable, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    context = {"operation": operation_name, "function": func.__name__}
    for key in _CONTEXT_KEYS:
        if kwargs.get(key) is not None:
            context[key] = str(kwargs[key])
    return context


def _format_context(context: Dict[str, Any]) -> str:
    return ", ".join(f"{k}={v}" for k, v in context.items())


def service_operation(
    operation_name: str,
    log_level: int = logging.DEBUG,
    include_timing: bool = False,
):
    """Decorator for logging async service operations.

    Args:
        operation_name: Name of the operation for logging
        log_level: Level for start/finish messages (default: DEBUG)
        include_timing: Whether to include execution timing

    Usage:
        @service_operation("submit for review")
        async def submit_for_review(self, content_id, actor_id):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            context = _build_context(operation_name, func, kwargs)
            start = time.perf_counter() if include_timing else None
            logger.log(log_level, f"Starting {operation_name} | {_format_context(context)}")

            try:
                result = await func(*args, **kwargs)
            except EXPECTED_ERRORS as e:
                context["error"] = str(e)
                logger.info(f"Rejected {operation_name}: {type(e).__name__} | {_format_context(context)}")
                raise
            except Exception as e:
                context["error"] = str(e)
                logger.error(f"Failed {operation_name} | {_format_context(context)}")
                raise

            if start is not None:
                context["duration_ms"] = f"{(time.perf_counter() - start) * 1000:.2f}"
            logger.log(log_level, f"Completed {operation_name} | {_format_context(context)}")
            return result

        return wrapper
    return decorator
