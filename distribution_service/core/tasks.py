"""
Helpers for asyncio background tasks.

Wraps asyncio.create_task with error handling, logging and a per-task
failure counter, so fire-and-forget work never crashes the process.
"""
import asyncio
import logging
from typing import Coroutine, Any, Optional, Callable

logger = logging.getLogger(__name__)

# Failure counters by task name
_task_failures: dict[str, int] = {}


async def _safe_wrapper(
    coro: Coroutine,
    task_name: str,
    on_error: Optional[Callable[[Exception], None]] = None
) -> Any:
    """
    Run a coroutine, logging and counting any exception it raises.

    Args:
        coro: Coroutine to run
        task_name: Name used for logging and counters
        on_error: Optional callback for failures
    """
    try:
        return await coro
    except asyncio.CancelledError:
        logger.debug(f"Task cancelled: {task_name}")
        raise
    except Exception as e:
        _task_failures[task_name] = _task_failures.get(task_name, 0) + 1

        logger.error(
            f"Error in background task '{task_name}': {e}",
            exc_info=True,
            extra={
                "task_name": task_name,
                "error_type": type(e).__name__,
                "total_failures": _task_failures[task_name]
            }
        )

        if on_error:
            try:
                on_error(e)
            except Exception as callback_error:
                logger.error(f"Error in on_error callback: {callback_error}")

        return None


def safe_create_task(
    coro: Coroutine,
    name: Optional[str] = None,
    on_error: Optional[Callable[[Exception], None]] = None
) -> asyncio.Task:
    """
    Create a task with automatic error handling.

    Usage:
        safe_create_task(scheduler.process_fare_transitions(), name="fare_transitions")

    Args:
        coro: Coroutine to run
        name: Task name (for logging)
        on_error: Optional callback invoked with the exception

    Returns:
        asyncio.Task wrapping the coroutine
    """
    task_name = name or (coro.__qualname__ if hasattr(coro, '__qualname__') else "unknown")
    wrapped = _safe_wrapper(coro, task_name, on_error)
    return asyncio.create_task(wrapped, name=task_name)


def get_task_failure_counts() -> dict[str, int]:
    """Failure counts per task name."""
    return _task_failures.copy()


def reset_task_failure_counts():
    """Reset counters (tests)."""
    global _task_failures
    _task_failures = {}
