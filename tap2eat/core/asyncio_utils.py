"""Asyncio helpers for background tasks and bounded cancellation."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Awaitable, Optional

from .logging_utils import LoggerLike, ensure_structured_logger


def _task_label(task: asyncio.Task[Any], context: Optional[str]) -> str:
    if context:
        return context
    name = task.get_name()
    return name or "background task"


def add_task_exception_logger(
    task: asyncio.Task[Any],
    *,
    logger: LoggerLike = None,
    context: Optional[str] = None,
) -> asyncio.Task[Any]:
    """Ensure task exceptions are retrieved and logged.

    Without this, exceptions in fire-and-forget tasks surface as
    "Task exception was never retrieved" warnings long after the failure.
    """
    task_logger = ensure_structured_logger(logger, fallback_name="asyncio")

    def _done(done_task: asyncio.Task[Any]) -> None:
        try:
            done_task.result()
        except asyncio.CancelledError:
            return
        except Exception:
            task_logger.exception(
                "Unhandled exception in %s",
                _task_label(done_task, context),
            )

    task.add_done_callback(_done)
    return task


def create_logged_task(
    coro: Awaitable[Any],
    *,
    logger: LoggerLike = None,
    context: Optional[str] = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
    pending: Optional[set[asyncio.Task[Any]]] = None,
) -> asyncio.Task[Any]:
    """Create a task that won't lose exceptions, optionally tracking it."""
    if loop is None:
        loop = asyncio.get_running_loop()

    task = loop.create_task(coro)
    if context:
        with contextlib.suppress(Exception):  # pragma: no cover - best effort
            task.set_name(context)

    add_task_exception_logger(task, logger=logger, context=context)

    if pending is not None:
        pending.add(task)
        task.add_done_callback(pending.discard)

    return task


def discard_task_result(task: asyncio.Future[Any]) -> None:
    """Retrieve (and drop) the outcome of a task nobody awaits anymore."""

    def _done(done_task: asyncio.Future[Any]) -> None:
        if not done_task.cancelled():
            done_task.exception()

    task.add_done_callback(_done)


async def cancel_task_safely(
    task: Optional[asyncio.Future[Any]],
    task_name: str = "task",
    timeout: float = 5.0,
    logger: LoggerLike = None,
) -> bool:
    """Cancel ``task`` and wait at most ``timeout`` seconds for it to finish.

    Returns True when the task is gone (done or cancelled), False when it
    ignored the cancellation for longer than ``timeout``. The wait never
    re-cancels or blocks past the timeout, so a stubborn task cannot stall
    the caller.
    """
    log = ensure_structured_logger(logger, fallback_name="asyncio")
    if task is None:
        log.debug("%s: No task to cancel", task_name)
        return True
    if task.done():
        log.debug("%s: Already done", task_name)
        return True

    log.debug("%s: Cancelling...", task_name)
    task.cancel()
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task not in done:
        log.warning("%s: Cancellation timeout after %.2fs", task_name, timeout)
        discard_task_result(task)
        return False

    if not task.cancelled():
        exc = task.exception()
        if exc is not None:
            log.debug("%s: Finished with exception during cancellation: %s", task_name, exc)
    log.debug("%s: Cancelled successfully", task_name)
    return True


__all__ = [
    "add_task_exception_logger",
    "cancel_task_safely",
    "create_logged_task",
    "discard_task_result",
]
