"""Race an operation against a deadline with a compensating action."""

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
import logging
from typing import Any

from hedera_solo.task import TaskService, get_task_service

__all__ = [
    "run_with_deadline",
]

_LOGGER = logging.getLogger(__name__)


async def run_with_deadline(
    operation: Coroutine[None, None, Any],
    timeout: float,
    on_timeout: Callable[[], Awaitable[None]],
    *,
    name: str = "operation",
    task_service: TaskService | None = None,
) -> bool:
    """Run `operation`, compensating if it does not finish within `timeout`.

    Returns true if the operation finished in time; its errors propagate.
    Otherwise `on_timeout` runs exactly once and false is returned. The
    operation is not cancelled: it keeps running as a background task and
    any later failure is only logged.
    """
    service = task_service or get_task_service()
    task = service.create_background_task(operation, name=name)
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task in done:
        task.result()
        return True
    _LOGGER.warning(
        "%s did not finish within %.1fs, running compensating action", name, timeout
    )
    await on_timeout()
    return False
