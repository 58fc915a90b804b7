"""Task tracking service for hedera-solo.

Phase tasks are the concurrent branches of a pipeline phase and are always
awaited by the pipeline that created them. Background tasks are long running
loops, such as lease renewal, or operations that outlived a deadline and are
left to finish on their own; nothing awaits them so their failures are logged.
"""

import asyncio
from abc import ABC, abstractmethod
import logging
from typing import Any, Coroutine

_LOGGER = logging.getLogger(__name__)

__all__: list[str] = []


class TaskService(ABC):
    """Creates and tracks the asyncio tasks of a command."""

    @abstractmethod
    def create_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Start a phase task that the caller awaits."""

    @abstractmethod
    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Start a task that runs until it finishes or is cancelled."""

    @abstractmethod
    async def cancel_task(self, task: asyncio.Task[Any]) -> None:
        """Cancel a tracked task and wait until it has stopped."""

    @property
    @abstractmethod
    def background_tasks(self) -> frozenset[asyncio.Task[Any]]:
        """Background tasks that are still running."""

    async def shutdown(self) -> None:
        """Cancel every background task still running."""
        for task in self.background_tasks:
            await self.cancel_task(task)


class TaskServiceImpl(TaskService):
    """Task service backed by the running event loop."""

    def __init__(self) -> None:
        """Initialize TaskServiceImpl."""
        self._phase_tasks: set[asyncio.Task[Any]] = set()
        self._background_tasks: set[asyncio.Task[Any]] = set()

    def create_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._phase_tasks.add(task)
        task.add_done_callback(self._phase_tasks.discard)
        return task

    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_done)
        return task

    def _background_done(self, task: asyncio.Task[Any]) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        if (err := task.exception()) is not None:
            _LOGGER.warning("Background task %s failed: %s", task.get_name(), err)

    @property
    def background_tasks(self) -> frozenset[asyncio.Task[Any]]:
        return frozenset(self._background_tasks)

    async def cancel_task(self, task: asyncio.Task[Any]) -> None:
        if task not in self._phase_tasks and task not in self._background_tasks:
            if task.done():
                return
            raise ValueError(f"Task {task.get_name()} is not tracked")
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            _LOGGER.debug("Cancelled task %s", task.get_name())
        finally:
            self._phase_tasks.discard(task)
            self._background_tasks.discard(task)
