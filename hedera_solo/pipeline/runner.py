"""Interpreter for a list of pipeline phases."""

import asyncio
from collections.abc import Awaitable, Callable
import logging
from typing import Generic, TypeVar

from hedera_solo.context import trace_context
from hedera_solo.exceptions import SoloException
from hedera_solo.task import TaskService, get_task_service

from .phase import Mode, Phase

__all__ = [
    "Pipeline",
]

_LOGGER = logging.getLogger(__name__)

C = TypeVar("C")


class Pipeline(Generic[C]):
    """Runs phases in declared order against a shared context.

    A phase failure aborts the remaining phases. The `cleanup` callback runs
    after the phases no matter how they ended. The `guard` callback runs
    before every phase and may raise to stop the pipeline, e.g. when the
    lease protecting the namespace was lost.
    """

    def __init__(
        self,
        phases: list[Phase[C]],
        *,
        guard: Callable[[], None] | None = None,
        cleanup: Callable[[C], Awaitable[None]] | None = None,
        task_service: TaskService | None = None,
    ) -> None:
        """Initialize Pipeline."""
        self._phases = phases
        self._guard = guard
        self._cleanup = cleanup
        self._task_service = task_service

    @property
    def phases(self) -> list[Phase[C]]:
        """The top level phases."""
        return self._phases

    async def run(self, ctx: C) -> None:
        """Run every phase, then the cleanup callback."""
        error: BaseException | None = None
        try:
            for phase in self._phases:
                await self._run_phase(phase, ctx)
        except BaseException as err:
            error = err
            raise
        finally:
            if self._cleanup is not None:
                try:
                    await self._cleanup(ctx)
                except SoloException as cleanup_err:
                    if error is None:
                        raise
                    _LOGGER.error(
                        "Cleanup failed after pipeline error %s: %s", error, cleanup_err
                    )

    async def _run_phase(self, phase: Phase[C], ctx: C) -> None:
        if phase.should_skip(ctx):
            _LOGGER.debug("Skipping phase '%s'", phase.title)
            return
        if self._guard is not None:
            self._guard()
        with trace_context(phase.title):
            _LOGGER.info("%s", phase.title)
            if phase.run is not None:
                await phase.run(ctx)
            children = phase.children(ctx)
            if not children:
                return
            if phase.mode == Mode.CONCURRENT:
                await self._run_concurrent(children, ctx)
            else:
                for child in children:
                    await self._run_phase(child, ctx)

    async def _run_concurrent(self, phases: list[Phase[C]], ctx: C) -> None:
        service = self._task_service or get_task_service()
        tasks = [
            service.create_task(self._run_phase(phase, ctx), name=phase.title)
            for phase in phases
        ]
        first_error: Exception | None = None
        for next_done in asyncio.as_completed(tasks):
            try:
                await next_done
            except Exception as err:
                if first_error is None:
                    first_error = err
                else:
                    _LOGGER.debug("Additional concurrent phase failure: %s", err)
        if first_error is not None:
            raise first_error
