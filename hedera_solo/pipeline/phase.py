"""Data structure describing the phases of a command."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, TypeVar

__all__ = [
    "Mode",
    "Phase",
]

C = TypeVar("C")


class Mode(StrEnum):
    """How the sub-phases of a phase are scheduled."""

    SEQUENTIAL = "sequential"
    """Run one after the other, stopping at the first failure."""

    CONCURRENT = "concurrent"
    """Start together and wait for all of them, surfacing the first failure."""


@dataclass
class Phase(Generic[C]):
    """One named step of a pipeline operating on a shared context `C`."""

    title: str
    """Title used for logging and tracing."""

    run: Callable[[C], Awaitable[None]] | None = None
    """Work performed by the phase, before any of its sub-phases."""

    skip: Callable[[C], bool] | None = None
    """Predicate over the context; when true the phase is bypassed entirely."""

    subphases: list["Phase[C]"] = field(default_factory=list)
    """Sub-phases known when the pipeline is built."""

    expand: Callable[[C], list["Phase[C]"]] | None = None
    """Builds further sub-phases from the context once `run` has finished."""

    mode: Mode = Mode.SEQUENTIAL
    """Scheduling of the sub-phases."""

    def should_skip(self, ctx: C) -> bool:
        """Return true if the phase is bypassed for this context."""
        return self.skip is not None and self.skip(ctx)

    def children(self, ctx: C) -> list["Phase[C]"]:
        """Return the static and expanded sub-phases."""
        if self.expand is None:
            return list(self.subphases)
        return [*self.subphases, *self.expand(ctx)]
