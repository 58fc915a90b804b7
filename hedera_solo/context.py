"""Utilities for tracing nested pipeline phases."""

import contextvars
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

# No public API
__all__: list[str] = []


trace: contextvars.ContextVar[list[str]] = contextvars.ContextVar("trace")


def current_trace() -> list[str]:
    """Return the titles of the phases currently being traced."""
    return list(trace.get([]))


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    """Log the start and elapsed time of a named phase."""
    stack = trace.get([])
    token = trace.set(stack + [name])
    label = " > ".join(stack + [name])
    t1 = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    failed = False
    try:
        yield
    except BaseException:
        failed = True
        raise
    finally:
        t2 = perf_counter()
        trace.reset(token)
        _LOGGER.debug(
            "[Trace] < %s (%0.2fs)%s", label, (t2 - t1), " failed" if failed else ""
        )
