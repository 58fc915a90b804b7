"""The task service of the running command."""

from collections.abc import Generator
import contextlib
import contextvars

from .service import TaskService, TaskServiceImpl

__all__: list[str] = []

_current: contextvars.ContextVar[TaskService | None] = contextvars.ContextVar(
    "task_service", default=None
)


def get_task_service() -> TaskService:
    """Return the task service of the running command, creating one if unset."""
    if (service := _current.get()) is None:
        service = TaskServiceImpl()
        _current.set(service)
    return service


@contextlib.contextmanager
def task_service_context(
    service: TaskService | None = None,
) -> Generator[TaskService, None, None]:
    """Install a task service for the commands run inside the block."""
    service = service or TaskServiceImpl()
    token = _current.set(service)
    try:
        yield service
    finally:
        _current.reset(token)
