"""Task tracking module for hedera-solo.

This module provides a simple task tracking service used by the pipeline
for concurrent phases and by the lease renewal service for its long
running background loop.
"""

from .context import task_service_context, get_task_service
from .service import TaskService

__all__ = ["get_task_service", "task_service_context", "TaskService"]
