"""Background renewal of held leases."""

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from hedera_solo.exceptions import LeaseLostError, SoloException
from hedera_solo.task import TaskService, get_task_service

if TYPE_CHECKING:
    from .lease import Lease

__all__ = [
    "LeaseRenewalService",
]

_LOGGER = logging.getLogger(__name__)


class LeaseRenewalService:
    """Renews each scheduled lease at half its duration until cancelled.

    Transient failures are logged and retried on the next interval. A lease
    found held by someone else is marked lost and its renewal stops.
    """

    def __init__(self, task_service: TaskService | None = None) -> None:
        """Initialize LeaseRenewalService."""
        self._task_service = task_service
        self._tasks: dict["Lease", asyncio.Task[Any]] = {}

    def _service(self) -> TaskService:
        if self._task_service is None:
            self._task_service = get_task_service()
        return self._task_service

    def is_scheduled(self, lease: "Lease") -> bool:
        """Return true if the lease is being renewed."""
        task = self._tasks.get(lease)
        return task is not None and not task.done()

    def schedule(self, lease: "Lease") -> None:
        """Start renewing the lease in the background."""
        if self.is_scheduled(lease):
            return
        self._tasks[lease] = self._service().create_background_task(
            self._renew_loop(lease), name=f"lease-renewal-{lease.namespace}"
        )

    async def cancel(self, lease: "Lease") -> None:
        """Stop renewing the lease."""
        if (task := self._tasks.pop(lease, None)) is None:
            return
        await self._service().cancel_task(task)

    async def _renew_loop(self, lease: "Lease") -> None:
        while True:
            await asyncio.sleep(lease.renewal_delay)
            try:
                await lease.renew()
            except LeaseLostError as err:
                _LOGGER.error("Lease for %s was lost: %s", lease.namespace, err)
                lease.mark_lost(err)
                return
            except SoloException as err:
                _LOGGER.warning(
                    "Failed to renew lease for %s, will retry: %s",
                    lease.namespace,
                    err,
                )
            else:
                _LOGGER.debug("Renewed lease for %s", lease.namespace)
