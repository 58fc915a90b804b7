"""A mutual exclusion lock over a namespace, backed by a Kubernetes Lease.

A `Lease` is created for every command that mutates a deployment. The lease
object is named after the namespace it protects, so two commands against the
same namespace contend for the same object:

```python
lease = await lease_manager.create()
await lease.acquire()
try:
    ...
finally:
    await lease.release()
```

While held, the lease is renewed in the background by a
`LeaseRenewalService`. If renewal discovers another holder took the lease the
lease is marked lost and `raise_if_lost()` fails on the next pipeline phase.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from hedera_solo.config import LeaseConfig
from hedera_solo.exceptions import (
    InputException,
    KubernetesException,
    LeaseAcquisitionError,
    LeaseAlreadyHeldError,
    LeaseLostError,
    LeaseRelinquishmentError,
    SoloException,
)
from hedera_solo.k8s.client import CONFLICT, INTERNAL_SERVER_ERROR, K8Client
from hedera_solo.k8s.resources import LeaseRecord

from .holder import LeaseHolder

if TYPE_CHECKING:
    from .renewal import LeaseRenewalService

__all__ = [
    "Lease",
]

_LOGGER = logging.getLogger(__name__)


def _held_message(holder: LeaseHolder | None, raw: str | None) -> str:
    if holder is None:
        return f"lease already acquired by '{raw}'"
    return (
        f"lease already acquired by '{holder.username}' on the "
        f"'{holder.hostname}' machine (PID: '{holder.pid}')"
    )


class Lease:
    """A lease over one namespace held on behalf of one process."""

    def __init__(
        self,
        client: K8Client,
        namespace: str,
        holder: LeaseHolder,
        renewal_service: "LeaseRenewalService",
        config: LeaseConfig | None = None,
        lease_name: str | None = None,
    ) -> None:
        """Initialize Lease."""
        self._client = client
        self._namespace = namespace
        self._holder = holder
        self._renewal_service = renewal_service
        self._config = config or LeaseConfig()
        self._lease_name = lease_name or namespace
        self._acquired = False
        self._lost: LeaseLostError | None = None

    @property
    def namespace(self) -> str:
        """Namespace protected by the lease."""
        return self._namespace

    @property
    def lease_name(self) -> str:
        """Name of the Lease object."""
        return self._lease_name

    @property
    def holder(self) -> LeaseHolder:
        """Identity this lease is acquired for."""
        return self._holder

    @property
    def config(self) -> LeaseConfig:
        """Timing configuration of the lease."""
        return self._config

    @property
    def duration_seconds(self) -> int:
        """Seconds the lease stays valid without renewal."""
        return self._config.duration_seconds

    @property
    def renewal_delay(self) -> float:
        """Seconds between two background renewals."""
        return self._config.renewal_delay

    def mark_lost(self, err: LeaseLostError) -> None:
        """Record that another holder took over the lease."""
        self._lost = err
        self._acquired = False

    def raise_if_lost(self) -> None:
        """Raise if the renewal service found the lease taken by another holder."""
        if self._lost is not None:
            raise self._lost

    async def _retrieve(
        self, exc: type[SoloException]
    ) -> LeaseRecord | None:
        """Read the lease, retrying while the API server reports internal errors."""
        attempt = 0
        while True:
            try:
                return await self._client.read_lease(
                    self._namespace, self._lease_name
                )
            except KubernetesException as err:
                if (
                    err.status_code == INTERNAL_SERVER_ERROR
                    and attempt < self._config.read_retries
                ):
                    attempt += 1
                    _LOGGER.debug(
                        "Retrying read of lease %s (%d/%d): %s",
                        self._lease_name,
                        attempt,
                        self._config.read_retries,
                        err,
                    )
                    await asyncio.sleep(self._config.read_retry_delay)
                    continue
                raise exc(
                    f"failed to read the lease for namespace '{self._namespace}': {err}"
                ) from err

    def _parse_holder(self, record: LeaseRecord) -> LeaseHolder | None:
        if not record.holder_identity:
            return None
        try:
            return LeaseHolder.from_json(record.holder_identity)
        except InputException as err:
            _LOGGER.warning("Ignoring lease %s holder: %s", record.name, err)
            return None

    def _held_by_self(self, record: LeaseRecord) -> bool:
        holder = self._parse_holder(record)
        return holder is not None and holder.is_same_process(self._holder)

    async def _write(self, record: LeaseRecord | None) -> LeaseRecord:
        """Create the lease, renew our own lease or take over a stale one."""
        identity = self._holder.to_json()
        try:
            if record is None:
                return await self._client.create_lease(
                    self._namespace, self._lease_name, identity, self.duration_seconds
                )
            if self._held_by_self(record):
                return await self._client.renew_lease(record)
            return await self._client.transfer_lease(
                record, identity, self.duration_seconds
            )
        except KubernetesException as err:
            if err.status_code == CONFLICT:
                raise LeaseAlreadyHeldError(
                    f"lease for namespace '{self._namespace}' was acquired concurrently"
                ) from err
            raise LeaseAcquisitionError(
                f"failed to write the lease for namespace '{self._namespace}': {err}"
            ) from err

    async def acquire(self) -> None:
        """Acquire the lease, failing if another live process holds it."""
        self.raise_if_lost()
        record = await self._retrieve(LeaseAcquisitionError)
        if record is None or record.is_expired() or self._held_by_self(record):
            if record is not None and record.is_expired():
                _LOGGER.info("Taking over expired lease for %s", self._namespace)
            await self._write(record)
        else:
            holder = self._parse_holder(record)
            if (
                holder is not None
                and holder.is_same_machine(self._holder)
                and not holder.is_process_alive()
            ):
                _LOGGER.info(
                    "Taking over lease for %s from exited process %s",
                    self._namespace,
                    holder,
                )
                await self._write(record)
            else:
                raise LeaseAlreadyHeldError(
                    _held_message(holder, record.holder_identity),
                    record.holder_identity,
                )
        self._acquired = True
        _LOGGER.debug("Acquired lease for %s as %s", self._namespace, self._holder)
        self._renewal_service.schedule(self)

    async def try_acquire(self) -> bool:
        """Acquire the lease, returning false instead of raising on failure."""
        try:
            await self.acquire()
        except SoloException as err:
            _LOGGER.debug("Unable to acquire lease for %s: %s", self._namespace, err)
            return False
        return True

    async def renew(self) -> None:
        """Extend the lease, failing if another holder has taken it."""
        record = await self._retrieve(LeaseAcquisitionError)
        if record is not None and not self._held_by_self(record):
            holder = self._parse_holder(record)
            raise LeaseLostError(_held_message(holder, record.holder_identity))
        await self._write(record)

    async def try_renew(self) -> bool:
        """Renew the lease, returning false instead of raising on failure."""
        try:
            await self.renew()
        except SoloException as err:
            _LOGGER.debug("Unable to renew lease for %s: %s", self._namespace, err)
            return False
        return True

    async def release(self) -> None:
        """Release the lease if held by this process.

        Releasing a lease that is gone, or that this process never acquired,
        does nothing.
        """
        await self._renewal_service.cancel(self)
        record = await self._retrieve(LeaseRelinquishmentError)
        if record is None:
            self._acquired = False
            return
        if self._held_by_self(record) or record.is_expired():
            try:
                await self._client.delete_lease(self._namespace, self._lease_name)
            except KubernetesException as err:
                raise LeaseRelinquishmentError(
                    "failed to delete the lease for namespace "
                    f"'{self._namespace}': {err}"
                ) from err
            _LOGGER.debug("Released lease for %s", self._namespace)
        elif self._acquired:
            holder = self._parse_holder(record)
            raise LeaseRelinquishmentError(
                _held_message(holder, record.holder_identity)
            )
        else:
            _LOGGER.debug(
                "Lease for %s is held by another process, nothing to release",
                self._namespace,
            )
        self._acquired = False

    async def try_release(self) -> bool:
        """Release the lease, returning false instead of raising on failure."""
        try:
            await self.release()
        except SoloException as err:
            _LOGGER.debug("Unable to release lease for %s: %s", self._namespace, err)
            return False
        return True

    async def is_acquired(self) -> bool:
        """Return true if this process currently holds an unexpired lease."""
        record = await self._retrieve(LeaseAcquisitionError)
        return (
            record is not None
            and self._held_by_self(record)
            and not record.is_expired()
        )

    async def is_expired(self) -> bool:
        """Return true if the lease is absent or no longer renewed."""
        record = await self._retrieve(LeaseAcquisitionError)
        return record is None or record.is_expired()
