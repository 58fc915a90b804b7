"""Pipeline phases for namespace leases."""

import asyncio
from collections.abc import Callable
import logging
from typing import TypeVar

from hedera_solo.exceptions import LeaseAcquisitionError, LeaseAlreadyHeldError
from hedera_solo.pipeline import Phase

from .lease import Lease

__all__ = [
    "acquire_with_retry",
    "acquire_lease_phase",
]

_LOGGER = logging.getLogger(__name__)

C = TypeVar("C")


async def acquire_with_retry(lease: Lease) -> None:
    """Acquire the lease, backing off exponentially while another holder has it."""
    config = lease.config
    attempts = max(config.acquire_attempts, 1)
    for attempt in range(attempts):
        try:
            await lease.acquire()
            return
        except LeaseAlreadyHeldError as err:
            if attempt + 1 >= attempts:
                raise LeaseAcquisitionError(
                    f"failed to acquire the lease for '{lease.namespace}' "
                    f"after {attempts} attempts: {err}"
                ) from err
            delay = config.backoff(attempt)
            _LOGGER.info(
                "%s, retrying in %.1fs (%d/%d)", err, delay, attempt + 1, attempts
            )
            await asyncio.sleep(delay)


def acquire_lease_phase(get_lease: Callable[[C], Lease]) -> Phase[C]:
    """Return a phase acquiring the lease found in the context."""

    async def run(ctx: C) -> None:
        await acquire_with_retry(get_lease(ctx))

    return Phase(title="Acquire lease", run=run)
