"""Creates the lease for the namespace a command operates on."""

import logging

from hedera_solo.config import SoloConfig
from hedera_solo.exceptions import KubernetesException, LeaseAcquisitionError
from hedera_solo.k8s.client import K8Client

from .holder import LeaseHolder
from .lease import Lease
from .renewal import LeaseRenewalService

__all__ = [
    "LeaseManager",
]

_LOGGER = logging.getLogger(__name__)


class LeaseManager:
    """Hands out leases bound to the configured namespace."""

    def __init__(
        self,
        client: K8Client,
        config: SoloConfig,
        renewal_service: LeaseRenewalService | None = None,
        holder: LeaseHolder | None = None,
    ) -> None:
        """Initialize LeaseManager."""
        self._client = client
        self._config = config
        self._renewal_service = renewal_service or LeaseRenewalService()
        self._holder = holder or LeaseHolder.default()

    @property
    def renewal_service(self) -> LeaseRenewalService:
        """Service renewing the leases handed out by this manager."""
        return self._renewal_service

    async def _ensure_namespace(self, namespace: str) -> None:
        try:
            if await self._client.has_namespace(namespace):
                return
            _LOGGER.info("Creating namespace %s for the lease", namespace)
            await self._client.create_namespace(namespace)
            created = await self._client.has_namespace(namespace)
        except KubernetesException as err:
            raise LeaseAcquisitionError(
                f"failed to create the '{namespace}' namespace: {err}"
            ) from err
        if not created:
            raise LeaseAcquisitionError(f"failed to create the '{namespace}' namespace")

    async def create(self) -> Lease:
        """Return a new lease for the configured namespace.

        The namespace is created first if it does not exist yet.
        """
        namespace = self._config.target_namespace
        await self._ensure_namespace(namespace)
        return Lease(
            self._client,
            namespace,
            self._holder,
            self._renewal_service,
            self._config.lease,
        )
