"""Namespace leases serializing commands against one deployment."""

from .holder import LeaseHolder
from .lease import Lease
from .manager import LeaseManager
from .renewal import LeaseRenewalService
from .tasks import acquire_lease_phase, acquire_with_retry

__all__ = [
    "Lease",
    "LeaseHolder",
    "LeaseManager",
    "LeaseRenewalService",
    "acquire_lease_phase",
    "acquire_with_retry",
]
