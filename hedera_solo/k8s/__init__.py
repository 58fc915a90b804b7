"""Kubernetes access for hedera-solo.

The `K8Client` interface is implemented with kr8s for real clusters and in
memory for tests.
"""

from .client import K8Client, K8Factory, label_selector
from .resources import ConfigMapRecord, LeaseRecord, PodInfo

__all__ = [
    "K8Client",
    "K8Factory",
    "label_selector",
    "ConfigMapRecord",
    "LeaseRecord",
    "PodInfo",
]
