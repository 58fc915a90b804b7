"""Polling waits for pods to reach a phase or become ready."""

import asyncio
from collections.abc import Callable
import logging

from hedera_solo import constants
from hedera_solo.exceptions import KubernetesException, PodReadinessError
from hedera_solo.k8s.client import K8Client, label_selector
from hedera_solo.k8s.resources import PodInfo

__all__ = [
    "wait_for_pods",
    "wait_for_pods_ready",
]

_LOGGER = logging.getLogger(__name__)


async def wait_for_pods(
    client: K8Client,
    namespace: str,
    labels: list[str],
    *,
    phases: list[str] | None = None,
    pod_count: int = 1,
    max_attempts: int = constants.PODS_RUNNING_MAX_ATTEMPTS,
    delay: float = constants.PODS_RUNNING_DELAY,
    predicate: Callable[[PodInfo], bool] | None = None,
) -> list[PodInfo]:
    """Poll until exactly `pod_count` pods match `labels` and are in `phases`.

    API errors while listing count as a failed attempt.
    """
    phases = phases or [constants.POD_PHASE_RUNNING]
    selector = label_selector(labels)
    for attempt in range(1, max_attempts + 1):
        try:
            pods = await client.list_pods(namespace, selector)
        except KubernetesException as err:
            _LOGGER.debug("Failed to list pods for %s: %s", selector, err)
        else:
            if len(pods) == pod_count and all(
                pod.phase in phases and (predicate is None or predicate(pod))
                for pod in pods
            ):
                _LOGGER.debug(
                    "Found %d pods for %s (attempt %d/%d)",
                    pod_count,
                    selector,
                    attempt,
                    max_attempts,
                )
                return pods
            _LOGGER.debug(
                "Waiting for %d pods for %s, found %d (attempt %d/%d)",
                pod_count,
                selector,
                len(pods),
                attempt,
                max_attempts,
            )
        if attempt < max_attempts:
            await asyncio.sleep(delay)
    raise PodReadinessError(pod_count, labels, phases, max_attempts, max_attempts)


async def wait_for_pods_ready(
    client: K8Client,
    namespace: str,
    labels: list[str],
    *,
    pod_count: int = 1,
    max_attempts: int = constants.PODS_READY_MAX_ATTEMPTS,
    delay: float = constants.PODS_READY_DELAY,
) -> list[PodInfo]:
    """Poll until the matching pods are running with a true Ready condition."""
    return await wait_for_pods(
        client,
        namespace,
        labels,
        pod_count=pod_count,
        max_attempts=max_attempts,
        delay=delay,
        predicate=lambda pod: pod.is_ready,
    )
