"""Fixtures for command tests."""

import pytest

from hedera_solo.commands import (
    CommandDependencies,
    DeploymentCommand,
    DeploymentCreateConfig,
)
from hedera_solo.config import SoloConfig
from hedera_solo.helm import Helm
from hedera_solo.k8s.in_memory import InMemoryK8Client, InMemoryK8Factory
from hedera_solo.k8s.resources import PodInfo
from hedera_solo.lease import LeaseHolder
from hedera_solo.local_config import LocalConfig
from hedera_solo.task.service import TaskServiceImpl


@pytest.fixture(name="deps")
def deps_fixture(
    solo_config: SoloConfig,
    k8_factory: InMemoryK8Factory,
    helm: Helm,
    local_config: LocalConfig,
    task_service: TaskServiceImpl,
    holder: LeaseHolder,
) -> CommandDependencies:
    """Collaborators of a command run against in-memory clusters."""
    return CommandDependencies(
        config=solo_config,
        k8_factory=k8_factory,
        helm=helm,
        local_config=local_config,
        task_service=task_service,
        holder=holder,
    )


@pytest.fixture(name="cluster")
def cluster_fixture(k8_factory: InMemoryK8Factory) -> InMemoryK8Client:
    """Client of the c1 cluster the workloads run in."""
    client = k8_factory.get("kind-c1")
    assert isinstance(client, InMemoryK8Client)
    return client


@pytest.fixture(name="deployment")
async def deployment_fixture(deps: CommandDependencies) -> None:
    """Create the deployment and its remote config."""
    await DeploymentCommand(deps).create(DeploymentCreateConfig(namespace="solo"))


@pytest.fixture(name="node_pods")
def node_pods_fixture(cluster: InMemoryK8Client) -> None:
    """Running pods of node1 and node2 in cluster c1."""
    for alias in ("node1", "node2"):
        cluster.add_pod(
            PodInfo(
                name=f"network-{alias}-0",
                namespace="solo",
                phase="Running",
                labels={
                    "solo.hedera.com/type": "network-node",
                    "solo.hedera.com/node-name": alias,
                },
            )
        )
