"""Tests for the explorer command."""

from collections.abc import Callable

import pytest

from hedera_solo.commands import (
    CommandDependencies,
    ExplorerCommand,
    ExplorerDeployConfig,
    ExplorerDestroyConfig,
)
from hedera_solo.exceptions import PodReadinessError, RemoteConfigError
from hedera_solo.k8s.in_memory import InMemoryK8Client
from hedera_solo.k8s.resources import PodInfo
from hedera_solo.remote_config import (
    MirrorNodeExplorerComponent,
    RemoteConfigManager,
)


@pytest.fixture(name="explorer_pod")
def explorer_pod_fixture(cluster: InMemoryK8Client) -> PodInfo:
    """A ready explorer pod in cluster c1."""
    pod = PodInfo(
        name="hedera-explorer-0",
        namespace="solo",
        phase="Running",
        labels={"app.kubernetes.io/component": "hedera-explorer"},
        conditions={"Ready": "True"},
    )
    cluster.add_pod(pod)
    return pod


@pytest.mark.usefixtures("deployment", "explorer_pod")
async def test_deploy_and_destroy(
    deps: CommandDependencies,
    client: InMemoryK8Client,
    helm_calls: Callable[[], list[str]],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test the explorer is recorded on deploy and removed on destroy."""
    command = ExplorerCommand(deps)
    assert await command.deploy(
        ExplorerDeployConfig("solo", "c1", values_arg="--set replicas=1")
    )

    manager = RemoteConfigManager(client, "solo", deps.local_config)
    assert await manager.load()
    explorer = manager.components.get(
        "mirrorNodeExplorer", MirrorNodeExplorerComponent
    )
    assert explorer.cluster == "c1"
    assert explorer.namespace == "solo"
    assert helm_calls()[-1] == (
        "install hedera-explorer oci://ghcr.io/hashgraph/solo-charts/hedera-explorer "
        "--namespace solo --create-namespace --kube-context kind-c1 "
        "--set replicas=1"
    )

    monkeypatch.setenv("HELM_RELEASES", "hedera-explorer")
    assert await command.destroy(ExplorerDestroyConfig("solo", "c1"))
    assert helm_calls()[-1] == (
        "uninstall hedera-explorer --namespace solo --kube-context kind-c1"
    )
    assert await manager.load()
    assert "mirrorNodeExplorer" not in manager.components
    assert await client.read_lease("solo", "solo") is None


@pytest.mark.usefixtures("deployment")
async def test_deploy_not_ready(
    deps: CommandDependencies, client: InMemoryK8Client, cluster: InMemoryK8Client
) -> None:
    """Test an explorer whose pod never becomes ready is not recorded."""
    cluster.add_pod(
        PodInfo(
            name="hedera-explorer-0",
            namespace="solo",
            phase="Running",
            labels={"app.kubernetes.io/component": "hedera-explorer"},
            conditions={"Ready": "False"},
        )
    )
    with pytest.raises(PodReadinessError, match="hedera-explorer"):
        await ExplorerCommand(deps).deploy(ExplorerDeployConfig("solo", "c1"))

    manager = RemoteConfigManager(client, "solo", deps.local_config)
    assert await manager.load()
    assert manager.components.is_empty


@pytest.mark.usefixtures("deployment")
async def test_destroy_not_recorded(
    deps: CommandDependencies, helm_calls: Callable[[], list[str]]
) -> None:
    """Test destroying an explorer that was never deployed."""
    assert await ExplorerCommand(deps).destroy(ExplorerDestroyConfig("solo", "c1"))
    assert not any(call.startswith("uninstall") for call in helm_calls())


async def test_deploy_without_deployment(
    deps: CommandDependencies, client: InMemoryK8Client
) -> None:
    """Test deploying into a namespace with no remote config."""
    with pytest.raises(RemoteConfigError, match="Failed to load remote config"):
        await ExplorerCommand(deps).deploy(ExplorerDeployConfig("solo", "c1"))
    assert await client.read_lease("solo", "solo") is None
