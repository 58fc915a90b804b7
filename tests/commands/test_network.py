"""Tests for the network command."""

from collections.abc import Callable

import pytest

from hedera_solo.commands import (
    CommandDependencies,
    NetworkCommand,
    NetworkDeployConfig,
    NetworkDestroyConfig,
    NetworkRefreshConfig,
)
from hedera_solo.exceptions import (
    InputException,
    InvalidNodeStateError,
    MissingArgumentError,
    PodReadinessError,
)
from hedera_solo.k8s.in_memory import InMemoryK8Client
from hedera_solo.remote_config import (
    ComponentType,
    ConsensusNodeComponent,
    ConsensusNodeStates,
    RemoteConfig,
    RemoteConfigManager,
)

pytestmark = pytest.mark.usefixtures("deployment")


async def load_remote(
    client: InMemoryK8Client, deps: CommandDependencies
) -> RemoteConfigManager:
    manager = RemoteConfigManager(client, "solo", deps.local_config)
    assert await manager.load()
    return manager


@pytest.mark.usefixtures("node_pods")
async def test_deploy(
    deps: CommandDependencies,
    client: InMemoryK8Client,
    helm_calls: Callable[[], list[str]],
) -> None:
    """Test deploying two nodes records them and their proxies."""
    config = NetworkDeployConfig("solo", ["node1", "node2"])
    assert await NetworkCommand(deps).deploy(config)

    calls = helm_calls()
    installs = [call for call in calls if call.startswith("install ")]
    assert installs == [
        "install solo-deployment oci://ghcr.io/hashgraph/solo-charts/solo-deployment "
        "--namespace solo --create-namespace --kube-context kind-c1"
    ]

    manager = await load_remote(client, deps)
    nodes = manager.get_consensus_nodes()
    assert [(node.name, node.cluster, node.state) for node in nodes] == [
        ("node1", "c1", ConsensusNodeStates.INITIALIZED),
        ("node2", "c1", ConsensusNodeStates.INITIALIZED),
    ]
    assert [node.node_id for node in nodes] == [0, 1]
    components = manager.components
    assert sorted(c.name for c in components.of_type(ComponentType.ENVOY_PROXY)) == [
        "envoy-proxy-node1",
        "envoy-proxy-node2",
    ]
    assert sorted(c.name for c in components.of_type(ComponentType.HA_PROXY)) == [
        "haproxy-node1",
        "haproxy-node2",
    ]
    assert manager.remote_config.command_history[-1] == (
        "Executed by operator@example.com: network deploy"
    )
    assert await client.read_lease("solo", "solo") is None


@pytest.mark.usefixtures("node_pods")
async def test_deploy_twice(
    deps: CommandDependencies, client: InMemoryK8Client
) -> None:
    """Test deploying again edits the recorded nodes in place."""
    command = NetworkCommand(deps)
    await command.deploy(NetworkDeployConfig("solo", ["node1"]))
    await command.deploy(NetworkDeployConfig("solo", ["node1"]))

    manager = await load_remote(client, deps)
    assert manager.components.names == [
        "node1",
        "envoy-proxy-node1",
        "haproxy-node1",
    ]


async def test_deploy_pods_not_running(
    deps: CommandDependencies, client: InMemoryK8Client
) -> None:
    """Test nodes are not recorded when their pods never start."""
    with pytest.raises(PodReadinessError, match="node-name=node1"):
        await NetworkCommand(deps).deploy(NetworkDeployConfig("solo", ["node1"]))

    manager = await load_remote(client, deps)
    assert manager.components.is_empty
    assert await client.read_lease("solo", "solo") is None


async def test_deploy_invalid_alias(
    deps: CommandDependencies, client: InMemoryK8Client
) -> None:
    """Test node aliases are checked before the lease is taken."""
    writes = client.config_map_writes
    with pytest.raises(InputException):
        await NetworkCommand(deps).deploy(NetworkDeployConfig("solo", ["nodeA"]))
    with pytest.raises(MissingArgumentError):
        await NetworkCommand(deps).deploy(NetworkDeployConfig("solo", []))
    assert client.config_map_writes == writes


async def test_deploy_unknown_cluster(deps: CommandDependencies) -> None:
    """Test nodes can only be placed in clusters of the deployment."""
    config = NetworkDeployConfig("solo", ["node1"], cluster_ref="c9")
    with pytest.raises(InputException, match="Cluster c9 is not part"):
        await NetworkCommand(deps).deploy(config)


@pytest.fixture(name="deployed")
async def deployed_fixture(
    deps: CommandDependencies,
    deployment: None,
    node_pods: None,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A deployment running node1 and node2 with the chart installed."""
    await NetworkCommand(deps).deploy(NetworkDeployConfig("solo", ["node1", "node2"]))
    monkeypatch.setenv("HELM_RELEASES", "solo-deployment")


@pytest.mark.usefixtures("deployed")
async def test_destroy(
    deps: CommandDependencies,
    client: InMemoryK8Client,
    helm_calls: Callable[[], list[str]],
) -> None:
    """Test destroying the network keeps the namespace without cleanup flags."""
    assert await NetworkCommand(deps).destroy(NetworkDestroyConfig("solo"))

    assert "uninstall solo-deployment --namespace solo --kube-context kind-c1" in (
        helm_calls()
    )
    assert await client.has_namespace("solo")
    manager = await load_remote(client, deps)
    assert manager.components.is_empty
    assert await client.read_lease("solo", "solo") is None


@pytest.mark.usefixtures("deployed")
async def test_destroy_delete_all(
    deps: CommandDependencies,
    client: InMemoryK8Client,
    cluster: InMemoryK8Client,
) -> None:
    """Test deleting volumes and secrets removes the namespace everywhere."""
    cluster.add_pvc("solo", "data-node1")
    cluster.add_secret("solo", "node1-keys")
    deleted: list[str] = []
    for target in (client, cluster):
        target.add_listener(
            lambda op, ns, name: deleted.append(f"{op} {name}")
            if op.startswith("delete_")
            else None
        )

    config = NetworkDestroyConfig("solo", delete_pvcs=True, delete_secrets=True)
    assert await NetworkCommand(deps).destroy(config)

    assert deleted == [
        "delete_pvc data-node1",
        "delete_secret node1-keys",
        "delete_namespace solo",
    ]
    assert not await client.has_namespace("solo")
    assert await client.read_config_map("solo", "solo-remote-config") is None


@pytest.mark.usefixtures("deployed")
async def test_destroy_timeout_clears_components(
    deps: CommandDependencies,
    client: InMemoryK8Client,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test a slow teardown clears the components once and keeps the namespace."""
    monkeypatch.setenv("HELM_UNINSTALL_DELAY", "5")
    namespace_deletes: list[str] = []
    client.add_listener(
        lambda op, ns, name: namespace_deletes.append(name)
        if op == "delete_namespace"
        else None
    )
    writes = client.config_map_writes

    config = NetworkDestroyConfig(
        "solo", delete_pvcs=True, delete_secrets=True, timeout=0.2
    )
    assert not await NetworkCommand(deps).destroy(config)

    # One write records the command, one clears the components
    assert client.config_map_writes == writes + 2
    assert not namespace_deletes
    manager = await load_remote(client, deps)
    assert manager.components.is_empty
    assert await client.read_lease("solo", "solo") is None


@pytest.mark.usefixtures("deployed")
async def test_destroy_timeout_deletes_namespace(
    deps: CommandDependencies,
    client: InMemoryK8Client,
    cluster: InMemoryK8Client,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test a slow forced teardown deletes the namespace instead."""
    monkeypatch.setenv("HELM_UNINSTALL_DELAY", "5")
    namespace_deletes: list[str] = []
    for target in (client, cluster):
        target.add_listener(
            lambda op, ns, name: namespace_deletes.append(name)
            if op == "delete_namespace"
            else None
        )
    writes = client.config_map_writes

    config = NetworkDestroyConfig(
        "solo", delete_pvcs=True, delete_secrets=True, force=True, timeout=0.2
    )
    assert not await NetworkCommand(deps).destroy(config)

    # Only the command history was written before the namespace went away
    assert client.config_map_writes == writes + 1
    assert namespace_deletes == ["solo"]
    assert not await client.has_namespace("solo")
    assert await client.read_lease("solo", "solo") is None


@pytest.mark.usefixtures("deployed")
async def test_refresh(
    deps: CommandDependencies,
    client: InMemoryK8Client,
    helm_calls: Callable[[], list[str]],
) -> None:
    """Test refreshing upgrades the chart and waits for every node."""
    assert await NetworkCommand(deps).refresh(NetworkRefreshConfig("solo"))

    upgrades = [call for call in helm_calls() if call.startswith("upgrade ")]
    assert upgrades == [
        "upgrade solo-deployment oci://ghcr.io/hashgraph/solo-charts/solo-deployment "
        "--namespace solo --reuse-values --kube-context kind-c1"
    ]
    manager = await load_remote(client, deps)
    assert manager.remote_config.command_history[-1].endswith(": network refresh")


@pytest.mark.usefixtures("deployed")
async def test_refresh_requested_node(
    deps: CommandDependencies, client: InMemoryK8Client
) -> None:
    """Test nodes that were never deployed cannot be refreshed."""
    manager = await load_remote(client, deps)

    async def request(remote_config: RemoteConfig) -> None:
        remote_config.components.edit(
            ConsensusNodeComponent(
                name="node2",
                cluster="c1",
                namespace="solo",
                state=ConsensusNodeStates.REQUESTED,
                node_id=1,
            )
        )

    await manager.modify(request)

    command = NetworkCommand(deps)
    with pytest.raises(InvalidNodeStateError, match="node2 has invalid state"):
        await command.refresh(NetworkRefreshConfig("solo"))
    # Other nodes can still be refreshed on their own
    assert await command.refresh(NetworkRefreshConfig("solo", ["node1"]))


@pytest.mark.usefixtures("deployed")
async def test_refresh_unknown_node(deps: CommandDependencies) -> None:
    """Test refreshing a node missing from the remote config."""
    with pytest.raises(InvalidNodeStateError, match="node3 not found"):
        await NetworkCommand(deps).refresh(NetworkRefreshConfig("solo", ["node3"]))


async def test_refresh_without_nodes(deps: CommandDependencies) -> None:
    """Test refreshing a deployment that has no consensus nodes."""
    with pytest.raises(MissingArgumentError, match="No consensus nodes"):
        await NetworkCommand(deps).refresh(NetworkRefreshConfig("solo"))
