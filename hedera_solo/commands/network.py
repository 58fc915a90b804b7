"""Deploy, destroy and refresh the consensus network of a deployment."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
import logging

from hedera_solo import constants
from hedera_solo.exceptions import InputException, MissingArgumentError
from hedera_solo.helm import Options
from hedera_solo.k8s.client import K8Client
from hedera_solo.pipeline import Mode, Phase, run_with_deadline, wait_for_pods
from hedera_solo.remote_config import (
    ConsensusNodeComponent,
    ConsensusNodeStates,
    EnvoyProxyComponent,
    HaProxyComponent,
    RemoteConfig,
    RemoteConfigManager,
)
from hedera_solo.remote_config.components import node_id_from_alias

from .base import BaseCommand, CommandContext, CommandDependencies

__all__ = [
    "NetworkCommand",
    "NetworkDeployConfig",
    "NetworkDestroyConfig",
    "NetworkRefreshConfig",
]

_LOGGER = logging.getLogger(__name__)


@dataclass
class NetworkDeployConfig:
    """Flags of `network deploy`."""

    namespace: str
    node_aliases: list[str]
    chart: str = constants.SOLO_DEPLOYMENT_CHART_PATH
    chart_version: str | None = None
    values_arg: str = ""
    release_name: str = constants.SOLO_DEPLOYMENT_CHART
    cluster_ref: str | None = None
    """Cluster receiving the node components, defaults to the first cluster."""
    command: str = "network deploy"


@dataclass
class NetworkDestroyConfig:
    """Flags of `network destroy`."""

    namespace: str
    delete_pvcs: bool = False
    delete_secrets: bool = False
    force: bool = False
    timeout: float | None = None
    """Seconds before the compensating action runs, from configuration when unset."""
    release_name: str = constants.SOLO_DEPLOYMENT_CHART
    command: str = "network destroy"

    @property
    def delete_namespace(self) -> bool:
        """Return true when the flags allow deleting the whole namespace."""
        return self.force and self.delete_pvcs and self.delete_secrets


@dataclass
class NetworkRefreshConfig:
    """Flags of `network refresh`."""

    namespace: str
    node_aliases: list[str] = field(default_factory=list)
    """Nodes to wait for, all consensus nodes of the remote config when empty."""
    chart: str = constants.SOLO_DEPLOYMENT_CHART_PATH
    chart_version: str | None = None
    values_arg: str = ""
    release_name: str = constants.SOLO_DEPLOYMENT_CHART
    command: str = "network refresh"


@dataclass
class NetworkContext(CommandContext):
    """State shared by the phases of a network command."""

    clusters: dict[str, str] = field(default_factory=dict)
    """Clusters of the deployment, from the remote config."""

    node_clusters: dict[str, str] = field(default_factory=dict)
    """Consensus nodes the command waits for, and the cluster of each."""

    success: bool = True


ClusterAction = Callable[[NetworkContext, str], Awaitable[None]]


class NetworkCommand(BaseCommand[NetworkContext]):
    """Network lifecycle of a deployment."""

    def __init__(self, deps: CommandDependencies) -> None:
        """Initialize NetworkCommand."""
        super().__init__(deps)
        self._readiness = deps.config.readiness

    def _resolve_clusters(self, remote: RemoteConfigManager) -> Phase[NetworkContext]:
        async def run(ctx: NetworkContext) -> None:
            ctx.clusters = remote.clusters
            if not ctx.clusters:
                raise MissingArgumentError(
                    f"No clusters recorded in the remote config of {ctx.namespace}"
                )

        return Phase(title="Resolve clusters", run=run)

    def _per_cluster(self, title: str, action: ClusterAction) -> Phase[NetworkContext]:
        """Run `action` concurrently for every cluster of the deployment."""

        def expand(ctx: NetworkContext) -> list[Phase[NetworkContext]]:
            phases: list[Phase[NetworkContext]] = []
            for cluster in ctx.clusters:

                async def run(ctx: NetworkContext, cluster: str = cluster) -> None:
                    await action(ctx, cluster)

                phases.append(Phase(title=f"{title} in cluster {cluster}", run=run))
            return phases

        return Phase(title=title, expand=expand, mode=Mode.CONCURRENT)

    def _wait_for_nodes(self) -> Phase[NetworkContext]:
        def expand(ctx: NetworkContext) -> list[Phase[NetworkContext]]:
            phases: list[Phase[NetworkContext]] = []
            for alias, cluster in ctx.node_clusters.items():

                async def run(
                    ctx: NetworkContext,
                    alias: str = alias,
                    cluster: str = cluster,
                ) -> None:
                    await wait_for_pods(
                        self._deps.k8(cluster),
                        ctx.namespace,
                        [
                            constants.NODE_POD_TYPE_LABEL,
                            constants.NODE_POD_LABEL_TEMPLATE.format(alias=alias),
                        ],
                        max_attempts=self._readiness.pods_running_max_attempts,
                        delay=self._readiness.pods_running_delay,
                    )

                phases.append(
                    Phase(title=f"Check node {alias} pod is running", run=run)
                )
            return phases

        return Phase(
            title="Check node pods are running", expand=expand, mode=Mode.CONCURRENT
        )

    async def deploy(self, config: NetworkDeployConfig) -> bool:
        """Install the deployment chart and record the nodes in the remote config."""
        remote = self._deps.remote_config_manager(config.namespace)

        async def initialize(ctx: NetworkContext) -> None:
            self._require_namespace(ctx)
            if not config.node_aliases:
                raise MissingArgumentError("At least one node alias is required")
            for alias in config.node_aliases:
                node_id_from_alias(alias)

        async def assign_nodes(ctx: NetworkContext) -> None:
            cluster = config.cluster_ref or next(iter(ctx.clusters))
            if cluster not in ctx.clusters:
                raise InputException(
                    f"Cluster {cluster} is not part of the deployment "
                    f"in {ctx.namespace}"
                )
            ctx.node_clusters = {alias: cluster for alias in config.node_aliases}

        async def install(ctx: NetworkContext, cluster: str) -> None:
            await self._deps.helm.install(
                ctx.namespace,
                config.release_name,
                config.chart,
                Options(
                    version=config.chart_version,
                    values_arg=config.values_arg,
                    kube_context=self._deps.context_for_cluster(cluster),
                    timeout=self._readiness.helm_timeout,
                ),
            )

        async def add_nodes(ctx: NetworkContext) -> None:
            async def update(remote_config: RemoteConfig) -> None:
                components = remote_config.components
                for alias, cluster in ctx.node_clusters.items():
                    node = ConsensusNodeComponent(
                        name=alias,
                        cluster=cluster,
                        namespace=ctx.namespace,
                        state=ConsensusNodeStates.INITIALIZED,
                        node_id=node_id_from_alias(alias),
                    )
                    if alias in components:
                        components.edit(node)
                    else:
                        components.add(node)
                    envoy = constants.ENVOY_PROXY_NAME_TEMPLATE.format(alias=alias)
                    haproxy = constants.HAPROXY_NAME_TEMPLATE.format(alias=alias)
                    for proxy in (
                        EnvoyProxyComponent(
                            name=envoy, cluster=cluster, namespace=ctx.namespace
                        ),
                        HaProxyComponent(
                            name=haproxy, cluster=cluster, namespace=ctx.namespace
                        ),
                    ):
                        if proxy.name not in components:
                            components.add(proxy)

            await remote.modify(update)

        phases: list[Phase[NetworkContext]] = [
            Phase(title="Initialize", run=initialize),
            *self.lease_phases(),
            remote.build_load_phase(config.command),
            self._resolve_clusters(remote),
            Phase(title="Assign nodes to cluster", run=assign_nodes),
            self._per_cluster(f"Install chart '{config.release_name}'", install),
            self._wait_for_nodes(),
            Phase(title="Add node and proxies to remote config", run=add_nodes),
        ]
        ctx = NetworkContext(namespace=config.namespace)
        await self.execute(phases, ctx)
        return ctx.success

    async def destroy(self, config: NetworkDestroyConfig) -> bool:
        """Remove the network, returning false if the teardown timed out.

        When the teardown does not finish in time the namespace is deleted if
        the flags allow it, otherwise the components are cleared from the
        remote config.
        """
        remote = self._deps.remote_config_manager(config.namespace)
        timeout = (
            config.timeout
            if config.timeout is not None
            else self._readiness.network_destroy_timeout
        )

        async def initialize(ctx: NetworkContext) -> None:
            self._require_namespace(ctx)

        def clients(ctx: NetworkContext) -> list[K8Client]:
            # The primary cluster holding the lease comes last
            result: list[K8Client] = []
            for client in [*(self._deps.k8(c) for c in ctx.clusters), self._deps.k8()]:
                if client in result:
                    result.remove(client)
                result.append(client)
            return result

        async def delete_namespace(ctx: NetworkContext) -> None:
            _LOGGER.info("Deleting namespace %s", ctx.namespace)
            ctx.namespace_deleted = True
            for client in clients(ctx):
                await client.delete_namespace(ctx.namespace)

        async def uninstall(ctx: NetworkContext, cluster: str) -> None:
            await self._deps.helm.uninstall(
                ctx.namespace,
                config.release_name,
                self._deps.context_for_cluster(cluster),
                self._readiness.helm_timeout,
            )

        async def teardown(ctx: NetworkContext) -> None:
            await asyncio.gather(
                *(uninstall(ctx, cluster) for cluster in ctx.clusters)
            )
            for client in clients(ctx):
                if config.delete_pvcs:
                    for pvc in await client.list_pvcs(ctx.namespace):
                        await client.delete_pvc(ctx.namespace, pvc)
                if config.delete_secrets:
                    for secret in await client.list_secrets(ctx.namespace):
                        await client.delete_secret(ctx.namespace, secret)
            if config.delete_pvcs and config.delete_secrets:
                await delete_namespace(ctx)
            else:
                await remote.delete_components()

        async def compensate(ctx: NetworkContext) -> None:
            if config.delete_namespace:
                await delete_namespace(ctx)
            else:
                await remote.delete_components()

        async def run_destroy(ctx: NetworkContext) -> None:
            ctx.success = await run_with_deadline(
                teardown(ctx),
                timeout,
                lambda: compensate(ctx),
                name="Network destroy",
                task_service=self._deps.tasks(),
            )
            if not ctx.success:
                _LOGGER.warning(
                    "Network destroy of %s did not finish within %.0fs, "
                    "resources may be left behind",
                    ctx.namespace,
                    timeout,
                )

        phases: list[Phase[NetworkContext]] = [
            Phase(title="Initialize", run=initialize),
            *self.lease_phases(),
            remote.build_load_phase(config.command),
            self._resolve_clusters(remote),
            Phase(title="Running network destroy", run=run_destroy),
        ]
        ctx = NetworkContext(namespace=config.namespace)
        await self.execute(phases, ctx)
        return ctx.success

    async def refresh(self, config: NetworkRefreshConfig) -> bool:
        """Upgrade the deployment chart and wait for the nodes to run again."""
        remote = self._deps.remote_config_manager(config.namespace)

        async def initialize(ctx: NetworkContext) -> None:
            self._require_namespace(ctx)

        def selected_aliases(ctx: NetworkContext) -> list[str]:
            return list(config.node_aliases) or [
                node.name for node in remote.get_consensus_nodes()
            ]

        async def select_nodes(ctx: NetworkContext) -> None:
            nodes = {node.name: node for node in remote.get_consensus_nodes()}
            ctx.node_clusters = {
                alias: nodes[alias].cluster for alias in selected_aliases(ctx)
            }
            if not ctx.node_clusters:
                raise MissingArgumentError(
                    "No consensus nodes recorded in the remote config of "
                    f"{ctx.namespace}"
                )

        async def upgrade(ctx: NetworkContext, cluster: str) -> None:
            await self._deps.helm.upgrade(
                ctx.namespace,
                config.release_name,
                config.chart,
                Options(
                    version=config.chart_version,
                    values_arg=config.values_arg,
                    kube_context=self._deps.context_for_cluster(cluster),
                    timeout=self._readiness.helm_timeout,
                ),
            )

        phases: list[Phase[NetworkContext]] = [
            Phase(title="Initialize", run=initialize),
            *self.lease_phases(),
            remote.build_load_phase(config.command),
            self._resolve_clusters(remote),
            remote.build_validate_node_states_phase(
                selected_aliases,
                excluded_states=[
                    ConsensusNodeStates.REQUESTED,
                    ConsensusNodeStates.NON_DEPLOYED,
                ],
            ),
            Phase(title="Select nodes", run=select_nodes),
            self._per_cluster(f"Upgrade chart '{config.release_name}'", upgrade),
            self._wait_for_nodes(),
        ]
        ctx = NetworkContext(namespace=config.namespace)
        await self.execute(phases, ctx)
        return ctx.success
