"""Deploy and destroy the mirror node explorer of a deployment."""

from dataclasses import dataclass
import logging

from hedera_solo import constants
from hedera_solo.helm import Options
from hedera_solo.pipeline import Phase, wait_for_pods_ready
from hedera_solo.remote_config import (
    ComponentType,
    MirrorNodeExplorerComponent,
    RemoteConfig,
)

from .base import BaseCommand, CommandContext

__all__ = [
    "ExplorerCommand",
    "ExplorerDeployConfig",
    "ExplorerDestroyConfig",
]

_LOGGER = logging.getLogger(__name__)


@dataclass
class ExplorerDeployConfig:
    """Flags of `explorer deploy`."""

    namespace: str
    cluster_ref: str
    chart: str = constants.HEDERA_EXPLORER_CHART_PATH
    chart_version: str | None = None
    values_arg: str = ""
    command: str = "explorer deploy"


@dataclass
class ExplorerDestroyConfig:
    """Flags of `explorer destroy`."""

    namespace: str
    cluster_ref: str | None = None
    command: str = "explorer destroy"


class ExplorerCommand(BaseCommand[CommandContext]):
    """Explorer lifecycle."""

    async def deploy(self, config: ExplorerDeployConfig) -> bool:
        """Install the explorer chart and record it in the remote config."""
        remote = self._deps.remote_config_manager(config.namespace)
        readiness = self._deps.config.readiness

        async def initialize(ctx: CommandContext) -> None:
            self._require_namespace(ctx)

        async def install(ctx: CommandContext) -> None:
            await self._deps.helm.install(
                ctx.namespace,
                constants.HEDERA_EXPLORER_RELEASE_NAME,
                config.chart,
                Options(
                    version=config.chart_version,
                    values_arg=config.values_arg,
                    kube_context=self._deps.context_for_cluster(config.cluster_ref),
                    timeout=readiness.helm_timeout,
                ),
            )

        async def wait_ready(ctx: CommandContext) -> None:
            await wait_for_pods_ready(
                self._deps.k8(config.cluster_ref),
                ctx.namespace,
                [constants.EXPLORER_LABEL],
                max_attempts=readiness.pods_ready_max_attempts,
                delay=readiness.pods_ready_delay,
            )

        async def add_component(ctx: CommandContext) -> None:
            async def update(remote_config: RemoteConfig) -> None:
                remote_config.components.add(
                    MirrorNodeExplorerComponent(
                        name=constants.HEDERA_EXPLORER_COMPONENT_NAME,
                        cluster=config.cluster_ref,
                        namespace=ctx.namespace,
                    )
                )

            await remote.modify(update)

        phases: list[Phase[CommandContext]] = [
            Phase(title="Initialize", run=initialize),
            *self.lease_phases(),
            remote.build_load_phase(config.command),
            Phase(title="Install explorer", run=install),
            Phase(title="Check explorer pod is ready", run=wait_ready),
            Phase(title="Add explorer to remote config", run=add_component),
        ]
        await self.execute(phases, CommandContext(namespace=config.namespace))
        return True

    async def destroy(self, config: ExplorerDestroyConfig) -> bool:
        """Uninstall the explorer chart and remove it from the remote config."""
        remote = self._deps.remote_config_manager(config.namespace)

        async def initialize(ctx: CommandContext) -> None:
            self._require_namespace(ctx)

        async def uninstall(ctx: CommandContext) -> None:
            await self._deps.helm.uninstall(
                ctx.namespace,
                constants.HEDERA_EXPLORER_RELEASE_NAME,
                self._deps.context_for_cluster(config.cluster_ref),
                self._deps.config.readiness.helm_timeout,
            )

        async def remove_component(ctx: CommandContext) -> None:
            async def update(remote_config: RemoteConfig) -> None:
                remote_config.components.remove(
                    constants.HEDERA_EXPLORER_COMPONENT_NAME,
                    ComponentType.MIRROR_NODE_EXPLORER,
                )

            await remote.modify(update)

        def not_recorded(ctx: CommandContext) -> bool:
            return (
                constants.HEDERA_EXPLORER_COMPONENT_NAME
                not in remote.remote_config.components
            )

        phases: list[Phase[CommandContext]] = [
            Phase(title="Initialize", run=initialize),
            *self.lease_phases(),
            remote.build_load_phase(config.command),
            Phase(title="Uninstall explorer", run=uninstall),
            Phase(
                title="Remove explorer from remote config",
                run=remove_component,
                skip=not_recorded,
            ),
        ]
        await self.execute(phases, CommandContext(namespace=config.namespace))
        return True
