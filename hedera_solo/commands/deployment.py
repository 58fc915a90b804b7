"""Create a deployment and its remote config."""

from dataclasses import dataclass
import logging

from hedera_solo.exceptions import InputException
from hedera_solo.pipeline import Phase

from .base import BaseCommand, CommandContext

__all__ = [
    "DeploymentCommand",
    "DeploymentCreateConfig",
]

_LOGGER = logging.getLogger(__name__)


@dataclass
class DeploymentCreateConfig:
    """Flags of `deployment create`."""

    namespace: str
    command: str = "deployment create"


class DeploymentCommand(BaseCommand[CommandContext]):
    """Deployment lifecycle."""

    async def create(self, config: DeploymentCreateConfig) -> bool:
        """Create the remote config of a new deployment."""
        remote = self._deps.remote_config_manager(config.namespace)

        async def initialize(ctx: CommandContext) -> None:
            self._require_namespace(ctx)
            # Checked before the lease creates the namespace
            if self._deps.local_config is None:
                raise InputException("Local config doesn't exist")

        phases: list[Phase[CommandContext]] = [
            Phase(title="Initialize", run=initialize),
            *self.lease_phases(),
            remote.build_create_phase(config.command),
        ]
        await self.execute(phases, CommandContext(namespace=config.namespace))
        return True
