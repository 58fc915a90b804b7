"""Commands built as pipelines over the lease, remote config and Helm."""

from .base import CommandContext, CommandDependencies
from .deployment import DeploymentCommand, DeploymentCreateConfig
from .explorer import ExplorerCommand, ExplorerDeployConfig, ExplorerDestroyConfig
from .network import (
    NetworkCommand,
    NetworkDeployConfig,
    NetworkDestroyConfig,
    NetworkRefreshConfig,
)

__all__ = [
    "CommandContext",
    "CommandDependencies",
    "DeploymentCommand",
    "DeploymentCreateConfig",
    "ExplorerCommand",
    "ExplorerDeployConfig",
    "ExplorerDestroyConfig",
    "NetworkCommand",
    "NetworkDeployConfig",
    "NetworkDestroyConfig",
    "NetworkRefreshConfig",
]
