"""Shared wiring for commands.

Commands receive every collaborator through `CommandDependencies` and run as
a `Pipeline` whose first phases create and acquire the namespace lease and
whose cleanup always releases it.
"""

import dataclasses
from dataclasses import dataclass, field
import logging
from typing import Any, Generic, TypeVar

from hedera_solo.config import SoloConfig
from hedera_solo.exceptions import InputException
from hedera_solo.helm import Helm
from hedera_solo.k8s.client import K8Client, K8Factory
from hedera_solo.lease import (
    Lease,
    LeaseHolder,
    LeaseManager,
    LeaseRenewalService,
    acquire_lease_phase,
)
from hedera_solo.local_config import LocalConfig
from hedera_solo.pipeline import Phase, Pipeline
from hedera_solo.remote_config import RemoteConfigManager, RemoteConfigValidator
from hedera_solo.task import TaskService, get_task_service

__all__ = [
    "CommandDependencies",
    "CommandContext",
    "BaseCommand",
]

_LOGGER = logging.getLogger(__name__)


@dataclass
class CommandDependencies:
    """Collaborators shared by every command of one process."""

    config: SoloConfig
    """Configuration resolved from flags and the environment."""

    k8_factory: K8Factory
    """Kubernetes clients per kube context."""

    helm: Helm = field(default_factory=Helm)
    """Helm release management."""

    local_config: LocalConfig | None = None
    """The local config, None if the user has not created one."""

    task_service: TaskService | None = None
    """Task service for concurrent phases and background work."""

    holder: LeaseHolder = field(default_factory=LeaseHolder.default)
    """Lease holder identity of this process."""

    def tasks(self) -> TaskService:
        """Return the task service in use."""
        if self.task_service is None:
            self.task_service = get_task_service()
        return self.task_service

    def context_for_cluster(self, cluster: str | None) -> str | None:
        """Return the kube context of a cluster reference."""
        if cluster is not None and self.local_config is not None:
            if (context := self.local_config.context_for_cluster(cluster)) is not None:
                return context
        return self.config.context

    def k8(self, cluster: str | None = None) -> K8Client:
        """Return the client for a cluster, or the primary cluster."""
        return self.k8_factory.get(self.context_for_cluster(cluster))

    def lease_manager(self, namespace: str) -> LeaseManager:
        """Return a lease manager bound to `namespace`."""
        return LeaseManager(
            self.k8(),
            dataclasses.replace(self.config, namespace=namespace),
            LeaseRenewalService(self.tasks()),
            self.holder,
        )

    def remote_config_manager(self, namespace: str) -> RemoteConfigManager:
        """Return a remote config manager for `namespace`."""
        return RemoteConfigManager(
            self.k8(),
            namespace,
            self.local_config,
            validator=RemoteConfigValidator(self.k8_factory, self.local_config),
        )


@dataclass
class CommandContext:
    """State shared by the phases of one command."""

    namespace: str
    """Namespace the command operates on."""

    lease: Lease | None = None
    """Lease of the namespace once created."""

    namespace_deleted: bool = False
    """Set when the command deleted its own namespace."""


CtxT = TypeVar("CtxT", bound=CommandContext)


class BaseCommand(Generic[CtxT]):
    """Base class running a command as a leased pipeline."""

    def __init__(self, deps: CommandDependencies) -> None:
        """Initialize the command."""
        self._deps = deps

    def _require_namespace(self, ctx: CtxT) -> None:
        if not ctx.namespace:
            raise InputException("A namespace is required")

    def lease_phases(self) -> list[Phase[CtxT]]:
        """Phases creating and acquiring the namespace lease."""

        async def create_lease(ctx: CtxT) -> None:
            ctx.lease = await self._deps.lease_manager(ctx.namespace).create()

        def get_lease(ctx: CtxT) -> Lease:
            if ctx.lease is None:
                raise InputException("Lease was not created")
            return ctx.lease

        return [
            Phase(title="Initialize lease", run=create_lease),
            acquire_lease_phase(get_lease),
        ]

    async def execute(self, phases: list[Phase[CtxT]], ctx: CtxT) -> None:
        """Run the phases, then release the lease."""

        def guard() -> None:
            if ctx.lease is not None:
                ctx.lease.raise_if_lost()

        async def release(ctx: Any) -> None:
            if ctx.lease is None:
                return
            if ctx.namespace_deleted:
                # The lease went away with its namespace
                await ctx.lease.try_release()
                return
            await ctx.lease.release()

        pipeline = Pipeline(
            phases, guard=guard, cleanup=release, task_service=self._deps.tasks()
        )
        await pipeline.run(ctx)
