"""Tests for the shared command pipeline."""

import pytest

from hedera_solo.commands import CommandContext, CommandDependencies
from hedera_solo.commands.base import BaseCommand
from hedera_solo.exceptions import LeaseLostError
from hedera_solo.k8s.in_memory import InMemoryK8Client
from hedera_solo.pipeline import Phase


async def test_lease_lost_stops_pipeline(
    deps: CommandDependencies, client: InMemoryK8Client
) -> None:
    """Test no phase runs once the lease is reported lost."""
    ran: list[str] = []

    async def lose_lease(ctx: CommandContext) -> None:
        ran.append("lose")
        assert ctx.lease is not None
        ctx.lease.mark_lost(LeaseLostError("lease taken by another process"))

    async def next_step(ctx: CommandContext) -> None:
        ran.append("next")

    command: BaseCommand[CommandContext] = BaseCommand(deps)
    phases: list[Phase[CommandContext]] = [
        *command.lease_phases(),
        Phase(title="Lose lease", run=lose_lease),
        Phase(title="Next", run=next_step),
    ]
    with pytest.raises(LeaseLostError, match="taken by another process"):
        await command.execute(phases, CommandContext(namespace="solo"))

    assert ran == ["lose"]
    assert await client.read_lease("solo", "solo") is None


async def test_context_for_cluster(deps: CommandDependencies) -> None:
    """Test cluster references resolve through the local config."""
    assert deps.context_for_cluster("c1") == "kind-c1"
    assert deps.context_for_cluster("unknown") is None
    assert deps.context_for_cluster(None) is None
    assert deps.k8("c1").context == "kind-c1"
