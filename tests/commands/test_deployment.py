"""Tests for the deployment command."""

import pytest

from hedera_solo.commands import (
    CommandDependencies,
    DeploymentCommand,
    DeploymentCreateConfig,
)
from hedera_solo.exceptions import (
    InputException,
    LeaseAcquisitionError,
    RemoteConfigExistsError,
)
from hedera_solo.k8s.in_memory import InMemoryK8Client
from hedera_solo.k8s.resources import LeaseRecord, utcnow
from hedera_solo.lease import LeaseHolder
from hedera_solo.remote_config import RemoteConfigManager


async def test_create(deps: CommandDependencies, client: InMemoryK8Client) -> None:
    """Test creating a fresh deployment."""
    assert await DeploymentCommand(deps).create(DeploymentCreateConfig("solo"))

    assert await client.has_namespace("solo")
    manager = RemoteConfigManager(client, "solo", deps.local_config)
    assert await manager.load()
    assert manager.clusters == {"c1": "solo"}
    assert manager.components.is_empty
    assert manager.remote_config.command_history == [
        "Executed by operator@example.com: deployment create"
    ]
    # The lease is released once the command finished
    assert await client.read_lease("solo", "solo") is None


async def test_create_twice(
    deps: CommandDependencies, client: InMemoryK8Client
) -> None:
    """Test creating a deployment that already exists."""
    command = DeploymentCommand(deps)
    await command.create(DeploymentCreateConfig("solo"))
    with pytest.raises(RemoteConfigExistsError):
        await command.create(DeploymentCreateConfig("solo"))
    assert await client.read_lease("solo", "solo") is None


async def test_create_without_local_config(
    deps: CommandDependencies, client: InMemoryK8Client
) -> None:
    """Test nothing is created in the cluster without a local config."""
    deps.local_config = None
    with pytest.raises(InputException, match="Local config doesn't exist"):
        await DeploymentCommand(deps).create(DeploymentCreateConfig("solo"))
    assert not await client.has_namespace("solo")


async def test_create_missing_namespace(deps: CommandDependencies) -> None:
    """Test a namespace is required."""
    with pytest.raises(InputException, match="namespace is required"):
        await DeploymentCommand(deps).create(DeploymentCreateConfig(""))


async def test_create_while_leased(
    deps: CommandDependencies, client: InMemoryK8Client
) -> None:
    """Test another process holding the namespace lease blocks the command."""
    await client.create_namespace("solo")
    now = utcnow()
    other = LeaseHolder(username="bob", hostname="build-server", pid=4242)
    client.put_lease(
        LeaseRecord(
            name="solo",
            namespace="solo",
            holder_identity=other.to_json(),
            lease_duration_seconds=20,
            acquire_time=now,
            renew_time=now,
        )
    )
    with pytest.raises(LeaseAcquisitionError, match="after 3 attempts"):
        await DeploymentCommand(deps).create(DeploymentCreateConfig("solo"))
    assert await client.read_config_map("solo", "solo-remote-config") is None
    # The lease of the other process is left alone
    record = await client.read_lease("solo", "solo")
    assert record is not None
    assert record.holder_identity == other.to_json()
