"""Tests for the local config file."""

import pathlib

import pytest

from hedera_solo.exceptions import InputException
from hedera_solo.local_config import (
    Deployment,
    LocalConfig,
    local_config_exists,
    read_local_config,
    write_local_config,
)

LOCAL_CONFIG = """\
userEmailAddress: operator@example.com
currentDeploymentName: solo
deployments:
  solo:
    clusters:
      - c1
      - c2
  staging:
    namespace: solo-staging
    clusters:
      - c3
clusterRefs:
  c1: kind-c1
  c2: kind-c2
"""


async def test_read(tmp_path: pathlib.Path) -> None:
    """Test reading the local config file."""
    path = tmp_path / "local-config.yaml"
    path.write_text(LOCAL_CONFIG)

    assert await local_config_exists(path)
    config = await read_local_config(path)
    assert config.user_email_address == "operator@example.com"
    assert config.current_deployment_name == "solo"
    assert config.deployments["solo"] == Deployment(clusters=["c1", "c2"])
    assert config.deployment_namespace("staging") == "solo-staging"
    assert config.clusters_for_namespace("solo") == {"c1": "solo", "c2": "solo"}
    assert config.clusters_for_namespace("solo-staging") == {"c3": "solo-staging"}
    assert config.context_for_cluster("c2") == "kind-c2"
    assert config.context_for_cluster("c3") is None


async def test_write(tmp_path: pathlib.Path) -> None:
    """Test writing the local config file with its field names."""
    path = tmp_path / "local-config.yaml"
    config = LocalConfig(
        user_email_address="operator@example.com",
        deployments={"solo": Deployment(clusters=["c1"])},
        cluster_refs={"c1": "kind-c1"},
    )
    await write_local_config(config, path)

    content = path.read_text()
    assert "userEmailAddress: operator@example.com" in content
    assert "clusterRefs:" in content
    assert "currentDeploymentName" not in content
    assert await read_local_config(path) == config


async def test_missing(tmp_path: pathlib.Path) -> None:
    """Test reading a local config that does not exist."""
    path = tmp_path / "local-config.yaml"
    assert not await local_config_exists(path)
    with pytest.raises(InputException, match="does not exist"):
        await read_local_config(path)


@pytest.mark.parametrize(
    ("content", "match"),
    [
        ("", "is empty"),
        ("- c1", "is not a mapping"),
        ("deployments: {}", "Unable to parse"),
        ("userEmailAddress: [unclosed", "Unable to parse"),
    ],
)
async def test_invalid(tmp_path: pathlib.Path, content: str, match: str) -> None:
    """Test local config files that cannot be parsed."""
    path = tmp_path / "local-config.yaml"
    path.write_text(content)
    with pytest.raises(InputException, match=match):
        await read_local_config(path)


def test_unknown_deployment() -> None:
    """Test looking up a deployment missing from the local config."""
    config = LocalConfig(user_email_address="operator@example.com")
    with pytest.raises(InputException, match="Deployment 'solo' not found"):
        config.deployment_namespace("solo")
