"""The local configuration file of a solo user.

The local config records who the user is and which clusters each deployment
spans. It must exist before a remote config can be created for a deployment.

```yaml
userEmailAddress: operator@example.com
currentDeploymentName: solo
deployments:
  solo:
    clusters:
      - c1
clusterRefs:
  c1: kind-solo
```
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path

import aiofiles
from aiofiles.ospath import exists
import yaml
from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import InputException

__all__ = [
    "Deployment",
    "LocalConfig",
    "read_local_config",
    "write_local_config",
    "local_config_exists",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_LOCAL_CONFIG_PATH = Path.home() / ".solo" / "local-config.yaml"


@dataclass
class Deployment(DataClassDictMixin):
    """A deployment and the clusters it spans."""

    clusters: list[str] = field(default_factory=list)
    """Cluster references the deployment is installed into."""

    namespace: str | None = None
    """Namespace of the deployment, defaults to the deployment name."""

    class Config(BaseConfig):
        omit_none = True


@dataclass
class LocalConfig(DataClassDictMixin):
    """Contents of the local configuration file."""

    user_email_address: str = field(
        metadata=field_options(alias="userEmailAddress")
    )
    """Email address recorded as the author of remote config changes."""

    deployments: dict[str, Deployment] = field(default_factory=dict)
    """Deployments keyed by name."""

    cluster_refs: dict[str, str] = field(
        default_factory=dict, metadata=field_options(alias="clusterRefs")
    )
    """Cluster reference to kube context."""

    current_deployment_name: str | None = field(
        default=None, metadata=field_options(alias="currentDeploymentName")
    )
    """Deployment used when a command does not name one."""

    def deployment_namespace(self, name: str) -> str:
        """Return the namespace of the named deployment."""
        if (deployment := self.deployments.get(name)) is None:
            raise InputException(f"Deployment '{name}' not found in local config")
        return deployment.namespace or name

    def clusters_for_namespace(self, namespace: str) -> dict[str, str]:
        """Return every cluster of the deployments targeting `namespace`."""
        clusters: dict[str, str] = {}
        for name, deployment in self.deployments.items():
            if (deployment.namespace or name) != namespace:
                continue
            for cluster in deployment.clusters:
                clusters[cluster] = namespace
        return clusters

    def context_for_cluster(self, cluster: str) -> str | None:
        """Return the kube context of a cluster reference, if known."""
        return self.cluster_refs.get(cluster)

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


async def local_config_exists(path: Path = DEFAULT_LOCAL_CONFIG_PATH) -> bool:
    """Return true if the local config file is present."""
    return bool(await exists(path))


async def read_local_config(path: Path = DEFAULT_LOCAL_CONFIG_PATH) -> LocalConfig:
    """Read the local config from disk."""
    _LOGGER.debug("Reading local config %s", path)
    try:
        async with aiofiles.open(str(path)) as config_file:
            content = await config_file.read()
    except FileNotFoundError as err:
        raise InputException(f"Local config {path} does not exist") from err
    if not content.strip():
        raise InputException(f"Local config {path} is empty")
    try:
        doc = yaml.safe_load(content)
        if not isinstance(doc, dict):
            raise InputException(f"Local config {path} is not a mapping")
        return LocalConfig.from_dict(doc)
    except (yaml.YAMLError, MissingField, InvalidFieldValue) as err:
        raise InputException(f"Unable to parse local config {path}: {err}") from err


async def write_local_config(
    config: LocalConfig, path: Path = DEFAULT_LOCAL_CONFIG_PATH
) -> None:
    """Write the local config to disk."""
    content = yaml.dump(config.to_dict(), sort_keys=False)
    async with aiofiles.open(str(path), mode="w") as config_file:
        await config_file.write(content)
