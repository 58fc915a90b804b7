"""Loads, creates and persists the remote config of a deployment.

The remote config lives in the `solo-remote-config` ConfigMap of the
deployment namespace. Commands load it at the start, change it only through
`modify()` and every write is a full replacement of the document guarded by
the resource version observed at load time.
"""

from collections.abc import Awaitable, Callable, Iterable
import logging
from typing import Any

from hedera_solo import constants
from hedera_solo.exceptions import (
    KubernetesException,
    RemoteConfigConflictError,
    RemoteConfigError,
    RemoteConfigExistsError,
    RemoteConfigNotLoadedError,
)
from hedera_solo.k8s.client import CONFLICT, K8Client
from hedera_solo.k8s.resources import ConfigMapRecord, utcnow
from hedera_solo.local_config import LocalConfig
from hedera_solo.pipeline import Phase

from .components import ConsensusNodeComponent, ConsensusNodeStates
from .model import RemoteConfig, RemoteConfigMetadata
from .validator import RemoteConfigValidator
from .wrapper import ComponentsDataWrapper

__all__ = [
    "RemoteConfigManager",
]

_LOGGER = logging.getLogger(__name__)

ModifyCallback = Callable[[RemoteConfig], Awaitable[None]]


class RemoteConfigManager:
    """Single source of truth for what is deployed in a namespace."""

    def __init__(
        self,
        client: K8Client,
        namespace: str,
        local_config: LocalConfig | None,
        *,
        validator: RemoteConfigValidator | None = None,
        max_history: int = constants.REMOTE_CONFIG_MAX_COMMAND_HISTORY,
    ) -> None:
        """Initialize RemoteConfigManager."""
        self._client = client
        self._namespace = namespace
        self._local_config = local_config
        self._validator = validator
        self._max_history = max_history
        self._remote_config: RemoteConfig | None = None
        self._resource_version: str | None = None

    @property
    def namespace(self) -> str:
        """Namespace holding the remote config."""
        return self._namespace

    def is_loaded(self) -> bool:
        """Return true once the remote config was loaded or created."""
        return self._remote_config is not None

    @property
    def remote_config(self) -> RemoteConfig:
        """The loaded remote config."""
        if self._remote_config is None:
            raise RemoteConfigNotLoadedError("Remote config is not loaded")
        return self._remote_config

    @property
    def components(self) -> ComponentsDataWrapper:
        """A copy of the loaded components, changes must go through `modify()`."""
        return self.remote_config.components.clone()

    @property
    def clusters(self) -> dict[str, str]:
        """A copy of the cluster to namespace mapping."""
        return dict(self.remote_config.clusters)

    def get_consensus_nodes(self) -> list[ConsensusNodeComponent]:
        """Return copies of the consensus node components."""
        return self.components.consensus_nodes

    def _history_entry(self, command: str) -> str:
        if self._local_config is not None and self._local_config.user_email_address:
            return f"Executed by {self._local_config.user_email_address}: {command}"
        return command

    async def _read(self) -> ConfigMapRecord | None:
        try:
            return await self._client.read_config_map(
                self._namespace, constants.REMOTE_CONFIG_NAME
            )
        except KubernetesException as err:
            _LOGGER.error("Failed to read remote config from cluster: %s", err)
            raise RemoteConfigError(
                f"Failed to read remote config from cluster: {err}"
            ) from err

    def _data(self, remote_config: RemoteConfig) -> dict[str, str]:
        return {constants.REMOTE_CONFIG_DATA_KEY: remote_config.to_yaml()}

    async def create(self, command: str) -> None:
        """Create the remote config from the local config topology."""
        if self._local_config is None:
            raise RemoteConfigError("Local config doesn't exist")
        if await self._read() is not None:
            raise RemoteConfigExistsError("Remote config already exists")
        remote_config = RemoteConfig(
            metadata=RemoteConfigMetadata(
                namespace=self._namespace,
                created_at=utcnow(),
                created_by=self._local_config.user_email_address,
            ),
            clusters=self._local_config.clusters_for_namespace(self._namespace),
        )
        remote_config.add_command_to_history(
            self._history_entry(command), self._max_history
        )
        remote_config.validate()
        try:
            record = await self._client.create_config_map(
                self._namespace,
                constants.REMOTE_CONFIG_NAME,
                dict(constants.REMOTE_CONFIG_LABELS),
                self._data(remote_config),
            )
        except KubernetesException as err:
            if err.status_code == CONFLICT:
                raise RemoteConfigExistsError("Remote config already exists") from err
            raise RemoteConfigError(f"Failed to create remote config: {err}") from err
        self._remote_config = remote_config
        self._resource_version = record.resource_version
        _LOGGER.info("Created remote config in %s", self._namespace)

    async def load(self) -> bool:
        """Load the remote config, returning false if it does not exist."""
        if (record := await self._read()) is None:
            _LOGGER.debug("No remote config found in %s", self._namespace)
            return False
        if (content := record.data.get(constants.REMOTE_CONFIG_DATA_KEY)) is None:
            raise RemoteConfigError(
                f"Remote config in {self._namespace} has no "
                f"'{constants.REMOTE_CONFIG_DATA_KEY}' data"
            )
        remote_config = RemoteConfig.from_yaml(content)
        remote_config.validate()
        self._remote_config = remote_config
        self._resource_version = record.resource_version
        return True

    def unload(self) -> None:
        """Forget the loaded remote config."""
        self._remote_config = None
        self._resource_version = None

    async def _write(self) -> None:
        if self._remote_config is None:
            raise RemoteConfigNotLoadedError(
                "Attempted to write remote config without data"
            )
        try:
            record = await self._client.replace_config_map(
                self._namespace,
                constants.REMOTE_CONFIG_NAME,
                dict(constants.REMOTE_CONFIG_LABELS),
                self._data(self._remote_config),
                resource_version=self._resource_version,
            )
        except KubernetesException as err:
            if err.status_code == CONFLICT:
                raise RemoteConfigConflictError(
                    "Remote config was modified in the cluster since it was loaded"
                ) from err
            raise RemoteConfigError(f"Failed to write remote config: {err}") from err
        self._resource_version = record.resource_version

    async def modify(self, callback: ModifyCallback) -> None:
        """Change the remote config through `callback` and write it back.

        The in-memory document is restored if the callback, validation or the
        write fails.
        """
        if self._remote_config is None:
            raise RemoteConfigNotLoadedError(
                "Attempting to modify remote config without loading it first"
            )
        snapshot = self._remote_config.to_dict()
        try:
            await callback(self._remote_config)
            self._remote_config.validate()
            await self._write()
        except BaseException:
            self._remote_config = RemoteConfig.from_dict(snapshot)
            raise

    async def add_command_to_history(self, command: str) -> None:
        """Record the running command in the remote config."""
        entry = self._history_entry(command)

        async def record(remote_config: RemoteConfig) -> None:
            remote_config.add_command_to_history(entry, self._max_history)

        await self.modify(record)

    async def delete_components(self) -> None:
        """Remove every component from the remote config."""
        if not self.is_loaded() and not await self.load():
            _LOGGER.debug("No remote config in %s, nothing to clear", self._namespace)
            return

        async def clear(remote_config: RemoteConfig) -> None:
            remote_config.components.clear()

        await self.modify(clear)
        _LOGGER.info("Cleared components of remote config in %s", self._namespace)

    def validate_node_state(
        self,
        name: str,
        accepted_states: Iterable[ConsensusNodeStates] | None = None,
        excluded_states: Iterable[ConsensusNodeStates] | None = None,
    ) -> ConsensusNodeStates:
        """Check the declared state of a consensus node."""
        return self.remote_config.components.validate_node_state(
            name, accepted_states, excluded_states
        )

    def build_load_phase(
        self,
        command: str,
        *,
        validate: bool = False,
        skip: Callable[[Any], bool] | None = None,
    ) -> Phase[Any]:
        """Return a phase loading the remote config and recording `command`."""

        async def run(ctx: Any) -> None:
            if not await self.load():
                raise RemoteConfigError("Failed to load remote config")
            if validate and self._validator is not None:
                await self._validator.validate_components(
                    self.remote_config.components
                )
            await self.add_command_to_history(command)

        return Phase(title="Load remote config", run=run, skip=skip)

    def build_create_phase(
        self, command: str, *, skip: Callable[[Any], bool] | None = None
    ) -> Phase[Any]:
        """Return a phase creating the remote config."""

        async def run(ctx: Any) -> None:
            await self.create(command)

        return Phase(title="Create remote config", run=run, skip=skip)

    def build_validate_node_states_phase(
        self,
        get_node_aliases: Callable[[Any], list[str]],
        accepted_states: list[ConsensusNodeStates] | None = None,
        excluded_states: list[ConsensusNodeStates] | None = None,
    ) -> Phase[Any]:
        """Return a phase checking the state of each node in the context."""

        async def run(ctx: Any) -> None:
            for alias in get_node_aliases(ctx):
                self.validate_node_state(alias, accepted_states, excluded_states)

        return Phase(title="Validate consensus node states", run=run)
