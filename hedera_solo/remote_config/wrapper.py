"""Registry of the components deployed in a namespace."""

from collections.abc import Iterable, Iterator
import logging
from typing import Any, TypeVar

from mashumaro.exceptions import InvalidFieldValue, MissingField

from hedera_solo.exceptions import (
    ComponentExistsError,
    ComponentNotFoundError,
    ComponentTypeMismatchError,
    InvalidNodeStateError,
    RemoteConfigValidationError,
)

from .components import (
    COMPONENT_CLASSES,
    BaseComponent,
    ComponentType,
    ConsensusNodeComponent,
    ConsensusNodeStates,
    node_id_from_alias,
)

__all__ = [
    "ComponentsDataWrapper",
]

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseComponent)


class ComponentsDataWrapper:
    """Components keyed by their unique name.

    Every change is checked against the invariants of the registry and
    leaves it untouched when it fails.
    """

    def __init__(self, components: Iterable[BaseComponent] = ()) -> None:
        """Initialize ComponentsDataWrapper."""
        self._components: dict[str, BaseComponent] = {}
        for component in components:
            self.add(component)

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[BaseComponent]:
        return iter(list(self._components.values()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComponentsDataWrapper):
            return NotImplemented
        return self._components == other._components

    def __repr__(self) -> str:
        return f"ComponentsDataWrapper({list(self._components.values())!r})"

    @property
    def is_empty(self) -> bool:
        """Return true if no component is registered."""
        return not self._components

    def names(self) -> list[str]:
        """Return the registered component names."""
        return list(self._components)

    def of_type(self, component_type: ComponentType) -> list[BaseComponent]:
        """Return the components of one kind."""
        return [
            component
            for component in self._components.values()
            if component.component_type == component_type
        ]

    @property
    def consensus_nodes(self) -> list[ConsensusNodeComponent]:
        """Return the consensus node components."""
        return [
            component
            for component in self._components.values()
            if isinstance(component, ConsensusNodeComponent)
        ]

    def _lookup(
        self, name: str, component_type: ComponentType, action: str
    ) -> BaseComponent:
        component = self._components.get(name)
        if component is None:
            raise ComponentNotFoundError(
                f"Component {name} of type {component_type} not found while "
                f"attempting to {action}"
            )
        if component.component_type != component_type:
            raise ComponentTypeMismatchError(
                f"Component {name} is of type {component.component_type}, "
                f"not {component_type}, while attempting to {action}"
            )
        return component

    def get(self, name: str, cls: type[T]) -> T:
        """Return the component with the given name and class."""
        component = self._lookup(name, cls.component_type, "read")
        if not isinstance(component, cls):
            raise ComponentTypeMismatchError(
                f"Component {name} is not a {cls.__name__}"
            )
        return component

    def add(self, component: BaseComponent) -> None:
        """Register a new component."""
        if component.name in self._components:
            raise ComponentExistsError(
                f"Component exists, name: {component.name}, "
                f"type: {component.component_type}"
            )
        component.validate()
        self._components[component.name] = component
        _LOGGER.debug("Added %s component %s", component.component_type, component.name)

    def edit(self, component: BaseComponent) -> None:
        """Replace a registered component with an updated copy."""
        if component.name not in self._components:
            raise ComponentNotFoundError(
                f"Component doesn't exist, name: {component.name}"
            )
        self._lookup(component.name, component.component_type, "edit")
        component.validate()
        self._components[component.name] = component

    def remove(self, name: str, component_type: ComponentType) -> None:
        """Unregister a component."""
        self._lookup(name, component_type, "remove")
        del self._components[name]
        _LOGGER.debug("Removed %s component %s", component_type, name)

    def clear(self) -> None:
        """Unregister every component."""
        self._components.clear()

    def validate(self) -> None:
        """Raise if the registry violates its invariants."""
        for name, component in self._components.items():
            if name != component.name:
                raise RemoteConfigValidationError(
                    f"Component registered as {name} is named {component.name}"
                )
            component.validate()

    def validate_node_state(
        self,
        name: str,
        accepted_states: Iterable[ConsensusNodeStates] | None = None,
        excluded_states: Iterable[ConsensusNodeStates] | None = None,
    ) -> ConsensusNodeStates:
        """Check the state of a consensus node, returning it when allowed."""
        component = self._components.get(name)
        if not isinstance(component, ConsensusNodeComponent):
            raise InvalidNodeStateError(f"{name} not found in remote config")
        state = component.state
        if accepted_states is not None:
            accepted = list(accepted_states)
            if state not in accepted:
                raise InvalidNodeStateError(
                    f"{name} has invalid state - accepted states: "
                    f"{', '.join(accepted)}, current state: {state}"
                )
        if excluded_states is not None:
            excluded = list(excluded_states)
            if state in excluded:
                raise InvalidNodeStateError(
                    f"{name} has invalid state - excluded states: "
                    f"{', '.join(excluded)}, current state: {state}"
                )
        return state

    def to_dict(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Serialize the components grouped by type."""
        result: dict[str, dict[str, dict[str, Any]]] = {
            component_type.value: {} for component_type in ComponentType
        }
        for name, component in self._components.items():
            result[component.component_type.value][name] = component.to_dict()
        return result

    @classmethod
    def from_dict(cls, doc: dict[str, Any] | None) -> "ComponentsDataWrapper":
        """Parse components grouped by type."""
        wrapper = cls()
        for key, entries in (doc or {}).items():
            try:
                component_type = ComponentType(key)
            except ValueError as err:
                raise RemoteConfigValidationError(
                    f"Unknown component type '{key}'"
                ) from err
            component_cls = COMPONENT_CLASSES[component_type]
            for name, entry in (entries or {}).items():
                try:
                    component = component_cls.from_dict(entry)
                except (MissingField, InvalidFieldValue, TypeError) as err:
                    raise RemoteConfigValidationError(
                        f"Invalid {component_type} component {name}: {err}"
                    ) from err
                if component.name != name:
                    raise RemoteConfigValidationError(
                        f"Component registered as {name} is named {component.name}"
                    )
                wrapper.add(component)
        return wrapper

    def clone(self) -> "ComponentsDataWrapper":
        """Return a deep copy of the registry."""
        return ComponentsDataWrapper.from_dict(self.to_dict())

    @classmethod
    def initialize_with_nodes(
        cls,
        node_aliases: list[str],
        cluster: str,
        namespace: str,
        state: ConsensusNodeStates = ConsensusNodeStates.REQUESTED,
    ) -> "ComponentsDataWrapper":
        """Return a registry holding one consensus node per alias."""
        return cls(
            ConsensusNodeComponent(
                name=alias,
                cluster=cluster,
                namespace=namespace,
                state=state,
                node_id=node_id_from_alias(alias),
            )
            for alias in node_aliases
        )
