"""Registry mapping collaborator names to factories."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

TCollaborator = TypeVar("TCollaborator")
Factory = Callable[..., TCollaborator]


class IntegrationRegistry:
    """Lightweight registry keyed by ``"<kind>:<provider>"``."""

    def __init__(self) -> None:
        self._registry: dict[str, Factory[Any]] = {}

    def register(self, name: str, factory: Factory[Any]) -> None:
        self._registry[name] = factory

    def create(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Instantiate the collaborator registered under ``name``."""
        factory = self._registry.get(name)
        if factory is None:
            raise KeyError(f"Integration '{name}' is not registered")
        return factory(*args, **kwargs)

    def get(self, name: str) -> Factory[Any] | None:
        return self._registry.get(name)


integration_registry = IntegrationRegistry()
