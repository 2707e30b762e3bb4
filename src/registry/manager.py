"""Access to every registry configured for a project."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from constants import Constants
from project.config import Config
from registry.client import RegistryClient
from registry.errors import ComponentNotFoundError, RegistryError, RegistryNotFoundError
from registry.models import Component, ComponentInfo

logger = logging.getLogger(__name__)


def parse_component_with_namespace(
    component: str, registry: Optional[str] = None
) -> Tuple[str, Optional[str]]:
    """Split ``@ns/name`` into (name, namespace).

    An explicit ``registry`` always wins and leaves ``component`` untouched.
    """
    if registry:
        return component, registry
    if component.startswith("@") and "/" in component:
        namespace, name = component.split("/", 1)
        if name:
            return name, namespace
    return component, None


class RegistryManager:
    """Ordered collection of registry clients keyed by namespace."""

    def __init__(self, clients: Dict[str, RegistryClient]):
        self._clients = dict(clients)

    @classmethod
    def from_config(cls, config: Config, session=None) -> "RegistryManager":
        clients = {
            namespace: RegistryClient(namespace, reg, style=config.style, session=session)
            for namespace, reg in config.registries.items()
        }
        return cls(clients)

    def namespaces(self) -> List[str]:
        return list(self._clients)

    def get_registry(self, namespace: str) -> Optional[RegistryClient]:
        return self._clients.get(namespace)

    def require_registry(self, namespace: str) -> RegistryClient:
        client = self._clients.get(namespace)
        if client is None:
            raise RegistryNotFoundError(namespace)
        return client

    def fetch_component(self, namespace: str, name: str) -> Component:
        return self.require_registry(namespace).fetch_component(name)

    def _probe_order(self) -> List[str]:
        preferred = [ns for ns in Constants.DEFAULT_REGISTRY_NAMESPACES if ns in self._clients]
        return preferred + [ns for ns in self._clients if ns not in preferred]

    def fetch_component_auto(self, name: str) -> Component:
        """Fetch ``name`` from the first registry that has it, default registries first.

        Raises:
            ComponentNotFoundError: Every configured registry failed.
        """
        for namespace in self._probe_order():
            try:
                return self._clients[namespace].fetch_component(name)
            except RegistryError as exc:
                logger.debug("Registry '%s' cannot provide '%s': %s", namespace, name, exc)
        raise ComponentNotFoundError(name)

    def search_all(self, query: str) -> Dict[str, List[ComponentInfo]]:
        """Search every registry; failing registries are skipped with a warning."""
        results: Dict[str, List[ComponentInfo]] = {}
        for namespace, client in self._clients.items():
            try:
                results[namespace] = client.search_components(query)
            except RegistryError as exc:
                logger.warning("Failed to search registry '%s': %s", namespace, exc)
        return results
