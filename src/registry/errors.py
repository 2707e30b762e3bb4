"""Registry error types."""

from common.errors import UigetError


class RegistryError(UigetError):
    """Base class for registry failures."""


class RegistryNotFoundError(RegistryError):
    """The requested namespace is not configured."""

    def __init__(self, namespace: str):
        super().__init__(f"Registry '{namespace}' not found")
        self.namespace = namespace


class RegistryRequestError(RegistryError):
    """A registry responded with an error status or an unusable body."""


class ComponentNotFoundError(RegistryError):
    """No configured registry could provide the component."""

    def __init__(self, name: str):
        super().__init__(f"Component '{name}' not found in any registry")
        self.name = name
