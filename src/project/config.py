"""Project configuration model (uiget.json / components.json).

The on-disk format follows the shadcn ``components.json`` layout. JSON files
are read with :mod:`json`; ``.yaml``/``.yml`` files with PyYAML.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import yaml

from common.errors import UigetError
from constants import Constants

logger = logging.getLogger(__name__)


class ConfigError(UigetError):
    """Raised when the configuration file is missing, unreadable or invalid."""


@dataclass
class RegistryConfig:
    """URL template plus optional query parameters and headers for one registry."""

    url: str
    params: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Union[str, Dict[str, Any]]) -> "RegistryConfig":
        if isinstance(raw, str):
            return cls(url=raw)
        if isinstance(raw, dict) and isinstance(raw.get("url"), str):
            return cls(
                url=raw["url"],
                params={str(k): str(v) for k, v in (raw.get("params") or {}).items()},
                headers={str(k): str(v) for k, v in (raw.get("headers") or {}).items()},
            )
        raise ConfigError(f"Invalid registry entry: {raw!r}")

    def to_raw(self) -> Union[str, Dict[str, Any]]:
        if not self.params and not self.headers:
            return self.url
        raw: Dict[str, Any] = {"url": self.url}
        if self.params:
            raw["params"] = dict(self.params)
        if self.headers:
            raw["headers"] = dict(self.headers)
        return raw


@dataclass
class TypeScriptConfig:
    """``typescript`` setting: a boolean, or an object naming the tsconfig path."""

    enabled: bool = True
    config_path: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["TypeScriptConfig"]:
        if raw is None:
            return None
        if isinstance(raw, bool):
            return cls(enabled=raw)
        if isinstance(raw, dict):
            path = raw.get("config")
            return cls(enabled=True, config_path=str(path) if path else None)
        raise ConfigError(f"Invalid 'typescript' setting: {raw!r}")

    def to_raw(self) -> Any:
        if self.enabled and self.config_path:
            return {"config": self.config_path}
        return self.enabled


@dataclass
class TailwindConfig:
    css: str = Constants.DEFAULT_CSS
    base_color: str = Constants.DEFAULT_BASE_COLOR
    config: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "TailwindConfig":
        return cls(
            css=raw.get("css", Constants.DEFAULT_CSS),
            base_color=raw.get("baseColor", Constants.DEFAULT_BASE_COLOR),
            config=raw.get("config"),
        )

    def to_raw(self) -> Dict[str, Any]:
        raw: Dict[str, Any] = {"css": self.css, "baseColor": self.base_color}
        if self.config:
            raw["config"] = self.config
        return raw


@dataclass
class AliasesConfig:
    """Import aliases; ``components`` and ``utils`` are mandatory."""

    components: str = Constants.DEFAULT_COMPONENTS_ALIAS
    utils: str = Constants.DEFAULT_UTILS_ALIAS
    ui: Optional[str] = Constants.DEFAULT_UI_ALIAS
    hooks: Optional[str] = Constants.DEFAULT_HOOKS_ALIAS
    lib: Optional[str] = Constants.DEFAULT_LIB_ALIAS

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "AliasesConfig":
        missing = [k for k in ("components", "utils") if not raw.get(k)]
        if missing:
            raise ConfigError(f"Missing required alias(es): {', '.join(missing)}")
        return cls(
            components=raw["components"],
            utils=raw["utils"],
            ui=raw.get("ui"),
            hooks=raw.get("hooks"),
            lib=raw.get("lib"),
        )

    def to_raw(self) -> Dict[str, str]:
        raw = {"components": self.components, "utils": self.utils}
        for key in ("ui", "hooks", "lib"):
            value = getattr(self, key)
            if value:
                raw[key] = value
        return raw


@dataclass
class Config:
    """Whole project configuration."""

    aliases: AliasesConfig = field(default_factory=AliasesConfig)
    registries: Dict[str, RegistryConfig] = field(default_factory=dict)
    typescript: Optional[TypeScriptConfig] = field(default_factory=TypeScriptConfig)
    tailwind: Optional[TailwindConfig] = field(default_factory=TailwindConfig)
    style: Optional[str] = None
    schema: Optional[str] = Constants.CONFIG_SCHEMA_URL

    @classmethod
    def default(cls) -> "Config":
        return cls(
            registries={
                Constants.DEFAULT_REGISTRY_NAMESPACE: RegistryConfig(url=Constants.DEFAULT_REGISTRY_URL)
            },
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Build a Config from decoded file contents.

        Raises:
            ConfigError: On missing aliases or malformed registry/typescript entries.
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be an object")
        aliases_raw = data.get("aliases")
        if not isinstance(aliases_raw, dict):
            raise ConfigError("Configuration is missing the 'aliases' section")
        registries_raw = data.get("registries") or {}
        if not isinstance(registries_raw, dict):
            raise ConfigError("'registries' must map namespaces to URLs")
        tailwind_raw = data.get("tailwind")
        return cls(
            aliases=AliasesConfig.from_raw(aliases_raw),
            registries={str(ns): RegistryConfig.from_raw(v) for ns, v in registries_raw.items()},
            typescript=TypeScriptConfig.from_raw(data.get("typescript")),
            tailwind=TailwindConfig.from_raw(tailwind_raw) if isinstance(tailwind_raw, dict) else None,
            style=data.get("style"),
            schema=data.get("$schema"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.schema:
            data["$schema"] = self.schema
        if self.style:
            data["style"] = self.style
        if self.tailwind is not None:
            data["tailwind"] = self.tailwind.to_raw()
        data["aliases"] = self.aliases.to_raw()
        data["registries"] = {ns: reg.to_raw() for ns, reg in self.registries.items()}
        if self.typescript is not None:
            data["typescript"] = self.typescript.to_raw()
        return data

    @property
    def typescript_enabled(self) -> bool:
        return self.typescript is not None and self.typescript.enabled

    def add_registry(self, namespace: str, url: str) -> None:
        """Add or replace a registry after checking the URL is http(s) with a host."""
        validate_registry_url(url)
        self.registries[namespace] = RegistryConfig(url=url)

    def remove_registry(self, namespace: str) -> bool:
        return self.registries.pop(namespace, None) is not None


def validate_registry_url(url: str) -> None:
    """Raise ConfigError unless ``url`` is an absolute http(s) URL."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid registry URL: {url}")


def find_config_path(cwd: str, explicit: Optional[str] = None) -> str:
    """Return the config file to use.

    An explicit path wins. Otherwise the first existing file of
    ``Constants.CONFIG_FILES`` in ``cwd``; if none exists, the preferred
    ``uiget.json`` location (which ``init`` would create).
    """
    if explicit:
        return explicit if os.path.isabs(explicit) else os.path.join(cwd, explicit)
    for name in Constants.CONFIG_FILES:
        candidate = os.path.join(cwd, name)
        if os.path.isfile(candidate):
            return candidate
    return os.path.join(cwd, Constants.CONFIG_FILE)


def load_config(path: str) -> Config:
    """Load and validate a configuration file.

    Args:
        path: JSON or YAML file.

    Returns:
        Config: The parsed configuration.

    Raises:
        ConfigError: When the file is absent, unreadable or malformed.
    """
    if not os.path.isfile(path):
        raise ConfigError(f"Configuration file not found: {path}. Run 'uiget init' first.")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(handle)
            else:
                data = json.load(handle)
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration {path}: {exc}") from exc
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid configuration {path}: {exc}") from exc
    logger.debug("Loaded configuration from %s", path)
    return Config.from_dict(data)


def save_config(config: Config, path: str) -> None:
    """Write ``config`` to ``path`` (YAML for .yaml/.yml, pretty JSON otherwise)."""
    data = config.to_dict()
    try:
        with open(path, "w", encoding="utf-8") as handle:
            if path.endswith((".yaml", ".yml")):
                yaml.safe_dump(data, handle, sort_keys=False)
            else:
                json.dump(data, handle, indent=2, ensure_ascii=False)
                handle.write("\n")
    except OSError as exc:
        raise ConfigError(f"Cannot write configuration {path}: {exc}") from exc
    logger.debug("Saved configuration to %s", path)
