"""Alias and file path resolution.

Aliases from the project configuration (``$lib/components/ui``, ``@/lib``...)
are mapped onto directories either through the ``compilerOptions.paths``
table of tsconfig.json (following ``extends`` chains) or, when no such table
exists, through a manual fallback that only understands the SvelteKit
``$lib`` token.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Set, Tuple

from common.errors import UigetError
from constants import ComponentTypes, Constants
from project import jsonc
from project.config import AliasesConfig, TypeScriptConfig

logger = logging.getLogger(__name__)


class PathMappingError(UigetError):
    """The root tsconfig file could not be read or parsed."""


@dataclass
class ResolvedPaths:
    """Alias prefix to directory table, wildcards already stripped."""

    paths: Dict[str, str] = field(default_factory=dict)
    base_url: str = "."


@dataclass
class ComponentContext:
    """Per-install facts used to pick the alias a file is written under."""

    name: str
    component_type: Optional[str] = None
    registry: Optional[str] = None


@dataclass
class _TsConfig:
    """One tsconfig after extends merging.

    Each paths entry and the baseUrl remember the directory of the file that
    declared them, since that is what relative values resolve against.
    """

    base_url: Optional[str] = None
    base_url_dir: str = ""
    paths: Dict[str, Tuple[list, str]] = field(default_factory=dict)
    extends: Optional[str] = None


def _strip_wildcard(value: str) -> str:
    while value.endswith("/*"):
        value = value[:-2]
    while value.endswith("*"):
        value = value[:-1]
    return value


def _read_tsconfig(path: str) -> _TsConfig:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = jsonc.loads(handle.read())
    except OSError as exc:
        raise PathMappingError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise PathMappingError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise PathMappingError(f"Invalid tsconfig structure in {path}")

    options = data.get("compilerOptions") or {}
    paths = options.get("paths") or {}
    extends = data.get("extends")
    config_dir = os.path.dirname(os.path.abspath(path))
    return _TsConfig(
        base_url=options.get("baseUrl"),
        base_url_dir=config_dir,
        paths={k: (list(v), config_dir) for k, v in paths.items() if isinstance(v, list)},
        extends=extends if isinstance(extends, str) else None,
    )


def _load_with_extends(path: str, seen: Set[str]) -> _TsConfig:
    """Parse ``path`` and merge its ``extends`` chain; child entries win."""
    config = _read_tsconfig(path)
    seen.add(os.path.abspath(path))
    if not config.extends:
        return config

    parent_path = os.path.normpath(os.path.join(os.path.dirname(path), config.extends))
    if not os.path.isfile(parent_path) and not parent_path.endswith(".json"):
        parent_path += ".json"
    if os.path.abspath(parent_path) in seen or not os.path.isfile(parent_path):
        logger.debug("Skipping extended tsconfig %s", parent_path)
        return config
    try:
        parent = _load_with_extends(parent_path, seen)
    except PathMappingError as exc:
        logger.debug("Ignoring unreadable extended tsconfig %s: %s", parent_path, exc)
        return config

    merged = dict(parent.paths)
    merged.update(config.paths)
    own_base = config.base_url is not None
    return _TsConfig(
        base_url=config.base_url if own_base else parent.base_url,
        base_url_dir=config.base_url_dir if own_base else parent.base_url_dir,
        paths=merged,
        extends=config.extends,
    )


def _relative_to_cwd(path: str, cwd: str) -> str:
    cwd = os.path.normpath(cwd)
    if path == cwd:
        return "."
    if path.startswith(cwd.rstrip(os.sep) + os.sep):
        return os.path.relpath(path, cwd)
    return path


def _starts_with_lib(alias_path: str) -> bool:
    token = Constants.LIB_TOKEN
    return alias_path == token or alias_path.startswith(token + "/")


def _normalize(path: str) -> str:
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def load_path_mappings(
    typescript: Optional[TypeScriptConfig], cwd: str
) -> Optional[ResolvedPaths]:
    """Build the alias table from tsconfig.json.

    Args:
        typescript: The project's ``typescript`` setting.
        cwd: Project working directory; relative config paths resolve from here.

    Returns:
        ResolvedPaths, or None when TypeScript is disabled, the config file is
        absent, or it declares no ``paths``.

    Raises:
        PathMappingError: The root config exists but cannot be read or parsed.
    """
    if typescript is None or not typescript.enabled:
        return None

    config_path = typescript.config_path or Constants.TSCONFIG_FILE
    if not os.path.isabs(config_path):
        config_path = os.path.join(cwd, config_path)
    if not os.path.isfile(config_path):
        logger.debug("No tsconfig at %s; using manual alias resolution", config_path)
        return None

    ts = _load_with_extends(config_path, set())
    if not ts.paths:
        return None

    table: Dict[str, str] = {}
    for alias, (targets, declared_in) in ts.paths.items():
        if not targets:
            continue
        # baseUrl anchors every entry; without one, entries are relative to their own file
        anchor = os.path.join(ts.base_url_dir, ts.base_url) if ts.base_url else declared_in
        target = _strip_wildcard(str(targets[0]))
        resolved = os.path.normpath(os.path.join(anchor, target))
        table[_strip_wildcard(alias)] = _normalize(_relative_to_cwd(resolved, cwd))

    logger.debug("Resolved %d path alias(es) from %s", len(table), config_path)
    return ResolvedPaths(paths=table, base_url=ts.base_url or ".")


class PathResolver:
    """Maps aliases and component files onto concrete paths."""

    def __init__(self, aliases: AliasesConfig, resolved: Optional[ResolvedPaths], cwd: str):
        self.aliases = aliases
        self.resolved = resolved
        self.cwd = cwd

    def alias_for_type(self, component_type: Optional[str]) -> str:
        """Pick the configured alias for a registry item type."""
        aliases = self.aliases
        if component_type == ComponentTypes.HOOK.value:
            return aliases.hooks or aliases.components
        if component_type == ComponentTypes.UI.value:
            return aliases.ui or aliases.components
        if component_type == ComponentTypes.UTIL.value:
            return aliases.utils
        if component_type == ComponentTypes.LIB.value:
            return aliases.lib or aliases.components
        return aliases.components

    def _match_alias(self, alias_path: str) -> Optional[str]:
        """Longest tsconfig alias that prefixes ``alias_path`` on a segment boundary."""
        if self.resolved is None:
            return None
        best = None
        for key in self.resolved.paths:
            if not key:
                continue
            if alias_path == key or alias_path.startswith(key.rstrip("/") + "/"):
                if best is None or len(key) > len(best):
                    best = key
        return best

    def _manual(self, alias_path: str) -> str:
        if not _starts_with_lib(alias_path):
            return alias_path
        lib = self.aliases.lib
        if not lib or Constants.LIB_TOKEN in lib:
            lib = Constants.LIB_FALLBACK_DIR
        return lib + alias_path[len(Constants.LIB_TOKEN):]

    def resolve_alias(self, alias_path: str) -> str:
        """Turn an alias such as ``$lib/components/ui`` into a project-relative directory."""
        key = self._match_alias(alias_path)
        if key is None:
            return self._manual(alias_path)
        base = self.resolved.paths[key]
        remaining = alias_path[len(key):].lstrip("/")
        if not remaining:
            return base
        return f"{base.rstrip('/')}/{remaining}" if base else remaining

    def resolve_import_path(self, alias_path: str) -> str:
        """Import specifier to emit for an alias.

        Aliases known to tsconfig are emitted unchanged since the bundler
        understands them; otherwise a leading ``$lib`` is rewritten to the
        configured lib alias.
        """
        if self._match_alias(alias_path) is not None:
            return alias_path
        lib = self.aliases.lib
        if lib and _starts_with_lib(alias_path):
            return lib + alias_path[len(Constants.LIB_TOKEN):]
        return alias_path

    def resolve_file_path(self, target: str, context: ComponentContext) -> str:
        """Absolute destination for a component file declared with ``target``."""
        root = self.resolve_alias(self.alias_for_type(context.component_type))
        target = target.replace("\\", "/")
        if (
            context.component_type == ComponentTypes.UI.value
            and target.startswith("ui/")
            and root.rstrip("/").endswith("/ui")
        ):
            target = target[3:]
        return os.path.normpath(os.path.join(self.cwd, root, target))

    def components_dir(self) -> str:
        """Absolute directory scanned for installed UI components."""
        alias = self.aliases.ui or self.aliases.components
        return os.path.normpath(os.path.join(self.cwd, self.resolve_alias(alias)))
