"""Component installation orchestrator.

A :class:`ComponentInstaller` is built once per CLI invocation. Construction
detects the package manager and loads tsconfig path mappings; both facts stay
fixed for the lifetime of the object and drive every operation:

* ``install`` / ``install_component``: fetch, expand registry dependencies
  one level deep, write files, add npm dependencies
* ``get_installed_components`` / ``is_component_outdated``: compare the
  project against freshly fetched registry content
* ``list_components`` / ``search_components`` / ``get_component_info``:
  read-only registry queries returned as data for the CLI to render
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from common.errors import UigetError
from common.logging_utils import extra_context, is_debug_enabled
from constants import ComponentTypes, Constants
from installer.execution import ExecutionError, ExecutionStrategySelector
from installer.placeholders import PlaceholderProcessor
from installer.prompts import ConsolePrompter
from project.config import Config
from project.package_manager import DetectError, Detection, detect_package_manager
from project.paths import ComponentContext, PathMappingError, PathResolver, load_path_mappings
from registry.errors import RegistryError
from registry.manager import RegistryManager, parse_component_with_namespace
from registry.models import Component, ComponentInfo

logger = logging.getLogger(__name__)


class InstallError(UigetError):
    """Base class for installation failures."""


class AlreadyExistsError(InstallError):
    """A target file exists and overwriting was not requested."""

    def __init__(self, path: str):
        super().__init__(f"File '{path}' already exists. Use --force to overwrite")
        self.path = path


class PackageInstallError(InstallError):
    """The package manager could not install npm dependencies."""


@dataclass
class ComponentStatus:
    info: ComponentInfo
    installed: bool = False
    outdated: bool = False

    @property
    def marker(self) -> str:
        if not self.installed:
            return " "
        return "⚠" if self.outdated else "✓"


@dataclass
class RegistryListing:
    namespace: str
    components: List[ComponentStatus] = field(default_factory=list)


# (key, label, registry type); "other" collects everything else.
CATEGORIES: List[Tuple[str, str, Optional[str]]] = [
    ("ui", "UI Components", ComponentTypes.UI.value),
    ("block", "Blocks", ComponentTypes.BLOCK.value),
    ("hook", "Hooks", ComponentTypes.HOOK.value),
    ("lib", "Libraries", ComponentTypes.LIB.value),
    ("other", "Other", None),
]


def group_by_category(entries: Iterable[ComponentInfo]) -> Dict[str, List[ComponentInfo]]:
    """Bucket index entries by category key, preserving index order."""
    known = {type_tag: key for key, _, type_tag in CATEGORIES if type_tag}
    groups: Dict[str, List[ComponentInfo]] = {key: [] for key, _, _ in CATEGORIES}
    for entry in entries:
        groups[known.get(entry.type or "", "other")].append(entry)
    return groups


def _normalize_content(content: str) -> str:
    return "\n".join(line.strip() for line in content.splitlines() if line.strip())


def _is_component_file(filename: str) -> bool:
    if filename.startswith("."):
        return False
    if filename.endswith((".d.ts", ".map")):
        return False
    return filename.split(".", 1)[0] != "index"


class ComponentInstaller:
    """Installs registry components into the project rooted at ``cwd``.

    Args:
        config: Loaded project configuration.
        cwd: Project working directory; defaults to the process cwd.
        registry_manager: Registry access; built from ``config`` when omitted.
        prompter: Interactive selection; a ConsolePrompter when omitted.
        executor: Package-manager runner; an ExecutionStrategySelector when omitted.
        env: Environment used for package manager detection.
        verbose: Report detection and path resolution details at INFO level.
    """

    # pylint: disable=too-many-instance-attributes, too-many-arguments
    def __init__(
        self,
        config: Config,
        *,
        cwd: Optional[str] = None,
        registry_manager: Optional[RegistryManager] = None,
        prompter=None,
        executor: Optional[ExecutionStrategySelector] = None,
        env: Optional[Mapping[str, str]] = None,
        verbose: bool = False,
    ):
        self.config = config
        self.cwd = os.path.abspath(cwd or os.getcwd())
        self.registry_manager = registry_manager or RegistryManager.from_config(config)
        self.prompter = prompter or ConsolePrompter()
        self.executor = executor or ExecutionStrategySelector()
        self.verbose = verbose
        self._detail = logging.INFO if verbose else logging.DEBUG

        try:
            resolved = load_path_mappings(config.typescript, self.cwd)
        except PathMappingError as exc:
            logger.warning("Ignoring TypeScript path mappings: %s", exc)
            resolved = None
        self.path_resolver = PathResolver(config.aliases, resolved, self.cwd)
        self.placeholders = PlaceholderProcessor(self.path_resolver, config.typescript_enabled)

        self.detection: Optional[Detection]
        try:
            self.detection = detect_package_manager(self.cwd, env)
            logger.log(self._detail, self.detection.info())
        except DetectError as exc:
            logger.warning("Could not detect package manager: %s", exc)
            self.detection = None

    # ---------- install ----------

    def install(
        self,
        name: Optional[str] = None,
        namespace: Optional[str] = None,
        force: bool = False,
        skip_deps: bool = False,
    ) -> None:
        """Install ``name``, or run interactive selection when no name is given."""
        if name is None:
            self._interactive_install(namespace, force, skip_deps)
            return
        self.install_component(name, namespace, force, skip_deps)

    def install_component(
        self,
        name: str,
        namespace: Optional[str] = None,
        force: bool = False,
        skip_deps: bool = False,
        _visited: Optional[Set[Tuple[Optional[str], str]]] = None,
    ) -> Component:
        """Fetch and install one component.

        Registry dependencies are installed first, one level deep. Files
        already written stay in place if a later step fails.

        Raises:
            ComponentNotFoundError: No registry has the component.
            AlreadyExistsError: A target exists and ``force`` is False.
            PackageInstallError: The package manager failed.
        """
        visited = set() if _visited is None else _visited
        visited.add((namespace, name))

        component = self._fetch(name, namespace)
        logger.info("Installing %s from %s", component.name, component.registry)

        if not skip_deps:
            for dependency in component.registry_dependencies:
                dep_name, dep_namespace = parse_component_with_namespace(dependency)
                dep_namespace = dep_namespace or namespace
                if (dep_namespace, dep_name) in visited:
                    logger.debug("Skipping already visited dependency %s", dependency)
                    continue
                logger.info("Installing dependency %s", dep_name)
                self.install_component(dep_name, dep_namespace, force, True, visited)

        context = ComponentContext(component.name, component.type, component.registry)
        self.install_component_files(component, context, force)

        if component.dependencies or component.dev_dependencies:
            self.install_dependencies(component.dependencies, component.dev_dependencies)

        logger.info("Installed %s", component.name)
        return component

    def _fetch(self, name: str, namespace: Optional[str]) -> Component:
        if namespace:
            return self.registry_manager.fetch_component(namespace, name)
        return self.registry_manager.fetch_component_auto(name)

    def install_component_files(
        self, component: Component, context: ComponentContext, force: bool = False
    ) -> List[str]:
        """Write every file of ``component``; returns the written paths."""
        written = []
        for file in component.files:
            path = self.path_resolver.resolve_file_path(file.target_path, context)
            if os.path.exists(path) and not force:
                raise AlreadyExistsError(path)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w", encoding="utf-8") as handle:
                handle.write(self.placeholders.process(file.content, context))
            logger.log(self._detail, "Wrote %s", os.path.relpath(path, self.cwd))
            written.append(path)
        return written

    def install_dependencies(self, dependencies: List[str], dev_dependencies: List[str]) -> None:
        """Add npm packages with the detected package manager.

        Skipped with a warning when no package manager was detected.
        """
        if self.detection is None:
            logger.warning(
                "No package manager detected; install these manually: %s",
                " ".join(dependencies + dev_dependencies),
            )
            return
        manager = self.detection.manager
        batches = []
        if dependencies:
            batches.append(manager.install_command() + list(dependencies))
        if dev_dependencies:
            batches.append(manager.install_dev_command() + list(dev_dependencies))

        for argv in batches:
            logger.info("Installing packages with %s: %s", manager.value, " ".join(argv[2:]))
            try:
                result = self.executor.run(argv, self.detection.project_root)
            except ExecutionError as exc:
                raise PackageInstallError(str(exc)) from exc
            if not result.success:
                raise PackageInstallError(
                    f"'{' '.join(argv)}' failed with exit code {result.returncode} "
                    f"(tried: {', '.join(result.attempts)})"
                )

    # ---------- interactive selection ----------

    def _choose_namespace(self, namespace: Optional[str]) -> Optional[str]:
        if namespace:
            self.registry_manager.require_registry(namespace)
            return namespace
        namespaces = self.registry_manager.namespaces()
        if not namespaces:
            raise InstallError("No registries configured")
        if len(namespaces) == 1:
            return namespaces[0]
        return namespaces[self.prompter.select("Select a registry:", namespaces)]

    def _interactive_install(self, namespace: Optional[str], force: bool, skip_deps: bool) -> None:
        namespace = self._choose_namespace(namespace)
        index = self.registry_manager.require_registry(namespace).fetch_index()
        if not index:
            logger.warning("No components found in registry '%s'", namespace)
            return

        installed = set(self.get_installed_components())
        groups = group_by_category(index.as_list())
        statuses = {
            info.name: ComponentStatus(
                info,
                installed=info.name in installed,
                outdated=info.name in installed and self.is_component_outdated(info.name, namespace),
            )
            for info in index.as_list()
        }

        selected = self._prompt_selection(groups, statuses)
        if not selected:
            logger.info("No components selected")
            return

        logger.info("Installing %d component(s)...", len(selected))
        for info in selected:
            self.install_component(info.name, namespace, force, skip_deps)

    def _prompt_selection(
        self, groups: Dict[str, List[ComponentInfo]], statuses: Dict[str, ComponentStatus]
    ) -> List[ComponentInfo]:
        options = ["Browse and select individual components"]
        bulk: List[Optional[Tuple[str, List[ComponentInfo]]]] = [None]
        for key, label, _ in CATEGORIES:
            if groups[key]:
                options.append(f"Select ALL {label} ({len(groups[key])} items)")
                bulk.append((label, groups[key]))
        options.append("Cancel")
        bulk.append(None)

        choice = self.prompter.select("What would you like to do?", options)
        if choice == 0:
            return self._browse(groups, statuses)
        picked = bulk[choice] if 0 <= choice < len(bulk) else None
        if picked is None:
            logger.info("Operation cancelled")
            return []

        label, components = picked
        preview = [c.name for c in components[: Constants.BULK_PREVIEW_LIMIT]]
        extra = len(components) - len(preview)
        logger.info("Selected ALL %s: %s%s", label, ", ".join(preview), f" ... and {extra} more" if extra else "")
        if not self.prompter.confirm(f"Install all {len(components)} components?", True):
            logger.info("Installation cancelled")
            return []
        return list(components)

    def _browse(
        self, groups: Dict[str, List[ComponentInfo]], statuses: Dict[str, ComponentStatus]
    ) -> List[ComponentInfo]:
        items: List[str] = []
        mapping: List[Optional[ComponentInfo]] = []
        for key, label, _ in CATEGORIES:
            entries = groups[key]
            if not entries:
                continue
            items.append(f"{label} ({len(entries)})")
            mapping.append(None)
            for info in entries:
                items.append(f"  {statuses[info.name].marker} {info.name}")
                mapping.append(info)

        chosen = self.prompter.multi_select("Select components to install:", items)
        return [mapping[i] for i in chosen if 0 <= i < len(mapping) and mapping[i] is not None]

    # ---------- status ----------

    def is_component_installed(self, name: str) -> bool:
        base = self.path_resolver.components_dir()
        if os.path.isdir(os.path.join(base, name)):
            return True
        return any(
            os.path.isfile(os.path.join(base, f"{name}.{ext}")) for ext in Constants.COMPONENT_EXTENSIONS
        )

    def get_installed_components(self) -> List[str]:
        """Names of components present in the UI components directory."""
        base = self.path_resolver.components_dir()
        if not os.path.isdir(base):
            return []
        names = set()
        with os.scandir(base) as entries:
            for entry in entries:
                if entry.is_dir():
                    if not entry.name.startswith("."):
                        names.add(entry.name)
                elif entry.is_file() and _is_component_file(entry.name):
                    names.add(entry.name.split(".", 1)[0])
        return sorted(names)

    def is_component_outdated(self, name: str, namespace: Optional[str] = None) -> bool:
        """True when any local file differs from the registry copy.

        Fetch failures count as "not outdated".
        """
        if not self.is_component_installed(name):
            return False
        try:
            component = self._fetch(name, namespace)
        except RegistryError as exc:
            logger.debug("Cannot check %s for updates: %s", name, exc)
            return False

        context = ComponentContext(component.name, component.type, component.registry)
        for file in component.files:
            path = self.path_resolver.resolve_file_path(file.target_path, context)
            try:
                with open(path, "r", encoding="utf-8") as handle:
                    local = handle.read()
            except (OSError, UnicodeDecodeError) as exc:
                logger.debug("Cannot read %s: %s", path, exc)
                return True
            local = self.placeholders.process(local, context)
            remote = self.placeholders.process(file.content, context)
            if _normalize_content(local) != _normalize_content(remote):
                if is_debug_enabled(logger):
                    logger.debug(
                        "Component differs from registry",
                        extra=extra_context(
                            event="decision",
                            component="installer",
                            action="outdated",
                            target=name,
                            outcome="outdated",
                        ),
                    )
                return True
        return False

    def check_outdated_components(
        self, names: List[str], namespace: Optional[str] = None
    ) -> List[str]:
        return [name for name in names if self.is_component_outdated(name, namespace)]

    # ---------- read-only queries ----------

    def _namespaces(self, namespace: Optional[str]) -> List[str]:
        if namespace:
            self.registry_manager.require_registry(namespace)
            return [namespace]
        return self.registry_manager.namespaces()

    def _statuses(self, entries: Iterable[ComponentInfo], installed: Set[str]) -> List[ComponentStatus]:
        return [ComponentStatus(info, installed=info.name in installed) for info in entries]

    def list_components(self, namespace: Optional[str] = None) -> List[RegistryListing]:
        """Index of each registry with installed markers; unreachable registries are skipped."""
        installed = set(self.get_installed_components())
        listings = []
        for ns in self._namespaces(namespace):
            try:
                index = self.registry_manager.require_registry(ns).fetch_index()
            except RegistryError as exc:
                if namespace:
                    raise
                logger.warning("Failed to fetch index from registry '%s': %s", ns, exc)
                continue
            listings.append(RegistryListing(ns, self._statuses(index.as_list(), installed)))
        return listings

    def search_components(self, query: str, namespace: Optional[str] = None) -> List[RegistryListing]:
        installed = set(self.get_installed_components())
        if namespace:
            found = {namespace: self.registry_manager.require_registry(namespace).search_components(query)}
        else:
            found = self.registry_manager.search_all(query)
        return [
            RegistryListing(ns, self._statuses(entries, installed))
            for ns, entries in found.items()
            if entries
        ]

    def get_component_info(self, name: str, namespace: Optional[str] = None) -> Component:
        return self._fetch(name, namespace)
