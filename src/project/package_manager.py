"""Package manager detection for JavaScript projects.

Detection walks up from a start directory to the nearest ``package.json`` and
then consults an ordered list of independent probes; the first probe that
matches wins:

1. the ``npm_config_user_agent`` environment variable set by the invoking tool
2. the ``packageManager`` field of ``package.json``
3. Yarn Berry artifacts (``.pnp.cjs``, ``.yarnrc.yml`` ...)
4. ``pnpm-workspace.yaml``
5. the lockfile with the most recent modification time
6. npm as a heuristic fallback
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Mapping, Optional, Tuple

import semantic_version

from common.errors import UigetError
from common.logging_utils import extra_context, is_debug_enabled, log_selection, warn_multiple_candidates
from constants import Constants

logger = logging.getLogger(__name__)

_MANIFEST_FIELD = re.compile(r"^(?P<name>[a-zA-Z]+)@(?P<version>[\w.\-]+)$")
_BERRY_MIN = semantic_version.Version("2.0.0")


class DetectError(UigetError):
    """Base class for detection failures."""


class NoProjectError(DetectError):
    """No package.json exists in the start directory or any of its parents."""

    def __init__(self, path: str):
        super().__init__(f"No package.json found in {path} or any parent directory")
        self.path = path


class DetectIOError(DetectError):
    """The start directory or project files could not be read."""


class ManifestParseError(DetectError):
    """package.json exists but is not valid JSON."""


class PackageManager(Enum):
    """Package managers the installer knows how to drive.

    Values are the display names.
    """

    NPM = "npm"
    YARN_CLASSIC = "yarn (classic)"
    YARN_BERRY = "yarn (berry)"
    PNPM = "pnpm"
    BUN = "bun"
    UNKNOWN = "unknown"

    @property
    def binary(self) -> str:
        return _BINARIES[self]

    def install_command(self) -> List[str]:
        """Base argv for adding runtime dependencies."""
        return list(_INSTALL_COMMANDS[self][0])

    def install_dev_command(self) -> List[str]:
        """Base argv for adding development dependencies."""
        return list(_INSTALL_COMMANDS[self][1])


_BINARIES = {
    PackageManager.NPM: "npm",
    PackageManager.YARN_CLASSIC: "yarn",
    PackageManager.YARN_BERRY: "yarn",
    PackageManager.PNPM: "pnpm",
    PackageManager.BUN: "bun",
    PackageManager.UNKNOWN: "npm",
}

_INSTALL_COMMANDS = {
    PackageManager.NPM: (["npm", "install"], ["npm", "install", "--save-dev"]),
    PackageManager.YARN_CLASSIC: (["yarn", "add"], ["yarn", "add", "--dev"]),
    PackageManager.YARN_BERRY: (["yarn", "add"], ["yarn", "add", "--dev"]),
    PackageManager.PNPM: (["pnpm", "add"], ["pnpm", "add", "--save-dev"]),
    PackageManager.BUN: (["bun", "add"], ["bun", "add", "--dev"]),
    PackageManager.UNKNOWN: (["npm", "install"], ["npm", "install", "--save-dev"]),
}


class SourceKind(Enum):
    PACKAGE_JSON_FIELD = "package_json_field"
    LOCKFILE = "lockfile"
    YARN_ARTIFACTS = "yarn_artifacts"
    PNPM_ARTIFACTS = "pnpm_artifacts"
    USER_AGENT = "user_agent"
    HEURISTIC = "heuristic"


@dataclass(frozen=True)
class DetectionSource:
    """Provenance of a detection; ``detail`` is a path or the user-agent string."""

    kind: SourceKind
    detail: Optional[str] = None

    def describe(self) -> str:
        if self.kind is SourceKind.PACKAGE_JSON_FIELD:
            return "package.json field"
        if self.kind is SourceKind.LOCKFILE:
            return f"lockfile: {self.detail}"
        if self.kind is SourceKind.YARN_ARTIFACTS:
            return f"yarn artifacts: {self.detail}"
        if self.kind is SourceKind.PNPM_ARTIFACTS:
            return f"pnpm artifacts: {self.detail}"
        if self.kind is SourceKind.USER_AGENT:
            return f"user agent: {self.detail}"
        return "heuristic"


@dataclass(frozen=True)
class Detection:
    manager: PackageManager
    source: DetectionSource
    project_root: str
    version_hint: Optional[str] = None

    def info(self) -> str:
        return f"Detected {self.manager.value} via {self.source.describe()} at {self.project_root}"


def _manager_from_name(name: str, version: Optional[str]) -> Optional[PackageManager]:
    name = name.lower()
    if name == "npm":
        return PackageManager.NPM
    if name == "pnpm":
        return PackageManager.PNPM
    if name == "bun":
        return PackageManager.BUN
    if name == "yarn":
        return PackageManager.YARN_BERRY if _is_yarn_berry(version) else PackageManager.YARN_CLASSIC
    return None


def _is_yarn_berry(version: Optional[str]) -> bool:
    """True for yarn >= 2.0.0; missing version parts count as 0."""
    if not version:
        return False
    try:
        parsed = semantic_version.Version.coerce(version)
    except ValueError:
        return False
    return parsed >= _BERRY_MIN


def find_project_root(start_dir: str) -> str:
    """Return the nearest directory at or above ``start_dir`` holding package.json.

    Raises:
        DetectIOError: If ``start_dir`` does not exist.
        NoProjectError: If no ancestor has a package.json.
    """
    if not os.path.isdir(start_dir):
        raise DetectIOError(f"Start directory does not exist: {start_dir}")
    current = os.path.abspath(start_dir)
    while True:
        if os.path.isfile(os.path.join(current, Constants.PACKAGE_JSON_FILE)):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            raise NoProjectError(os.path.abspath(start_dir))
        current = parent


# ---------- probes ----------
# Each probe takes (project_root, env) and returns a Detection or None.


def _probe_user_agent(root: str, env: Mapping[str, str]) -> Optional[Detection]:
    agent = env.get(Constants.USER_AGENT_ENV, "")
    token = agent.split()[0] if agent.strip() else ""
    if "/" not in token:
        return None
    name, version = token.split("/", 1)
    manager = _manager_from_name(name, version)
    if manager is None:
        logger.debug("Ignoring unrecognized user agent %r", name)
        return None
    return Detection(manager, DetectionSource(SourceKind.USER_AGENT, agent), root, version or None)


def _probe_manifest_field(root: str, _env: Mapping[str, str]) -> Optional[Detection]:
    manifest = os.path.join(root, Constants.PACKAGE_JSON_FILE)
    try:
        with open(manifest, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(f"Invalid JSON in {manifest}: {exc}") from exc
    except OSError as exc:
        raise DetectIOError(f"Cannot read {manifest}: {exc}") from exc

    field = data.get("packageManager") if isinstance(data, dict) else None
    if not isinstance(field, str):
        return None
    match = _MANIFEST_FIELD.match(field.strip())
    if not match:
        logger.debug("Ignoring malformed packageManager field %r", field)
        return None
    version = match.group("version")
    try:
        semantic_version.Version.coerce(version)
    except ValueError:
        logger.debug("Ignoring non-numeric packageManager version %r", version)
        return None
    name = match.group("name").lower()
    manager = _manager_from_name(name, version) or PackageManager.UNKNOWN
    return Detection(manager, DetectionSource(SourceKind.PACKAGE_JSON_FIELD), root, version)


def _probe_yarn_artifacts(root: str, _env: Mapping[str, str]) -> Optional[Detection]:
    for marker in Constants.YARN_BERRY_MARKERS:
        path = os.path.join(root, marker)
        if os.path.exists(path):
            return Detection(
                PackageManager.YARN_BERRY, DetectionSource(SourceKind.YARN_ARTIFACTS, path), root
            )
    return None


def _probe_pnpm_artifacts(root: str, _env: Mapping[str, str]) -> Optional[Detection]:
    path = os.path.join(root, Constants.PNPM_WORKSPACE_FILE)
    if os.path.isfile(path):
        return Detection(PackageManager.PNPM, DetectionSource(SourceKind.PNPM_ARTIFACTS, path), root)
    return None


# Table order is the tie-break when two lockfiles share a modification time.
_LOCKFILES: List[Tuple[str, PackageManager]] = [
    (Constants.YARN_LOCK_FILE, PackageManager.YARN_CLASSIC),
    (Constants.PNPM_LOCK_FILE, PackageManager.PNPM),
    (Constants.PACKAGE_LOCK_FILE, PackageManager.NPM),
    (Constants.BUN_LOCKB_FILE, PackageManager.BUN),
    (Constants.BUN_LOCK_FILE, PackageManager.BUN),
]


def _probe_lockfiles(root: str, _env: Mapping[str, str]) -> Optional[Detection]:
    found = []
    for filename, manager in _LOCKFILES:
        path = os.path.join(root, filename)
        try:
            mtime = os.stat(path).st_mtime
        except OSError:
            continue
        found.append((path, manager, mtime))
    if not found:
        return None

    # max() keeps the first of equal keys, so ties resolve in table order
    path, manager, _ = max(found, key=lambda item: item[2])
    warn_multiple_candidates(logger, "lockfiles", path, [p for p, _, _ in found if p != path])
    log_selection(logger, "lockfile", path, "most recently modified")
    return Detection(manager, DetectionSource(SourceKind.LOCKFILE, path), root)


Probe = Callable[[str, Mapping[str, str]], Optional[Detection]]

PROBES: List[Probe] = [
    _probe_user_agent,
    _probe_manifest_field,
    _probe_yarn_artifacts,
    _probe_pnpm_artifacts,
    _probe_lockfiles,
]


def detect_package_manager(start_dir: str, env: Optional[Mapping[str, str]] = None) -> Detection:
    """Detect the package manager governing the project containing ``start_dir``.

    Args:
        start_dir: Directory to start the package.json search from.
        env: Environment mapping consulted for the user agent; defaults to os.environ.

    Returns:
        Detection: Always a concrete manager; npm with heuristic provenance
        when no signal matched.

    Raises:
        NoProjectError: No package.json at or above ``start_dir``.
        DetectIOError: Filesystem errors while reading project files.
        ManifestParseError: package.json is not valid JSON.
    """
    env = os.environ if env is None else env
    root = find_project_root(start_dir)

    for probe in PROBES:
        detection = probe(root, env)
        if detection is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "Package manager detected",
                    extra=extra_context(
                        event="decision",
                        component="package_manager",
                        action="detect",
                        outcome=detection.manager.name,
                        source=detection.source.kind.value,
                        target=root,
                    ),
                )
            return detection

    return Detection(PackageManager.NPM, DetectionSource(SourceKind.HEURISTIC), root)
