"""Finds a working way to invoke a package manager binary and runs it.

Package managers are not always on PATH under their own name: pnpm and yarn
are often only reachable through ``npx``/``npm exec`` or corepack, project
local binaries live in ``node_modules/.bin`` and on Windows the ``.cmd``
shims need a shell. Each way of invoking the binary is a row in
``STRATEGIES``; rows are probed with ``<binary> --version`` in table order and
the first one that answers runs the real command.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Sequence

from common.errors import UigetError
from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants

logger = logging.getLogger(__name__)

WINDOWS = "windows"


class ExecutionError(UigetError):
    """No strategy could start the package manager."""


@dataclass(frozen=True)
class Strategy:
    """One way of invoking a binary.

    Attributes:
        name: Label used in logs.
        build: Maps (argv, project_root) to the argv actually spawned.
        binaries: Restricts the row to these binary names; empty means any.
        requires: Host capability flags that must all be present.
        needs_file: Optional callable returning a path that must exist first.
    """

    name: str
    build: Callable[[List[str], str], List[str]]
    binaries: FrozenSet[str] = frozenset()
    requires: FrozenSet[str] = frozenset()
    needs_file: Optional[Callable[[str, str], str]] = None

    def applies(self, binary: str, capabilities: FrozenSet[str], project_root: str) -> bool:
        if self.binaries and binary not in self.binaries:
            return False
        if not self.requires <= capabilities:
            return False
        if self.needs_file is not None and not os.path.isfile(self.needs_file(binary, project_root)):
            return False
        return True


def _local_bin(binary: str, project_root: str) -> str:
    return os.path.join(project_root, Constants.NODE_BIN_DIR, binary)


STRATEGIES: List[Strategy] = [
    Strategy("direct", lambda argv, _root: list(argv)),
    Strategy("npx", lambda argv, _root: ["npx", *argv], binaries=frozenset({"pnpm"})),
    Strategy(
        "npm exec",
        lambda argv, _root: ["npm", "exec", argv[0], "--", *argv[1:]],
        binaries=frozenset({"pnpm", "yarn"}),
    ),
    Strategy(
        "local bin",
        lambda argv, root: [_local_bin(argv[0], root), *argv[1:]],
        needs_file=_local_bin,
    ),
    Strategy("corepack", lambda argv, _root: ["corepack", *argv]),
    Strategy("cmd", lambda argv, _root: ["cmd", "/C", *argv], requires=frozenset({WINDOWS})),
    Strategy(
        "powershell",
        lambda argv, _root: ["powershell", "-Command", "& " + " ".join(argv)],
        requires=frozenset({WINDOWS}),
    ),
]


def host_capabilities() -> FrozenSet[str]:
    """Capability flags of the running host."""
    caps = set()
    if os.name == "nt" or sys.platform.startswith("win"):
        caps.add(WINDOWS)
    return frozenset(caps)


@dataclass
class ExecutionResult:
    """Outcome of running a package-manager command."""

    strategy: str
    argv: List[str]
    returncode: int
    attempts: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.returncode == 0


class ExecutionStrategySelector:
    """Chooses and applies an invocation strategy for package-manager commands.

    Args:
        runner: ``subprocess.run`` compatible callable.
        capabilities: Host flags; detected from the platform when omitted.
        strategies: Ordered strategy table.
    """

    def __init__(
        self,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        capabilities: Optional[FrozenSet[str]] = None,
        strategies: Optional[Sequence[Strategy]] = None,
    ):
        self.runner = runner
        self.capabilities = host_capabilities() if capabilities is None else capabilities
        self.strategies = list(STRATEGIES if strategies is None else strategies)

    def _applicable(self, binary: str, project_root: str) -> List[Strategy]:
        return [s for s in self.strategies if s.applies(binary, self.capabilities, project_root)]

    def _probe(self, strategy: Strategy, binary: str, project_root: str) -> bool:
        argv = strategy.build([binary, "--version"], project_root)
        try:
            proc = self.runner(
                argv,
                cwd=project_root,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError as exc:
            logger.debug("Probe %s failed to start: %s", strategy.name, exc)
            return False
        ok = proc.returncode == 0
        if is_debug_enabled(logger):
            logger.debug(
                "Strategy probe",
                extra=extra_context(
                    event="probe",
                    component="execution",
                    action=strategy.name,
                    outcome="success" if ok else "failure",
                    target=binary,
                ),
            )
        return ok

    def select(self, binary: str, project_root: str) -> Optional[Strategy]:
        """First strategy whose ``--version`` probe exits 0, or None."""
        for strategy in self._applicable(binary, project_root):
            if self._probe(strategy, binary, project_root):
                return strategy
        return None

    def _spawn(self, argv: List[str], project_root: str) -> int:
        with Timer() as t:
            proc = self.runner(argv, cwd=project_root, check=False)
        logger.debug("Ran %s in %sms (exit %s)", " ".join(argv), t.duration_ms(), proc.returncode)
        return proc.returncode

    def run(self, argv: List[str], project_root: str) -> ExecutionResult:
        """Run ``argv`` (binary first) in ``project_root``.

        Returns:
            ExecutionResult of the strategy that ran last; callers check
            ``success``.

        Raises:
            ExecutionError: Even the final direct attempt could not be spawned.
        """
        if not argv:
            raise ValueError("empty command")
        binary = argv[0]

        strategy = self.select(binary, project_root)
        if strategy is not None:
            final = strategy.build(list(argv), project_root)
            logger.info("Running: %s", " ".join(final))
            try:
                code = self._spawn(final, project_root)
            except OSError as exc:
                raise ExecutionError(f"Failed to run {' '.join(final)}: {exc}") from exc
            return ExecutionResult(strategy.name, final, code, [strategy.name])

        logger.warning("No working invocation found for %s; trying each strategy in turn", binary)
        return self._run_fallback(list(argv), project_root)

    def _run_fallback(self, argv: List[str], project_root: str) -> ExecutionResult:
        attempts: List[str] = []
        last: Optional[ExecutionResult] = None
        for strategy in self._applicable(argv[0], project_root):
            final = strategy.build(argv, project_root)
            attempts.append(strategy.name)
            try:
                code = self._spawn(final, project_root)
            except OSError as exc:
                logger.info("Strategy %s could not start: %s", strategy.name, exc)
                continue
            logger.info("Strategy %s exited with %s", strategy.name, code)
            last = ExecutionResult(strategy.name, final, code, list(attempts))
            if code == 0:
                return last

        attempts.append("final direct")
        try:
            code = self._spawn(argv, project_root)
        except OSError as exc:
            if last is not None:
                last.attempts = attempts
                return last
            raise ExecutionError(
                f"Could not run {argv[0]}; tried {', '.join(attempts)}: {exc}"
            ) from exc
        return ExecutionResult("final direct", argv, code, attempts)
