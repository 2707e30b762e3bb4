"""Shared fakes for registry HTTP traffic and package-manager subprocesses."""

import json
import subprocess

import pytest

from installer.execution import ExecutionStrategySelector
from project.config import AliasesConfig, Config, RegistryConfig, TypeScriptConfig
from registry.manager import RegistryManager

REGISTRY_URL = "https://registry.test/r/{name}.json"


class FakeResponse:
    def __init__(self, status_code, text):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Stands in for requests.Session; routes map URL -> payload, (status, payload) or exception."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.headers = {}
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404, "Not Found")
        if isinstance(route, Exception):
            raise route
        status, payload = route if isinstance(route, tuple) else (200, route)
        text = payload if isinstance(payload, str) else json.dumps(payload)
        return FakeResponse(status, text)


class RecordingRunner:
    """subprocess.run replacement; ``results`` maps the spawned argv tuple to an exit code."""

    def __init__(self, results=None, default=0, missing=()):
        self.results = dict(results or {})
        self.default = default
        self.missing = set(missing)
        self.calls = []

    def __call__(self, argv, **kwargs):
        self.calls.append(list(argv))
        if argv[0] in self.missing:
            raise FileNotFoundError(argv[0])
        code = self.results.get(tuple(argv), self.default)
        return subprocess.CompletedProcess(argv, code)


def component_url(name):
    return REGISTRY_URL.replace("{name}", name)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def make_config():
    def _make(ui="lib/components/ui", lib="src/lib", typescript=False, registries=None):
        return Config(
            aliases=AliasesConfig(
                components="lib/components",
                utils="lib/utils",
                ui=ui,
                hooks="lib/hooks",
                lib=lib,
            ),
            registries=registries or {"default": RegistryConfig(url=REGISTRY_URL)},
            typescript=TypeScriptConfig(enabled=typescript),
        )
    return _make


@pytest.fixture
def make_installer(tmp_path, session, runner, make_config):
    """Build a ComponentInstaller rooted at tmp_path with fake HTTP and subprocesses."""
    from installer.component_installer import ComponentInstaller

    def _make(config=None, prompter=None, env=None, **kwargs):
        config = config or make_config(**kwargs)
        return ComponentInstaller(
            config,
            cwd=str(tmp_path),
            registry_manager=RegistryManager.from_config(config, session=session),
            prompter=prompter,
            executor=ExecutionStrategySelector(runner=runner, capabilities=frozenset()),
            env=env or {},
        )
    return _make
