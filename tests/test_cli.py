"""Tests for argument parsing and the uiget entrypoint."""

import json
from unittest.mock import patch

import pytest

import uiget
from args import parse_args
from common.http_client import HttpRequestError
from conftest import component_url
from constants import ExitCodes
from installer.component_installer import AlreadyExistsError
from project.config import ConfigError
from registry.errors import ComponentNotFoundError


@pytest.fixture
def logging_calls():
    with patch("uiget.configure_logging") as mocked:
        yield mocked


@pytest.fixture
def project(tmp_path, monkeypatch, logging_calls):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _run(argv):
    with pytest.raises(SystemExit) as exc:
        uiget.main(argv)
    return exc.value.code


class TestParseArgs:
    def test_add(self):
        args = parse_args(["add", "@acme/button", "--force", "-r", "@acme"])
        assert args.COMMAND == "add"
        assert args.COMPONENT == "@acme/button"
        assert args.FORCE and not args.SKIP_DEPS
        assert args.REGISTRY == "@acme"

    def test_add_without_component(self):
        args = parse_args(["add", "--skip-deps"])
        assert args.COMPONENT is None
        assert args.SKIP_DEPS

    def test_global_options(self):
        args = parse_args(["-v", "--loglevel", "debug", "--logfile", "out.log", "-c", "ui.yaml", "list"])
        assert args.VERBOSE
        assert args.LOG_LEVEL == "DEBUG"
        assert args.LOG_FILE == "out.log"
        assert args.CONFIG == "ui.yaml"

    def test_defaults(self):
        args = parse_args(["outdated"])
        assert args.LOG_LEVEL == "INFO"
        assert args.REGISTRY is None
        assert not args.VERBOSE

    def test_registry_actions(self):
        args = parse_args(["registry", "add", "@acme", "https://acme.test/{name}.json"])
        assert args.COMMAND == "registry"
        assert (args.REGISTRY_COMMAND, args.NAMESPACE, args.URL) == ("add", "@acme", "https://acme.test/{name}.json")

    @pytest.mark.parametrize("argv", [[], ["registry"], ["search"], ["bogus"]])
    def test_usage_errors(self, argv):
        with pytest.raises(SystemExit) as exc:
            parse_args(argv)
        assert exc.value.code == 2


class TestInit:
    def test_creates_config(self, project, logging_calls):
        assert _run(["init"]) == ExitCodes.SUCCESS.value
        data = json.loads((project / "uiget.json").read_text())
        assert data["aliases"]["components"] == "$lib/components"
        assert data["aliases"]["utils"] == "$lib/utils"
        assert data["aliases"]["ui"] == "$lib/components/ui"
        assert data["registries"]["default"] == "https://shadcn-svelte.com/registry/{name}.json"
        assert data["typescript"] is True
        logging_calls.assert_called_once_with("INFO", None)

    def test_refuses_to_overwrite(self, project):
        (project / "uiget.json").write_text("{}")
        assert _run(["init"]) == ExitCodes.FILE_ERROR.value
        assert (project / "uiget.json").read_text() == "{}"

    def test_force_and_options(self, project):
        (project / "uiget.json").write_text("{}")
        assert _run(["init", "--force", "--no-typescript", "--components", "@/components", "--utils", "@/lib/utils"]) == 0
        data = json.loads((project / "uiget.json").read_text())
        assert data["typescript"] is False
        assert data["aliases"]["components"] == "@/components"

    def test_explicit_yaml_path(self, project):
        assert _run(["-c", "ui.yaml", "init"]) == 0
        assert "aliases:" in (project / "ui.yaml").read_text()


class TestRegistryCommands:
    def test_add_list_remove(self, project, capsys):
        _run(["init"])
        assert _run(["registry", "add", "@acme", "https://acme.test/r/{name}.json"]) == 0
        assert "@acme" in json.loads((project / "uiget.json").read_text())["registries"]

        capsys.readouterr()
        assert _run(["registry", "list"]) == 0
        out = capsys.readouterr().out
        assert "default: https://shadcn-svelte.com/registry/{name}.json" in out
        assert "@acme: https://acme.test/r/{name}.json" in out

        assert _run(["registry", "remove", "@acme"]) == 0
        assert "@acme" not in json.loads((project / "uiget.json").read_text())["registries"]

    def test_remove_unknown(self, project):
        _run(["init"])
        assert _run(["registry", "remove", "@nope"]) == ExitCodes.USAGE_ERROR.value

    def test_invalid_url(self, project):
        _run(["init"])
        assert _run(["registry", "add", "@acme", "acme.test"]) == ExitCodes.FILE_ERROR.value

    def test_missing_config(self, project):
        assert _run(["registry", "list"]) == ExitCodes.FILE_ERROR.value


class TestComponentCommands:
    """Commands that need an installer run against the fake registry."""

    @pytest.fixture
    def fake_installer(self, monkeypatch, make_installer, session, logging_calls):
        session.routes[component_url("button")] = {
            "name": "button",
            "type": "registry:ui",
            "description": "A button",
            "dependencies": ["clsx"],
            "files": [{"type": "registry:ui", "target": "ui/button/button.tsx", "content": "x"}],
        }
        session.routes["https://registry.test/r/index.json"] = [{"name": "button", "type": "registry:ui"}]
        installer = make_installer()
        monkeypatch.setattr(uiget, "_build_installer", lambda args, cwd: installer)
        return installer

    def test_add(self, fake_installer, tmp_path):
        assert _run(["add", "button"]) == 0
        assert (tmp_path / "lib" / "components" / "ui" / "button" / "button.tsx").is_file()

    def test_add_existing_is_install_error(self, fake_installer):
        _run(["add", "button"])
        assert _run(["add", "button"]) == ExitCodes.INSTALL_ERROR.value

    def test_add_unknown_is_connection_error(self, fake_installer):
        assert _run(["add", "nope"]) == ExitCodes.CONNECTION_ERROR.value

    def test_info(self, fake_installer, capsys):
        assert _run(["info", "button"]) == 0
        out = capsys.readouterr().out
        assert "button (default)" in out
        assert "Dependencies: clsx" in out
        assert "Installed: no" in out

    def test_list(self, fake_installer, capsys):
        assert _run(["list"]) == 0
        assert "    button  [registry:ui]" in capsys.readouterr().out

    def test_search_no_match(self, fake_installer, capsys):
        assert _run(["search", "zzz"]) == 0
        assert "No components matching 'zzz'." in capsys.readouterr().out

    def test_outdated(self, fake_installer, tmp_path, capsys):
        assert _run(["outdated"]) == 0
        assert "No installed components found." in capsys.readouterr().out
        _run(["add", "button"])
        (tmp_path / "lib" / "components" / "ui" / "button" / "button.tsx").write_text("y")
        capsys.readouterr()
        assert _run(["outdated"]) == 0
        assert "⚠ button" in capsys.readouterr().out


@pytest.mark.parametrize("exc,code", [
    (ConfigError("bad"), ExitCodes.FILE_ERROR),
    (HttpRequestError("down"), ExitCodes.CONNECTION_ERROR),
    (ComponentNotFoundError("x"), ExitCodes.CONNECTION_ERROR),
    (AlreadyExistsError("/tmp/x"), ExitCodes.INSTALL_ERROR),
])
def test_exit_code_mapping(exc, code):
    assert uiget._exit_code_for(exc) == code.value
