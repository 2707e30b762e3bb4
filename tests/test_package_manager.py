"""Tests for package manager detection."""

import json
import os

import pytest

from project.package_manager import (
    DetectIOError,
    ManifestParseError,
    NoProjectError,
    PackageManager,
    SourceKind,
    detect_package_manager,
    find_project_root,
)


def _write_manifest(path, **fields):
    data = {"name": "app", "version": "1.0.0"}
    data.update(fields)
    (path / "package.json").write_text(json.dumps(data))


def _touch(path, mtime):
    path.write_text("")
    os.utime(path, (mtime, mtime))


class TestProjectRoot:
    """Project root discovery."""

    def test_walks_up_to_manifest(self, tmp_path):
        _write_manifest(tmp_path)
        nested = tmp_path / "src" / "lib"
        nested.mkdir(parents=True)
        assert find_project_root(str(nested)) == str(tmp_path)

    def test_no_manifest_raises_no_project(self, tmp_path):
        with pytest.raises(NoProjectError) as exc:
            detect_package_manager(str(tmp_path), env={})
        assert exc.value.path == str(tmp_path)

    def test_missing_start_dir_is_io_error(self, tmp_path):
        with pytest.raises(DetectIOError):
            detect_package_manager(str(tmp_path / "nope"), env={})

    def test_detection_root_is_manifest_dir(self, tmp_path):
        _write_manifest(tmp_path)
        nested = tmp_path / "packages" / "web"
        nested.mkdir(parents=True)
        detection = detect_package_manager(str(nested), env={})
        assert detection.project_root == str(tmp_path)


class TestUserAgent:
    """npm_config_user_agent takes precedence over everything else."""

    @pytest.mark.parametrize("agent,expected", [
        ("pnpm/8.6.0 npm/? node/v18.16.0 darwin x64", PackageManager.PNPM),
        ("yarn/1.22.19 npm/? node/v18.16.0", PackageManager.YARN_CLASSIC),
        ("yarn/3.6.1 npm/? node/v18.16.0", PackageManager.YARN_BERRY),
        ("yarn/2 npm/?", PackageManager.YARN_BERRY),
        ("npm/9.8.1 node/v18.16.0", PackageManager.NPM),
        ("bun/1.0.0 npm/? node/v20", PackageManager.BUN),
    ])
    def test_known_agents(self, tmp_path, agent, expected):
        _write_manifest(tmp_path, packageManager="npm@9.0.0")
        detection = detect_package_manager(str(tmp_path), env={"npm_config_user_agent": agent})
        assert detection.manager is expected
        assert detection.source.kind is SourceKind.USER_AGENT
        assert detection.source.detail == agent

    def test_unknown_agent_falls_through(self, tmp_path):
        _write_manifest(tmp_path, packageManager="pnpm@8.15.4")
        detection = detect_package_manager(str(tmp_path), env={"npm_config_user_agent": "deno/1.40"})
        assert detection.manager is PackageManager.PNPM
        assert detection.source.kind is SourceKind.PACKAGE_JSON_FIELD


class TestManifestField:
    """The packageManager field of package.json."""

    def test_pnpm_field_wins_over_lockfiles(self, tmp_path):
        _write_manifest(tmp_path, packageManager="pnpm@8.15.4")
        (tmp_path / "yarn.lock").write_text("")
        (tmp_path / "package-lock.json").write_text("{}")
        detection = detect_package_manager(str(tmp_path), env={})
        assert detection.manager is PackageManager.PNPM
        assert detection.version_hint == "8.15.4"
        assert detection.source.kind is SourceKind.PACKAGE_JSON_FIELD

    @pytest.mark.parametrize("field,expected", [
        ("yarn@1.22.19", PackageManager.YARN_CLASSIC),
        ("yarn@1.99.99", PackageManager.YARN_CLASSIC),
        ("yarn@2.0.0", PackageManager.YARN_BERRY),
        ("yarn@4.1.0", PackageManager.YARN_BERRY),
        ("Yarn@3.2.0", PackageManager.YARN_BERRY),
        ("bun@1.1.0", PackageManager.BUN),
        ("npm@10.2.0", PackageManager.NPM),
        ("deno@1.40.0", PackageManager.UNKNOWN),
    ])
    def test_field_mapping(self, tmp_path, field, expected):
        _write_manifest(tmp_path, packageManager=field)
        assert detect_package_manager(str(tmp_path), env={}).manager is expected

    @pytest.mark.parametrize("field", ["pnpm", "pnpm@", "pnpm@latest", "@8.0.0", "pn pm@8.0.0"])
    def test_malformed_field_falls_through(self, tmp_path, field):
        _write_manifest(tmp_path, packageManager=field)
        detection = detect_package_manager(str(tmp_path), env={})
        assert detection.source.kind is SourceKind.HEURISTIC

    def test_invalid_manifest_json(self, tmp_path):
        (tmp_path / "package.json").write_text("{ not json")
        with pytest.raises(ManifestParseError):
            detect_package_manager(str(tmp_path), env={})


class TestArtifacts:
    """Yarn Berry and pnpm marker files."""

    @pytest.mark.parametrize("marker", [".pnp.cjs", ".pnp.loader.mjs", ".pnp.data.json", ".yarnrc.yml"])
    def test_yarn_berry_marker_files(self, tmp_path, marker):
        _write_manifest(tmp_path)
        (tmp_path / marker).write_text("")
        detection = detect_package_manager(str(tmp_path), env={})
        assert detection.manager is PackageManager.YARN_BERRY
        assert detection.source.kind is SourceKind.YARN_ARTIFACTS
        assert detection.source.detail == str(tmp_path / marker)

    def test_yarn_directory_marker(self, tmp_path):
        _write_manifest(tmp_path)
        (tmp_path / ".yarn").mkdir()
        assert detect_package_manager(str(tmp_path), env={}).manager is PackageManager.YARN_BERRY

    def test_yarnrc_without_linker_keys_still_matches(self, tmp_path):
        _write_manifest(tmp_path)
        (tmp_path / ".yarnrc.yml").write_text("enableTelemetry: false\n")
        assert detect_package_manager(str(tmp_path), env={}).manager is PackageManager.YARN_BERRY

    def test_yarn_artifacts_beat_pnpm_workspace(self, tmp_path):
        _write_manifest(tmp_path)
        (tmp_path / ".pnp.cjs").write_text("")
        (tmp_path / "pnpm-workspace.yaml").write_text("packages: []\n")
        assert detect_package_manager(str(tmp_path), env={}).manager is PackageManager.YARN_BERRY

    def test_pnpm_workspace(self, tmp_path):
        _write_manifest(tmp_path)
        (tmp_path / "pnpm-workspace.yaml").write_text("packages:\n  - 'packages/*'\n")
        (tmp_path / "package-lock.json").write_text("{}")
        detection = detect_package_manager(str(tmp_path), env={})
        assert detection.manager is PackageManager.PNPM
        assert detection.source.kind is SourceKind.PNPM_ARTIFACTS


class TestLockfiles:
    """Most recently modified lockfile wins."""

    def test_newest_lockfile_wins(self, tmp_path):
        _write_manifest(tmp_path)
        _touch(tmp_path / "yarn.lock", 1_600_000_000)
        _touch(tmp_path / "package-lock.json", 1_700_000_000)
        detection = detect_package_manager(str(tmp_path), env={})
        assert detection.manager is PackageManager.NPM
        assert detection.source.kind is SourceKind.LOCKFILE
        assert detection.source.detail == str(tmp_path / "package-lock.json")

    @pytest.mark.parametrize("lockfile,expected", [
        ("yarn.lock", PackageManager.YARN_CLASSIC),
        ("pnpm-lock.yaml", PackageManager.PNPM),
        ("package-lock.json", PackageManager.NPM),
        ("bun.lockb", PackageManager.BUN),
        ("bun.lock", PackageManager.BUN),
    ])
    def test_single_lockfile(self, tmp_path, lockfile, expected):
        _write_manifest(tmp_path)
        (tmp_path / lockfile).write_text("")
        assert detect_package_manager(str(tmp_path), env={}).manager is expected

    def test_equal_mtimes_use_fixed_priority(self, tmp_path):
        _write_manifest(tmp_path)
        for name in ("bun.lockb", "package-lock.json", "pnpm-lock.yaml"):
            _touch(tmp_path / name, 1_650_000_000)
        detection = detect_package_manager(str(tmp_path), env={})
        assert detection.manager is PackageManager.PNPM

    def test_multiple_lockfiles_warn(self, tmp_path, caplog):
        _write_manifest(tmp_path)
        _touch(tmp_path / "yarn.lock", 1_600_000_000)
        _touch(tmp_path / "pnpm-lock.yaml", 1_700_000_000)
        with caplog.at_level("WARNING"):
            detect_package_manager(str(tmp_path), env={})
        assert "Multiple lockfiles" in caplog.text


class TestFallback:
    def test_heuristic_npm(self, tmp_path):
        _write_manifest(tmp_path)
        detection = detect_package_manager(str(tmp_path), env={})
        assert detection.manager is PackageManager.NPM
        assert detection.source.kind is SourceKind.HEURISTIC
        assert detection.info() == f"Detected npm via heuristic at {tmp_path}"


class TestCommands:
    """Install command table per manager."""

    @pytest.mark.parametrize("manager,install,dev", [
        (PackageManager.NPM, ["npm", "install"], ["npm", "install", "--save-dev"]),
        (PackageManager.YARN_CLASSIC, ["yarn", "add"], ["yarn", "add", "--dev"]),
        (PackageManager.YARN_BERRY, ["yarn", "add"], ["yarn", "add", "--dev"]),
        (PackageManager.PNPM, ["pnpm", "add"], ["pnpm", "add", "--save-dev"]),
        (PackageManager.BUN, ["bun", "add"], ["bun", "add", "--dev"]),
        (PackageManager.UNKNOWN, ["npm", "install"], ["npm", "install", "--save-dev"]),
    ])
    def test_commands(self, manager, install, dev):
        assert manager.install_command() == install
        assert manager.install_dev_command() == dev

    def test_command_lists_are_copies(self):
        cmd = PackageManager.PNPM.install_command()
        cmd.append("react")
        assert PackageManager.PNPM.install_command() == ["pnpm", "add"]
