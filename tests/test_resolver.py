"""Tests for server directory, runtime binary and env file resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from stow_desktop.cli.desktop.resolver import (
    ancestor_walk_strategy,
    default_strategies,
    find_runtime_binary,
    fixed_directory_strategy,
    macos_bundle_strategy,
    parse_env_file,
    platform_strategies,
    resolve_server_location,
)


def _make_standalone(root: Path) -> Path:
    standalone = root / ".next" / "standalone"
    standalone.mkdir(parents=True)
    (standalone / "server.js").write_text("// server\n")
    return standalone


class TestParseEnvFile:
    def test_distinct_keys_and_last_write_wins(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env.local"
        env_file.write_text("A=1\nB=2\nA=3\nC=4\nB=5\n")

        env = parse_env_file(env_file)

        assert len(env) == 3
        assert env == {"A": "3", "B": "5", "C": "4"}

    def test_comments_and_blank_lines_do_not_change_the_result(
        self, tmp_path: Path
    ) -> None:
        data_lines = ["DB_URL=postgres://x", "TOKEN=abc", "PORT=9999"]
        plain = tmp_path / "plain.env"
        plain.write_text("\n".join(data_lines) + "\n")
        noisy = tmp_path / "noisy.env"
        noisy.write_text(
            "# header\n\n"
            + data_lines[0]
            + "\n   # indented comment\n\n"
            + data_lines[1]
            + "\n\t\n"
            + data_lines[2]
            + "\n#TRAILING=1\n"
        )

        assert parse_env_file(noisy) == parse_env_file(plain)

    def test_split_at_first_equals_and_trim(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env.local"
        env_file.write_text("  URL = http://a/?x=1&y=2  \nEMPTY=\n")

        env = parse_env_file(env_file)

        assert env["URL"] == "http://a/?x=1&y=2"
        assert env["EMPTY"] == ""

    def test_lines_without_equals_are_ignored(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env.local"
        env_file.write_text("export\nJUSTAWORD\nKEY=value\n=orphan\n")

        assert parse_env_file(env_file) == {"KEY": "value"}

    def test_no_quote_processing(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env.local"
        env_file.write_text("NAME=\"quoted value\"\nRAW='x'\n")

        env = parse_env_file(env_file)

        assert env["NAME"] == '"quoted value"'
        assert env["RAW"] == "'x'"

    def test_missing_file_yields_empty_map(self, tmp_path: Path) -> None:
        assert parse_env_file(tmp_path / "does-not-exist") == {}

    def test_directory_instead_of_file_yields_empty_map(self, tmp_path: Path) -> None:
        assert parse_env_file(tmp_path) == {}


class TestResolveServerLocation:
    def test_ancestor_walk_finds_standalone_build(self, tmp_path: Path) -> None:
        standalone = _make_standalone(tmp_path)
        exe = tmp_path / "src-tauri" / "target" / "release" / "stow"

        found = resolve_server_location(
            exe, strategies=[ancestor_walk_strategy(depth=10)]
        )

        assert found == standalone

    def test_ancestor_walk_is_bounded(self, tmp_path: Path) -> None:
        _make_standalone(tmp_path)
        exe = tmp_path / "a" / "b" / "c" / "d" / "stow"

        assert (
            resolve_server_location(exe, strategies=[ancestor_walk_strategy(depth=3)])
            is None
        )
        assert (
            resolve_server_location(exe, strategies=[ancestor_walk_strategy(depth=5)])
            is not None
        )

    def test_directory_without_entry_is_skipped(self, tmp_path: Path) -> None:
        (tmp_path / ".next" / "standalone").mkdir(parents=True)
        exe = tmp_path / "bin" / "stow"

        assert (
            resolve_server_location(exe, strategies=[ancestor_walk_strategy()]) is None
        )

    def test_macos_bundle_resources(self, tmp_path: Path) -> None:
        contents = tmp_path / "Stow.app" / "Contents"
        resources = contents / "Resources" / "standalone"
        resources.mkdir(parents=True)
        (resources / "server.js").write_text("")
        exe = contents / "MacOS" / "stow"

        assert macos_bundle_strategy(exe) == resources
        assert resolve_server_location(exe, strategies=[macos_bundle_strategy]) == resources

    def test_macos_bundle_missing_resources(self, tmp_path: Path) -> None:
        exe = tmp_path / "Stow.app" / "Contents" / "MacOS" / "stow"
        assert macos_bundle_strategy(exe) is None

    @pytest.mark.parametrize("platform", ["linux", "win32"])
    def test_no_platform_strategies_off_macos(self, platform: str) -> None:
        assert platform_strategies(platform) == []

    def test_platform_strategies_on_macos(self) -> None:
        assert platform_strategies("darwin") == [macos_bundle_strategy]

    def test_first_matching_strategy_wins(self, tmp_path: Path) -> None:
        configured = tmp_path / "configured"
        configured.mkdir()
        (configured / "server.js").write_text("")
        _make_standalone(tmp_path)

        strategies = default_strategies(server_dir=configured, platform="linux")
        found = resolve_server_location(tmp_path / "bin" / "stow", strategies=strategies)

        assert found == configured

    def test_configured_directory_without_entry_falls_through(
        self, tmp_path: Path
    ) -> None:
        configured = tmp_path / "empty"
        configured.mkdir()
        standalone = _make_standalone(tmp_path)

        strategies = [fixed_directory_strategy(configured), ancestor_walk_strategy()]
        found = resolve_server_location(tmp_path / "bin" / "stow", strategies=strategies)

        assert found == standalone

    def test_nothing_found(self, tmp_path: Path) -> None:
        assert resolve_server_location(tmp_path / "bin" / "stow", strategies=[]) is None


class TestFindRuntimeBinary:
    def test_first_existing_candidate(self, tmp_path: Path) -> None:
        second = tmp_path / "second" / "node"
        second.parent.mkdir()
        second.write_text("")
        third = tmp_path / "third" / "node"
        third.parent.mkdir()
        third.write_text("")

        found = find_runtime_binary(
            [tmp_path / "missing" / "node", second, third], which=lambda _: None
        )

        assert found == second

    def test_falls_back_to_path_lookup(self, tmp_path: Path) -> None:
        looked_up: list[str] = []

        def fake_which(name: str) -> str | None:
            looked_up.append(name)
            return "/somewhere/bin/node"

        found = find_runtime_binary([tmp_path / "missing"], which=fake_which)

        assert found == Path("/somewhere/bin/node")
        assert looked_up == ["node"]

    def test_nothing_found(self, tmp_path: Path) -> None:
        assert find_runtime_binary([tmp_path / "missing"], which=lambda _: None) is None

    def test_override_checked_first(self, tmp_path: Path) -> None:
        override = tmp_path / "custom-node"
        override.write_text("")
        candidate = tmp_path / "node"
        candidate.write_text("")

        found = find_runtime_binary([candidate], override=override, which=lambda _: None)

        assert found == override
