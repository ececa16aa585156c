import json
import sys
from pathlib import Path

from ccswitch.__main__ import cli, main
from ccswitch.liveness import LivenessResult

API_KEY = "sk-cli-abcdefgh12345678"


def _add(cli_runner, app: str, name: str, *extra: str):
    return cli_runner.invoke(
        cli,
        [
            "add",
            app,
            name,
            "--api-key",
            API_KEY,
            "--base-url",
            "https://api.example.com",
            *extra,
        ],
    )


def test_add_first_provider_writes_live_config(cli_runner, tmp_path: Path) -> None:
    result = _add(cli_runner, "claude", "fast-api", "--model", "opus")

    assert result.exit_code == 0, result.output
    assert "Now current" in result.output
    assert API_KEY not in result.output
    live = json.loads((tmp_path / ".claude" / "settings.json").read_text())
    assert live["env"]["ANTHROPIC_AUTH_TOKEN"] == API_KEY
    assert live["env"]["ANTHROPIC_MODEL"] == "opus"


def test_add_uses_app_default_base_url(cli_runner) -> None:
    result = cli_runner.invoke(
        cli, ["add", "codex", "openai", "--api-key", API_KEY, "--no-activate"]
    )

    assert result.exit_code == 0, result.output
    show = cli_runner.invoke(cli, ["show", "codex", "openai"])
    assert "https://api.openai.com/v1" in show.output
    assert "sk-c...5678" in show.output
    assert API_KEY not in show.output


def test_add_reads_mcp_servers_from_yaml(cli_runner, tmp_path: Path) -> None:
    mcp_file = tmp_path / "mcp.yaml"
    mcp_file.write_text(
        "fs:\n  command: npx\n  args: [-y, fs-mcp]\n", encoding="utf-8"
    )

    result = _add(cli_runner, "opencode", "local", "--mcp-file", str(mcp_file))

    assert result.exit_code == 0, result.output
    live = json.loads((tmp_path / ".config" / "opencode" / "opencode.json").read_text())
    assert live["mcp"]["fs"]["command"] == ["npx", "-y", "fs-mcp"]


def test_list_marks_current_provider_and_hides_keys(cli_runner) -> None:
    _add(cli_runner, "claude", "first")
    _add(cli_runner, "claude", "second")

    result = cli_runner.invoke(cli, ["list"])
    detailed = cli_runner.invoke(cli, ["list", "--detail"])

    assert result.exit_code == 0
    assert "first" in result.output
    assert "second" in result.output
    assert "*" in result.output
    assert detailed.exit_code == 0
    assert API_KEY not in detailed.output


def test_switch_dry_run_masks_key_and_changes_nothing(
    cli_runner, tmp_path: Path
) -> None:
    _add(cli_runner, "gemini", "first")
    _add(cli_runner, "gemini", "second", "--model", "gemini-2.5-pro")
    path = tmp_path / ".gemini" / "settings.json"
    before = path.read_text()

    result = cli_runner.invoke(cli, ["switch", "gemini", "second", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "gemini-2.5-pro" in result.output
    assert API_KEY not in result.output
    assert path.read_text() == before


def test_switch_and_status(cli_runner) -> None:
    _add(cli_runner, "claude", "first")
    _add(cli_runner, "claude", "second")

    switched = cli_runner.invoke(cli, ["switch", "claude", "sec"])
    status = cli_runner.invoke(cli, ["status", "--app", "claude"])

    assert switched.exit_code == 0, switched.output
    assert "now uses" in switched.output
    assert status.exit_code == 0
    assert "second" in status.output
    assert "synced" in status.output
    assert "codex" not in status.output


def test_help_and_missing_argument_show_app_choices(cli_runner) -> None:
    helped = cli_runner.invoke(cli, ["switch", "--help"])
    missing = cli_runner.invoke(cli, ["switch"])

    assert helped.exit_code == 0, helped.output
    assert "[claude|codex|gemini|opencode]" in helped.output
    assert missing.exit_code == 2
    assert "Missing argument" in missing.output


def test_edit_without_changes_is_a_usage_error(cli_runner) -> None:
    _add(cli_runner, "claude", "first")

    result = cli_runner.invoke(cli, ["edit", "claude", "first"])

    assert result.exit_code == 2
    assert "Nothing to change" in result.output


def test_edit_can_clear_model(cli_runner, tmp_path: Path) -> None:
    _add(cli_runner, "claude", "first", "--model", "opus")

    result = cli_runner.invoke(cli, ["edit", "claude", "first", "--model", ""])

    assert result.exit_code == 0, result.output
    live = json.loads((tmp_path / ".claude" / "settings.json").read_text())
    assert "ANTHROPIC_MODEL" not in live["env"]


def test_remove_current_provider_keeps_live_file(cli_runner, tmp_path: Path) -> None:
    _add(cli_runner, "claude", "first")

    result = cli_runner.invoke(cli, ["remove", "claude", "first"])

    assert result.exit_code == 0
    assert "no current provider" in result.output
    assert (tmp_path / ".claude" / "settings.json").exists()


def test_unknown_provider_is_reported(cli_runner) -> None:
    result = cli_runner.invoke(cli, ["show", "claude", "nope"])

    assert result.exit_code == 1
    assert "not found: nope" in result.output


def test_unknown_app_is_a_usage_error(cli_runner) -> None:
    result = cli_runner.invoke(cli, ["list", "--app", "cursor"])

    assert result.exit_code == 2
    assert "cursor" in result.output


def test_main_maps_engine_errors_to_exit_code_two(monkeypatch, capsys) -> None:
    monkeypatch.setattr(sys, "argv", ["ccswitch", "show", "claude", "nope"])

    assert main() == 2
    assert "not found" in capsys.readouterr().err


def test_config_path_lists_live_files(cli_runner) -> None:
    result = cli_runner.invoke(cli, ["config", "path"])

    assert result.exit_code == 0
    assert "~/.cc-switch/ccswitch.db" in result.output
    assert "~/.codex/config.toml" in result.output
    assert "~/.config/opencode/opencode.json" in result.output


def test_batch_test_failures_exit_one(cli_runner, fake_checker) -> None:
    _add(cli_runner, "claude", "first")
    fake_checker.outcomes[API_KEY] = LivenessResult(ok=False, error="API key rejected")

    result = cli_runner.invoke(
        cli,
        ["batch", "test"],
        obj={"checker_factory": lambda app_type: fake_checker},
    )

    assert result.exit_code == 1
    assert "API key rejected" in result.output
    assert fake_checker.calls == [API_KEY]


def test_batch_switch_with_picks(cli_runner) -> None:
    _add(cli_runner, "claude", "a")
    _add(cli_runner, "claude", "b")
    _add(cli_runner, "codex", "a")
    _add(cli_runner, "codex", "b")

    result = cli_runner.invoke(
        cli, ["batch", "switch", "--pick", "claude=b", "--pick", "codex=b"]
    )
    listing = cli_runner.invoke(cli, ["status"])

    assert result.exit_code == 0, result.output
    assert listing.output.count("synced") == 2


def test_batch_edit_and_remove(cli_runner) -> None:
    _add(cli_runner, "claude", "team-a")
    _add(cli_runner, "gemini", "team-b")

    edited = cli_runner.invoke(
        cli, ["batch", "edit", "base_url", "https://gw.example.com"]
    )
    removed = cli_runner.invoke(cli, ["batch", "remove", "team-a", "team-b"])
    listing = cli_runner.invoke(cli, ["list"])

    assert edited.exit_code == 0, edited.output
    assert removed.exit_code == 0, removed.output
    assert "No providers configured" in listing.output


def test_batch_export_and_import(cli_runner, tmp_path: Path) -> None:
    _add(cli_runner, "claude", "first")
    target = tmp_path / "providers.yaml"

    exported = cli_runner.invoke(cli, ["batch", "export", str(target)])
    reimported = cli_runner.invoke(cli, ["batch", "import", str(target)])

    assert exported.exit_code == 0, exported.output
    assert "Exported 1 provider(s)" in exported.output
    assert reimported.exit_code == 0, reimported.output
    assert "skipped" in reimported.output
