from pathlib import Path

import pytest

from ccswitch.apps.app_id import AppType, app_label, app_metadata, parse_app_type
from ccswitch.errors import ValidationError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("claude", AppType.CLAUDE),
        (" Codex ", AppType.CODEX),
        ("gemini-cli", AppType.GEMINI),
        ("open_code", AppType.OPENCODE),
        (AppType.CLAUDE, AppType.CLAUDE),
    ],
)
def test_parse_app_type_accepts_names_and_aliases(raw, expected: AppType) -> None:
    assert parse_app_type(raw) == expected


def test_parse_app_type_rejects_unknown_app() -> None:
    with pytest.raises(ValidationError, match="Unknown app type: cursor"):
        parse_app_type("cursor")


def test_app_metadata_describes_live_config_locations(tmp_path: Path) -> None:
    assert app_metadata("opencode").default_root_for(tmp_path) == (
        tmp_path / ".config" / "opencode"
    )
    assert app_metadata(AppType.CODEX).config_filename == "config.toml"
    assert app_metadata(AppType.CLAUDE).supports_small_model is True
    assert app_metadata(AppType.GEMINI).supports_small_model is False
    assert app_label(AppType.CODEX) == "Codex CLI"
