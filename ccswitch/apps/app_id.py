from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ccswitch.errors import ValidationError


class AppType(str, Enum):
    CLAUDE = "claude"
    CODEX = "codex"
    GEMINI = "gemini"
    OPENCODE = "opencode"


class ConfigDialect(str, Enum):
    JSON = "json"
    TOML = "toml"


@dataclass(frozen=True)
class AppMetadata:
    app_type: AppType
    label: str
    dialect: ConfigDialect
    config_dir_env: str
    default_root: tuple[str, ...]
    config_filename: str
    mcp_key: str
    supports_small_model: bool
    default_base_url: str | None = None

    def default_root_for(self, home: Path) -> Path:
        return home.joinpath(*self.default_root)


APP_CATALOG: dict[AppType, AppMetadata] = {
    AppType.CLAUDE: AppMetadata(
        app_type=AppType.CLAUDE,
        label="Claude Code",
        dialect=ConfigDialect.JSON,
        config_dir_env="CCSWITCH_CLAUDE_CONFIG_DIR",
        default_root=(".claude",),
        config_filename="settings.json",
        mcp_key="mcpServers",
        supports_small_model=True,
        default_base_url="https://api.anthropic.com",
    ),
    AppType.CODEX: AppMetadata(
        app_type=AppType.CODEX,
        label="Codex CLI",
        dialect=ConfigDialect.TOML,
        config_dir_env="CCSWITCH_CODEX_CONFIG_DIR",
        default_root=(".codex",),
        config_filename="config.toml",
        mcp_key="mcp_servers",
        supports_small_model=False,
        default_base_url="https://api.openai.com/v1",
    ),
    AppType.GEMINI: AppMetadata(
        app_type=AppType.GEMINI,
        label="Gemini CLI",
        dialect=ConfigDialect.JSON,
        config_dir_env="CCSWITCH_GEMINI_CONFIG_DIR",
        default_root=(".gemini",),
        config_filename="settings.json",
        mcp_key="mcpServers",
        supports_small_model=False,
        default_base_url="https://generativelanguage.googleapis.com",
    ),
    AppType.OPENCODE: AppMetadata(
        app_type=AppType.OPENCODE,
        label="OpenCode",
        dialect=ConfigDialect.JSON,
        config_dir_env="CCSWITCH_OPENCODE_CONFIG_DIR",
        default_root=(".config", "opencode"),
        config_filename="opencode.json",
        mcp_key="mcp",
        supports_small_model=True,
        default_base_url=None,
    ),
}

_ALIASES: dict[str, AppType] = {
    "claude-code": AppType.CLAUDE,
    "claude_code": AppType.CLAUDE,
    "codex-cli": AppType.CODEX,
    "codex_cli": AppType.CODEX,
    "gemini-cli": AppType.GEMINI,
    "gemini_cli": AppType.GEMINI,
    "open-code": AppType.OPENCODE,
    "open_code": AppType.OPENCODE,
}


def parse_app_type(value: AppType | str) -> AppType:
    if isinstance(value, AppType):
        return value
    normalized = value.strip().lower()
    try:
        return AppType(normalized)
    except ValueError:
        pass
    if normalized in _ALIASES:
        return _ALIASES[normalized]
    raise ValidationError(f"Unknown app type: {value}")


def app_metadata(app: AppType | str) -> AppMetadata:
    return APP_CATALOG[parse_app_type(app)]


def app_label(app: AppType | str) -> str:
    return app_metadata(app).label
