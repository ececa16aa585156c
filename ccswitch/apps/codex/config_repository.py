import tomllib
from pathlib import Path
from typing import Any

from ccswitch.apps.common.interfaces.repositories import IAppConfigRepository
from ccswitch.apps.common.toml_codec import dumps_toml, loads_toml
from ccswitch.errors import ConfigIOError, InvalidConfigFormatError


class CodexConfigRepository(IAppConfigRepository):
    def __init__(self, root: Path | None = None) -> None:
        self._root = root or (Path.home() / ".codex")

    @property
    def root(self) -> Path:
        return self._root

    @property
    def config_path(self) -> Path:
        return self.root / "config.toml"

    def load_config(self) -> dict[str, Any] | None:
        try:
            if not self.config_path.exists() or self.config_path.stat().st_size == 0:
                return None
            text = self.config_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigIOError(self.config_path, str(exc)) from exc
        except UnicodeDecodeError as exc:
            raise InvalidConfigFormatError(self.config_path, str(exc)) from exc
        if not text.strip():
            return None
        try:
            return loads_toml(text)
        except tomllib.TOMLDecodeError as exc:
            raise InvalidConfigFormatError(self.config_path, str(exc)) from exc

    def serialize_config(self, payload: dict[str, Any]) -> str:
        return dumps_toml(payload)
