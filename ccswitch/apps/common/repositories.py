from pathlib import Path
from typing import Any

from ccswitch.apps.common.interfaces.repositories import IAppConfigRepository
from ccswitch.errors import (
    ConfigIOError,
    InvalidConfigFormatError,
    InvalidConfigSchemaError,
)
from ccswitch.utils import dump_json, read_json_safe


class JsonConfigRepository(IAppConfigRepository):
    def __init__(self, root: Path, filename: str) -> None:
        self._root = root
        self._filename = filename

    @property
    def root(self) -> Path:
        return self._root

    @property
    def config_path(self) -> Path:
        return self.root / self._filename

    def load_config(self) -> dict[str, Any] | None:
        try:
            payload, error = read_json_safe(self.config_path)
        except OSError as exc:
            raise ConfigIOError(self.config_path, str(exc)) from exc
        if error is not None:
            raise InvalidConfigFormatError(self.config_path, error)
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise InvalidConfigSchemaError(self.config_path, "must be a JSON object")
        return payload

    def serialize_config(self, payload: dict[str, Any]) -> str:
        return dump_json(payload)
