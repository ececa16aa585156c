from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from ccswitch.utils import atomic_write_text


class ISchemaRepository(ABC):
    @abstractmethod
    def load_schema(self) -> dict[str, Any]:
        raise NotImplementedError


class IAppConfigRepository(ABC):
    @property
    @abstractmethod
    def root(self) -> Path:
        raise NotImplementedError

    @property
    @abstractmethod
    def config_path(self) -> Path:
        raise NotImplementedError

    @abstractmethod
    def load_config(self) -> dict[str, Any] | None:
        """Parsed live config, or ``None`` when the file is missing or empty."""
        raise NotImplementedError

    @abstractmethod
    def serialize_config(self, payload: dict[str, Any]) -> str:
        raise NotImplementedError

    def save_config(self, payload: dict[str, Any]) -> None:
        atomic_write_text(self.config_path, self.serialize_config(payload))
