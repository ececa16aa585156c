from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any

from ccswitch.apps.app_id import AppType, app_metadata, parse_app_type
from ccswitch.apps.common.models import MCPServerDTO, MCPServerType
from ccswitch.apps.common.utils import common_mcp_to_dto, dto_to_common_mcp
from ccswitch.errors import ValidationError
from ccswitch.utils import mask_secret

_FIELD_ALIASES = {
    "apikey": "api_key",
    "baseurl": "base_url",
    "smallmodel": "small_model",
}


class EditableField(str, Enum):
    API_KEY = "api_key"
    BASE_URL = "base_url"
    MODEL = "model"
    SMALL_MODEL = "small_model"

    @classmethod
    def parse(cls, value: "EditableField | str") -> "EditableField":
        if isinstance(value, EditableField):
            return value
        normalized = value.strip().lower().replace("-", "_")
        normalized = _FIELD_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            supported = ", ".join(item.value for item in cls)
            raise ValidationError(
                f"Unsupported field: {value} (supported: {supported})"
            ) from None

    @property
    def clearable(self) -> bool:
        return self in (EditableField.MODEL, EditableField.SMALL_MODEL)


@dataclass(frozen=True)
class Provider:
    id: str
    app_type: AppType
    name: str
    api_key: str = field(repr=False)
    base_url: str
    model: str | None = None
    small_model: str | None = None
    mcp_servers: dict[str, MCPServerDTO] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def masked_api_key(self) -> str:
        return mask_secret(self.api_key)

    def content_fields(self) -> dict[str, Any]:
        """Every user-visible field except identity and timestamps."""
        return {
            "name": self.name,
            "api_key": self.api_key,
            "base_url": self.base_url,
            "model": self.model,
            "small_model": self.small_model,
            "mcp_servers": dict(self.mcp_servers),
            "metadata": dict(self.metadata),
        }

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "app_type": self.app_type.value,
            "name": self.name,
            "api_key": self.api_key,
            "base_url": self.base_url,
            "model": self.model,
            "small_model": self.small_model,
            "mcp_servers": dto_to_common_mcp(self.mcp_servers),
            "metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_record(
        cls, record: Any, app_type: AppType | str | None = None
    ) -> "Provider":
        if not isinstance(record, dict):
            raise ValidationError("Provider record must be a mapping")

        raw_app = app_type if app_type is not None else record.get("app_type")
        if raw_app is None:
            raise ValidationError("Provider record is missing app_type")
        resolved_app = parse_app_type(raw_app)
        if (
            app_type is not None
            and record.get("app_type") is not None
            and parse_app_type(record["app_type"]) != resolved_app
        ):
            raise ValidationError(
                f"Provider record app_type {record['app_type']} does not match "
                f"{resolved_app.value}"
            )

        mcp_raw = record.get("mcp_servers") or {}
        if not isinstance(mcp_raw, dict):
            raise ValidationError("mcp_servers must be a mapping")
        metadata = record.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValidationError("metadata must be a mapping")

        provider = cls(
            id=_optional_str(record, "id") or "",
            app_type=resolved_app,
            name=_required_str(record, "name"),
            api_key=_required_str(record, "api_key"),
            base_url=_required_str(record, "base_url"),
            model=_optional_str(record, "model"),
            small_model=_optional_str(record, "small_model"),
            mcp_servers=common_mcp_to_dto(mcp_raw),
            metadata={str(key): value for key, value in metadata.items()},
            created_at=_optional_datetime(record, "created_at"),
            updated_at=_optional_datetime(record, "updated_at"),
        )
        validate_provider(provider)
        return provider

    def remapped_for(self, target: AppType) -> "Provider":
        """Copy of this provider restricted to the fields ``target`` accepts."""
        small_model = (
            self.small_model if app_metadata(target).supports_small_model else None
        )
        return replace(
            self,
            id="",
            app_type=target,
            small_model=small_model,
            created_at=None,
            updated_at=None,
        )


class _Unset(Enum):
    UNSET = "unset"


UNSET = _Unset.UNSET


@dataclass(frozen=True)
class ProviderPatch:
    name: str | _Unset = UNSET
    api_key: str | _Unset = UNSET
    base_url: str | _Unset = UNSET
    model: str | None | _Unset = UNSET
    small_model: str | None | _Unset = UNSET
    mcp_servers: dict[str, MCPServerDTO] | _Unset = UNSET
    metadata: dict[str, Any] | _Unset = UNSET

    def changes(self) -> dict[str, Any]:
        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if getattr(self, item.name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.changes()

    def apply(self, provider: Provider) -> Provider:
        patched = replace(provider, **self.changes())
        validate_provider(patched)
        return patched

    @classmethod
    def for_field(cls, name: EditableField, value: str | None) -> "ProviderPatch":
        if not value and not name.clearable:
            raise ValidationError(f"{name.value} cannot be empty")
        return cls(**{name.value: value or None})

    @classmethod
    def from_provider(cls, provider: Provider) -> "ProviderPatch":
        return cls(**provider.content_fields())


def validate_provider(provider: Provider) -> None:
    if not provider.name or not provider.name.strip():
        raise ValidationError("Provider name must not be empty")
    if provider.name != provider.name.strip():
        raise ValidationError("Provider name must not have surrounding whitespace")
    if not provider.api_key:
        raise ValidationError(f"Provider '{provider.name}' needs an api key")
    if not provider.base_url:
        raise ValidationError(f"Provider '{provider.name}' needs a base url")
    if not provider.base_url.startswith(("http://", "https://")):
        raise ValidationError(
            f"Provider '{provider.name}' base url must start with http:// or https://"
        )
    if (
        provider.small_model
        and not app_metadata(provider.app_type).supports_small_model
    ):
        raise ValidationError(
            f"{provider.app_type.value} does not support a small model override"
        )
    for name, server in provider.mcp_servers.items():
        if server.type == MCPServerType.STDIO and not server.command:
            raise ValidationError(f"MCP server '{name}' needs a command")
        if server.type == MCPServerType.HTTP and not server.url:
            raise ValidationError(f"MCP server '{name}' needs a url")


def _required_str(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    if not isinstance(value, str) or not value:
        raise ValidationError(
            f"Provider record field '{key}' must be a non-empty string"
        )
    return value


def _optional_str(record: dict[str, Any], key: str) -> str | None:
    value = record.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"Provider record field '{key}' must be a string")
    return value


def _optional_datetime(record: dict[str, Any], key: str) -> datetime | None:
    value = record.get(key)
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Provider record field '{key}' must be a timestamp")
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Provider record field '{key}': {exc}") from exc
