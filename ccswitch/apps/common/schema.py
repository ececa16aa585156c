import json
from pathlib import Path
from typing import Any

from ccswitch.apps.common.interfaces.repositories import ISchemaRepository

_SCHEMA_CACHE: dict[str, dict[str, Any]] = {}


class JsonSchemaRepository(ISchemaRepository):
    """Loads a JSON schema bundled next to an app package."""

    def __init__(self, *, local_schema_path: Path) -> None:
        self.local_schema_path = local_schema_path

    def load_schema(self) -> dict[str, Any]:
        key = str(self.local_schema_path.resolve())
        cached = _SCHEMA_CACHE.get(key)
        if cached is not None:
            return cached
        schema = json.loads(self.local_schema_path.read_text(encoding="utf-8"))
        _SCHEMA_CACHE[key] = schema
        return schema


def bundled_schema(package_file: str) -> JsonSchemaRepository:
    return JsonSchemaRepository(
        local_schema_path=Path(package_file).resolve().parent / "schema.json"
    )
