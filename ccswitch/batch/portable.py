"""Portable provider document used by export and import."""

from collections.abc import Iterable, Iterator
from datetime import datetime
from typing import Any

import yaml

from ccswitch.apps.app_id import AppType
from ccswitch.errors import ValidationError
from ccswitch.models import Provider
from ccswitch.utils import utc_now

FORMAT_TAG = "ccswitch/providers"
FORMAT_VERSION = 1


def build_document(
    providers: Iterable[Provider], exported_at: datetime | None = None
) -> dict[str, Any]:
    apps: dict[str, list[dict[str, Any]]] = {}
    grouped: dict[AppType, list[Provider]] = {app_type: [] for app_type in AppType}
    for provider in providers:
        grouped[provider.app_type].append(provider)
    for app_type, items in grouped.items():
        if items:
            apps[app_type.value] = [_export_record(item) for item in items]
    return {
        "format": FORMAT_TAG,
        "version": FORMAT_VERSION,
        "exported_at": (exported_at or utc_now()).isoformat(),
        "apps": apps,
    }


def dump_document(document: dict[str, Any]) -> str:
    return yaml.safe_dump(
        document, default_flow_style=False, sort_keys=False, allow_unicode=True
    )


def load_document(text: str) -> dict[str, Any]:
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValidationError(f"Import document is not valid YAML: {exc}") from exc
    validate_document(document)
    return document


def validate_document(document: Any) -> None:
    if not isinstance(document, dict):
        raise ValidationError("Import document must be a mapping")
    if document.get("format") != FORMAT_TAG:
        raise ValidationError(
            f"Unsupported document format: {document.get('format')!r} "
            f"(expected {FORMAT_TAG!r})"
        )
    version = document.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        raise ValidationError("Import document version must be an integer")
    if version > FORMAT_VERSION or version < 1:
        raise ValidationError(f"Unsupported document version: {version}")
    apps = document.get("apps", {})
    if apps is not None and not isinstance(apps, dict):
        raise ValidationError("Import document 'apps' must be a mapping")


def document_entries(document: dict[str, Any]) -> Iterator[tuple[str, Any]]:
    """Yield ``(app key, raw record)`` pairs in document order.

    A section that is not a list is yielded as one ``None`` record so the
    caller reports it instead of dropping it silently.
    """
    apps = document.get("apps") or {}
    for app_key, records in apps.items():
        if not isinstance(records, list):
            yield str(app_key), None
            continue
        for record in records:
            yield str(app_key), record


def _export_record(provider: Provider) -> dict[str, Any]:
    record = provider.to_record()
    record.pop("app_type", None)
    return record
