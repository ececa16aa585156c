import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

from ccswitch.apps.app_id import AppType, app_metadata, parse_app_type
from ccswitch.batch.models import BatchOperation, BatchReport
from ccswitch.batch.portable import (
    build_document,
    document_entries,
    dump_document,
    load_document,
    validate_document,
)
from ccswitch.errors import (
    CCSwitchError,
    ConfigIOError,
    LivenessCheckFailed,
    NotFoundError,
    ValidationError,
)
from ccswitch.liveness import CheckerFactory, LivenessResult, http_checker_factory
from ccswitch.models import EditableField, Provider, ProviderPatch
from ccswitch.store.interface import IProviderStore
from ccswitch.switching import SwitchCoordinator
from ccswitch.utils import atomic_write_text

logger = logging.getLogger(__name__)

DEFAULT_TEST_TIMEOUT = 10.0
DEFAULT_TEST_CONCURRENCY = 4


class BatchOrchestrator:
    """Multi-provider operations with per-item outcomes.

    No method here raises for a single item's failure; each outcome lands in
    the returned ``BatchReport``. Only whole-request problems (an unknown
    field, an unreadable import document) raise.
    """

    def __init__(
        self,
        store: IProviderStore,
        coordinator: SwitchCoordinator,
        checker_factory: CheckerFactory | None = None,
    ) -> None:
        self._store = store
        self._coordinator = coordinator
        self._checker_factory = checker_factory or http_checker_factory

    def batch_switch(self, selection: Mapping[AppType, str]) -> BatchReport:
        report = BatchReport(BatchOperation.SWITCH)
        for app_type, ref in selection.items():
            try:
                provider = self._store.resolve(app_type, ref)
                self._coordinator.switch(app_type, provider.id)
            except CCSwitchError as exc:
                logger.warning(
                    "Switch of %s to %s failed: %s", app_type.value, ref, exc
                )
                report.fail(app_type, ref, str(exc))
                continue
            report.succeed(app_type, provider.name, provider_id=provider.id)
        return report

    def switch_all(
        self, ref: str, app_types: Iterable[AppType] | None = None
    ) -> BatchReport:
        return self.batch_switch({app_type: ref for app_type in _apps(app_types)})

    def batch_test(
        self,
        app_types: Iterable[AppType] | None = None,
        *,
        timeout: float = DEFAULT_TEST_TIMEOUT,
        concurrency: int = DEFAULT_TEST_CONCURRENCY,
    ) -> BatchReport:
        return asyncio.run(
            self.batch_test_async(app_types, timeout=timeout, concurrency=concurrency)
        )

    async def batch_test_async(
        self,
        app_types: Iterable[AppType] | None = None,
        *,
        timeout: float = DEFAULT_TEST_TIMEOUT,
        concurrency: int = DEFAULT_TEST_CONCURRENCY,
    ) -> BatchReport:
        if timeout <= 0:
            raise ValidationError("Timeout must be positive")
        if concurrency < 1:
            raise ValidationError("Concurrency must be at least 1")

        providers = self._select(app_types)
        semaphore = asyncio.Semaphore(concurrency)
        results = await asyncio.gather(
            *(self._test_one(provider, semaphore, timeout) for provider in providers)
        )

        report = BatchReport(BatchOperation.TEST)
        for provider, result in zip(providers, results):
            if result.ok:
                report.succeed(
                    provider.app_type,
                    provider.name,
                    latency_ms=result.latency_ms,
                    provider_id=provider.id,
                )
            else:
                report.fail(
                    provider.app_type,
                    provider.name,
                    result.error or "check failed",
                    latency_ms=result.latency_ms,
                    provider_id=provider.id,
                )
        return report

    async def _test_one(
        self, provider: Provider, semaphore: asyncio.Semaphore, timeout: float
    ) -> LivenessResult:
        if not provider.api_key:
            return LivenessResult(ok=False, error="no api key configured")
        async with semaphore:
            checker = self._checker_factory(provider.app_type)
            try:
                # wait_for cancels the check on timeout, which closes its client.
                return await asyncio.wait_for(
                    checker.check(provider.base_url, provider.api_key), timeout
                )
            except asyncio.TimeoutError:
                return LivenessResult(ok=False, error=f"timed out after {timeout:g}s")
            except LivenessCheckFailed as exc:
                return LivenessResult(ok=False, error=str(exc))
            except Exception as exc:
                logger.warning("Liveness check for %s crashed: %s", provider.name, exc)
                return LivenessResult(ok=False, error=f"{type(exc).__name__}: {exc}")

    def batch_sync(
        self,
        source: AppType,
        targets: Iterable[AppType],
        *,
        overwrite: bool = False,
    ) -> BatchReport:
        report = BatchReport(BatchOperation.SYNC)
        providers = self._store.list(source)
        for target in _unique(targets):
            if target == source:
                report.skip(target, "*", "target is the source app")
                continue
            for provider in providers:
                self._sync_one(report, provider, target, overwrite=overwrite)
        return report

    def _sync_one(
        self,
        report: BatchReport,
        provider: Provider,
        target: AppType,
        *,
        overwrite: bool,
    ) -> None:
        remapped = provider.remapped_for(target)
        dropped = [
            name
            for name in ("small_model",)
            if getattr(provider, name) and not getattr(remapped, name)
        ]
        note = f" (dropped {', '.join(dropped)})" if dropped else ""
        try:
            existing = self._find(target, provider.name)
            if existing is not None and not overwrite:
                report.skip(
                    target,
                    provider.name,
                    "already exists in target",
                    provider_id=existing.id,
                )
                return
            if existing is not None:
                updated = self._coordinator.edit(
                    existing.id, ProviderPatch.from_provider(remapped)
                )
                report.succeed(
                    target, provider.name, f"overwritten{note}", provider_id=updated.id
                )
                return
            created = self._coordinator.add(remapped, activate_if_first=False)
        except CCSwitchError as exc:
            report.fail(target, provider.name, str(exc))
            return
        report.succeed(target, provider.name, f"created{note}", provider_id=created.id)

    def batch_edit(
        self,
        field: EditableField | str,
        value: str | None,
        *,
        app_types: Iterable[AppType] | None = None,
        pattern: str | None = None,
    ) -> BatchReport:
        field = EditableField.parse(field)
        report = BatchReport(BatchOperation.EDIT)
        for provider in self._select(app_types, pattern=pattern):
            if (
                field == EditableField.SMALL_MODEL
                and not app_metadata(provider.app_type).supports_small_model
            ):
                report.skip(
                    provider.app_type,
                    provider.name,
                    f"{provider.app_type.value} has no small model setting",
                    provider_id=provider.id,
                )
                continue
            try:
                patch = ProviderPatch.for_field(field, value)
                self._coordinator.edit(provider.id, patch)
            except CCSwitchError as exc:
                report.fail(
                    provider.app_type, provider.name, str(exc), provider_id=provider.id
                )
                continue
            action = "cleared" if not value else "set"
            report.succeed(
                provider.app_type,
                provider.name,
                f"{field.value} {action}",
                provider_id=provider.id,
            )
        return report

    def batch_remove(
        self, refs: Sequence[str], app_types: Iterable[AppType] | None = None
    ) -> BatchReport:
        report = BatchReport(BatchOperation.REMOVE)
        apps = _apps(app_types)
        for ref in refs:
            matched = False
            for app_type in apps:
                try:
                    provider = self._store.resolve(app_type, ref)
                except NotFoundError:
                    continue
                except CCSwitchError as exc:
                    matched = True
                    report.fail(app_type, ref, str(exc))
                    continue
                matched = True
                try:
                    self._coordinator.remove(provider.id)
                except CCSwitchError as exc:
                    report.fail(app_type, provider.name, str(exc))
                    continue
                report.succeed(app_type, provider.name, provider_id=provider.id)
            if not matched:
                report.fail(None, ref, str(NotFoundError("Provider", ref)))
        return report

    def export_document(
        self, app_types: Iterable[AppType] | None = None
    ) -> dict[str, Any]:
        return build_document(self._select(app_types))

    def export(self, path: Path, app_types: Iterable[AppType] | None = None) -> int:
        document = self.export_document(app_types)
        atomic_write_text(path, dump_document(document))
        count = sum(len(items) for items in document["apps"].values())
        logger.info("Exported %d provider(s) to %s", count, path)
        return count

    def import_(
        self, path: Path, *, overwrite: bool = False, preserve_ids: bool = True
    ) -> BatchReport:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigIOError(path, str(exc)) from exc
        return self.import_document(
            load_document(text), overwrite=overwrite, preserve_ids=preserve_ids
        )

    def import_document(
        self,
        document: dict[str, Any],
        *,
        overwrite: bool = False,
        preserve_ids: bool = True,
    ) -> BatchReport:
        validate_document(document)
        report = BatchReport(BatchOperation.IMPORT)
        for app_key, record in document_entries(document):
            name = _record_name(record)
            app_type: AppType | None = None
            try:
                app_type = parse_app_type(app_key)
                provider = Provider.from_record(record, app_type=app_type)
            except ValidationError as exc:
                report.fail(app_type, name, str(exc))
                continue
            self._import_one(
                report, provider, overwrite=overwrite, preserve_ids=preserve_ids
            )
        logger.info("Import finished: %s", report.summary())
        return report

    def _import_one(
        self,
        report: BatchReport,
        provider: Provider,
        *,
        overwrite: bool,
        preserve_ids: bool,
    ) -> None:
        try:
            existing = self._find(provider.app_type, provider.name)
            if existing is not None and not overwrite:
                report.skip(
                    provider.app_type,
                    provider.name,
                    "already exists",
                    provider_id=existing.id,
                )
                return
            if existing is not None:
                self._coordinator.edit(
                    existing.id, ProviderPatch.from_provider(provider)
                )
                report.succeed(
                    provider.app_type,
                    provider.name,
                    "overwritten",
                    provider_id=existing.id,
                )
                return

            detail = "created"
            if not preserve_ids:
                provider = replace(provider, id="")
            elif provider.id and self._store.exists(provider.id):
                provider = replace(provider, id="")
                detail = "created with a new id"
            created = self._coordinator.add(provider, activate_if_first=False)
        except CCSwitchError as exc:
            report.fail(provider.app_type, provider.name, str(exc))
            return
        report.succeed(provider.app_type, provider.name, detail, provider_id=created.id)

    def _find(self, app_type: AppType, name: str) -> Provider | None:
        try:
            return self._store.find_by_name(app_type, name)
        except NotFoundError:
            return None

    def _select(
        self, app_types: Iterable[AppType] | None = None, *, pattern: str | None = None
    ) -> list[Provider]:
        providers: list[Provider] = []
        for app_type in _apps(app_types):
            providers.extend(self._store.list(app_type))
        if pattern:
            needle = pattern.casefold()
            providers = [item for item in providers if needle in item.name.casefold()]
        return providers


def _apps(app_types: Iterable[AppType] | None) -> list[AppType]:
    if app_types is None:
        return list(AppType)
    return _unique(app_types)


def _unique(app_types: Iterable[AppType]) -> list[AppType]:
    ordered: list[AppType] = []
    for app_type in app_types:
        if app_type not in ordered:
            ordered.append(app_type)
    return ordered


def _record_name(record: Any) -> str:
    if isinstance(record, dict) and isinstance(record.get("name"), str):
        return record["name"]
    return "<unnamed>"
