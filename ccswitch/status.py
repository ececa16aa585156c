from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ccswitch.apps.app_id import AppType
from ccswitch.errors import SyncFileError
from ccswitch.live_sync import LiveConfigSyncer
from ccswitch.models import Provider
from ccswitch.store.interface import IProviderStore


class LiveSyncStatus(str, Enum):
    SYNCED = "synced"
    DRIFT = "drift"
    MISSING = "missing"
    UNSET = "unset"
    ERROR = "error"


@dataclass(frozen=True)
class AppStatusRow:
    app_type: AppType
    status: LiveSyncStatus
    path: Path
    provider: Provider | None = None
    detail: str = ""

    @property
    def current_name(self) -> str:
        return self.provider.name if self.provider is not None else "-"


class StatusService:
    """Compares each app's current pointer with what its live file holds.

    The pointer is authoritative; the live file is only read for display.
    """

    def __init__(self, store: IProviderStore, syncer: LiveConfigSyncer) -> None:
        self.store = store
        self.syncer = syncer

    def build(self, app_types: Iterable[AppType] | None = None) -> list[AppStatusRow]:
        return [self.app_status(app_type) for app_type in app_types or AppType]

    def app_status(self, app_type: AppType) -> AppStatusRow:
        path = self.syncer.config_path(app_type)
        provider = self.store.current_provider(app_type)
        if provider is None:
            return AppStatusRow(
                app_type=app_type,
                status=LiveSyncStatus.UNSET,
                path=path,
                detail="no current provider",
            )

        try:
            drift = self.syncer.drift(app_type, provider)
        except SyncFileError as exc:
            return AppStatusRow(
                app_type=app_type,
                status=LiveSyncStatus.ERROR,
                path=path,
                provider=provider,
                detail=exc.message,
            )

        if not drift.exists:
            return AppStatusRow(
                app_type=app_type,
                status=LiveSyncStatus.MISSING,
                path=path,
                provider=provider,
                detail="live config file missing",
            )
        if drift.fields:
            return AppStatusRow(
                app_type=app_type,
                status=LiveSyncStatus.DRIFT,
                path=path,
                provider=provider,
                detail="differs: " + ", ".join(drift.fields),
            )
        return AppStatusRow(
            app_type=app_type,
            status=LiveSyncStatus.SYNCED,
            path=path,
            provider=provider,
        )
