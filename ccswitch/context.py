from types import TracebackType

from ccswitch.batch.service import BatchOrchestrator
from ccswitch.liveness import CheckerFactory
from ccswitch.live_sync import LiveConfigSyncer
from ccswitch.settings import EngineSettings
from ccswitch.store.interface import IProviderStore
from ccswitch.store.sqlite import SQLiteProviderStore
from ccswitch.switching import SwitchCoordinator


class EngineContext:
    """Everything one invocation needs, passed around instead of kept global."""

    def __init__(
        self,
        settings: EngineSettings,
        store: IProviderStore | None = None,
        checker_factory: CheckerFactory | None = None,
    ) -> None:
        self.settings = settings
        self.store = store or SQLiteProviderStore(settings.db_path)
        self.syncer = LiveConfigSyncer(settings.app_roots)
        self.coordinator = SwitchCoordinator(self.store, self.syncer)
        self.batch = BatchOrchestrator(
            self.store, self.coordinator, checker_factory=checker_factory
        )

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "EngineContext":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
