import logging

from ccswitch.apps.app_id import AppType
from ccswitch.errors import CCSwitchError, NotFoundError
from ccswitch.live_sync import LiveConfigSyncer
from ccswitch.models import Provider, ProviderPatch
from ccswitch.store.interface import IProviderStore

logger = logging.getLogger(__name__)


class SwitchCoordinator:
    """Keeps the live file and the current pointer moving together.

    The live file is always written first; the pointer only moves once that
    write has succeeded, so the store never claims a provider that is not
    actually live.
    """

    def __init__(self, store: IProviderStore, syncer: LiveConfigSyncer) -> None:
        self._store = store
        self._syncer = syncer

    @property
    def store(self) -> IProviderStore:
        return self._store

    @property
    def syncer(self) -> LiveConfigSyncer:
        return self._syncer

    def switch(self, app_type: AppType, provider_id: str) -> Provider:
        try:
            provider = self._store.get(provider_id)
        except NotFoundError:
            raise NotFoundError(f"{app_type.value} provider", provider_id) from None
        if provider.app_type != app_type:
            raise NotFoundError(f"{app_type.value} provider", provider_id)

        snapshot = self._syncer.snapshot(app_type)
        self._syncer.write(app_type, provider)
        try:
            self._store.set_current(app_type, provider.id)
        except CCSwitchError as exc:
            logger.warning(
                "Pointer update for %s failed, restoring previous live config",
                app_type.value,
            )
            try:
                self._syncer.restore(app_type, snapshot)
            except CCSwitchError as restore_exc:
                logger.error("Could not restore live config: %s", restore_exc)
            raise exc
        logger.info(
            "Switched %s to %s (%s)", app_type.value, provider.name, provider.id
        )
        return provider

    def add(self, provider: Provider, *, activate_if_first: bool = True) -> Provider:
        created = self._store.create(provider)
        if activate_if_first and self._store.get_current(created.app_type) is None:
            self.switch(created.app_type, created.id)
        return created

    def edit(self, provider_id: str, patch: ProviderPatch) -> Provider:
        previous = self._store.get(provider_id)
        if self._store.get_current(previous.app_type) != previous.id:
            return self._store.update(provider_id, patch)

        # The live file is written before the store so a failed write leaves
        # both untouched; a failed store update rolls the live file back.
        patched = patch.apply(previous)
        self._syncer.write(previous.app_type, patched)
        try:
            return self._store.update(provider_id, patch)
        except CCSwitchError as exc:
            logger.warning(
                "Store update for %s failed, restoring %s live config",
                previous.name,
                previous.app_type.value,
            )
            try:
                self._syncer.write(previous.app_type, previous)
            except CCSwitchError as restore_exc:
                logger.error("Could not restore live config: %s", restore_exc)
            raise exc

    def remove(self, provider_id: str) -> Provider:
        return self._store.delete(provider_id)

    def resync(self, app_type: AppType) -> Provider | None:
        provider = self._store.current_provider(app_type)
        if provider is None:
            return None
        self._syncer.write(app_type, provider)
        return provider
