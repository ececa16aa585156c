import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from ccswitch.apps.app_id import AppType
from ccswitch.apps.common.framework import (
    RegisteredAppConfigService,
    create_registered_app_service,
)
from ccswitch.apps.common.models import LiveCredentials
from ccswitch.errors import ConfigIOError, ValidationError
from ccswitch.models import Provider
from ccswitch.utils import atomic_write_text, mask_secret

logger = logging.getLogger(__name__)

DRIFT_FIELDS = ("api_key", "base_url", "model", "small_model")


@dataclass(frozen=True)
class LiveDrift:
    app_type: AppType
    path: Path
    exists: bool
    fields: tuple[str, ...] = ()

    @property
    def in_sync(self) -> bool:
        return self.exists and not self.fields


class LiveConfigSyncer:
    """Reads and writes the live config file of every app.

    Each app's dialect lives in its registered service; this class is the
    only place that picks one.
    """

    def __init__(self, roots: Mapping[AppType, Path]) -> None:
        self._roots = dict(roots)
        self._services: dict[AppType, RegisteredAppConfigService] = {}

    def service(self, app_type: AppType) -> RegisteredAppConfigService:
        service = self._services.get(app_type)
        if service is None:
            root = self._roots.get(app_type)
            if root is None:
                raise ValidationError(f"No live config root for {app_type.value}")
            service = create_registered_app_service(app_type, root)
            self._services[app_type] = service
        return service

    def config_path(self, app_type: AppType) -> Path:
        return self.service(app_type).repository.config_path

    def write(self, app_type: AppType, provider: Provider) -> Path:
        service = self._service_for(app_type, provider)
        existing = service.load_existing()
        logger.debug(
            "Merging %s provider %s into %s (%d MCP server(s))",
            app_type.value,
            provider.name,
            service.repository.config_path,
            len(provider.mcp_servers),
        )
        merged = service.render(existing, provider)
        service.repository.save_config(merged)
        logger.info(
            "Wrote %s live config for provider %s (key %s) to %s",
            app_type.value,
            provider.name,
            mask_secret(provider.api_key),
            service.repository.config_path,
        )
        return service.repository.config_path

    def preview(self, app_type: AppType, provider: Provider) -> str:
        service = self._service_for(app_type, provider)
        merged = service.render(service.load_existing(), provider)
        return service.repository.serialize_config(merged)

    def read_current(self, app_type: AppType) -> LiveCredentials | None:
        service = self.service(app_type)
        existing = service.repository.load_config()
        if existing is None:
            return None
        return service.read_credentials(existing)

    def drift(self, app_type: AppType, provider: Provider) -> LiveDrift:
        path = self.config_path(app_type)
        live = self.read_current(app_type)
        if live is None:
            return LiveDrift(app_type=app_type, path=path, exists=False)
        differing = tuple(
            name
            for name in DRIFT_FIELDS
            if (getattr(live, name) or None) != (getattr(provider, name) or None)
        )
        if differing:
            logger.debug("%s live config drifts on %s", app_type.value, differing)
        return LiveDrift(app_type=app_type, path=path, exists=True, fields=differing)

    def snapshot(self, app_type: AppType) -> str | None:
        """Raw text of the live file, or ``None`` when it does not exist."""
        path = self.config_path(app_type)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ConfigIOError(path, str(exc)) from exc

    def restore(self, app_type: AppType, snapshot: str | None) -> None:
        path = self.config_path(app_type)
        if snapshot is None:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise ConfigIOError(path, str(exc)) from exc
        else:
            atomic_write_text(path, snapshot)
        logger.debug("Restored %s live config at %s", app_type.value, path)

    def _service_for(
        self, app_type: AppType, provider: Provider
    ) -> RegisteredAppConfigService:
        if provider.app_type != app_type:
            raise ValidationError(
                f"Provider {provider.name} belongs to {provider.app_type.value}, "
                f"not {app_type.value}"
            )
        return self.service(app_type)
