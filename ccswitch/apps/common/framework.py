from abc import ABCMeta, abstractmethod
from pathlib import Path
from typing import Any, ClassVar, cast

from jsonschema import Draft7Validator

from ccswitch.apps.app_id import AppType, app_label
from ccswitch.apps.common.interfaces.mapper import IAppMCPMapper, ICredentialMapper
from ccswitch.apps.common.interfaces.repositories import (
    IAppConfigRepository,
    ISchemaRepository,
)
from ccswitch.apps.common.interfaces.service import IAppConfigService
from ccswitch.errors import InvalidConfigSchemaError


def format_schema_error(error: Any) -> str:
    path = ".".join([str(part) for part in error.path])
    return f"{error.message} at {path}" if path else str(error.message)


class AppServiceRegistryMeta(ABCMeta):
    _registry: dict[AppType, type["RegisteredAppConfigService"]] = {}

    def __new__(
        mcls,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ):
        cls = super().__new__(mcls, name, bases, namespace, **kwargs)
        app_type = getattr(cls, "APP_TYPE", None)
        is_abstract = bool(getattr(cls, "__abstractmethods__", False))
        if app_type is not None and not is_abstract:
            mcls._registry[app_type] = cast(type["RegisteredAppConfigService"], cls)
        return cls


class RegisteredAppConfigService(IAppConfigService, metaclass=AppServiceRegistryMeta):
    APP_TYPE: ClassVar[AppType | None] = None

    def __init__(
        self,
        repository: IAppConfigRepository,
        mcp_mapper: IAppMCPMapper,
        credential_mapper: ICredentialMapper,
        schema_repository: ISchemaRepository,
    ) -> None:
        self._repository = repository
        self._mcp_mapper = mcp_mapper
        self._credential_mapper = credential_mapper
        self._validator = Draft7Validator(schema_repository.load_schema())

    @property
    def app_type(self) -> AppType:
        if self.APP_TYPE is None:
            raise NotImplementedError
        return self.APP_TYPE

    @property
    def repository(self) -> IAppConfigRepository:
        return self._repository

    @property
    def mcp_mapper(self) -> IAppMCPMapper:
        return self._mcp_mapper

    @property
    def credential_mapper(self) -> ICredentialMapper:
        return self._credential_mapper

    @property
    def app_label(self) -> str:
        return app_label(self.app_type)

    def validate_config(self, payload: Any) -> None:
        error = next(iter(self._validator.iter_errors(payload)), None)
        if error is not None:
            raise InvalidConfigSchemaError(
                self.repository.config_path, format_schema_error(error)
            )

    @classmethod
    @abstractmethod
    def create_default(cls, root: Path) -> "RegisteredAppConfigService":
        raise NotImplementedError


def list_registered_app_services() -> list[AppType]:
    _load_registered_modules()
    return sorted(AppServiceRegistryMeta._registry.keys(), key=lambda item: item.value)


def create_registered_app_service(
    app_type: AppType, root: Path
) -> RegisteredAppConfigService:
    _load_registered_modules()
    service_class = AppServiceRegistryMeta._registry.get(app_type)
    if service_class is None:
        raise KeyError(f"No app service registered for: {app_type.value}")
    return service_class.create_default(root=root)


def _load_registered_modules() -> None:
    from ccswitch.apps.common.loader import load_app_service_modules

    load_app_service_modules()
