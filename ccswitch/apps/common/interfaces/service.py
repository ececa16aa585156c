from abc import ABC, abstractmethod
from copy import deepcopy
from typing import TYPE_CHECKING, Any

from ccswitch.apps.app_id import AppMetadata, AppType, app_metadata
from ccswitch.apps.common.interfaces.mapper import IAppMCPMapper, ICredentialMapper
from ccswitch.apps.common.interfaces.repositories import IAppConfigRepository
from ccswitch.apps.common.mcp_merge import merge_mcp_servers
from ccswitch.apps.common.models import LiveCredentials

if TYPE_CHECKING:
    from ccswitch.models import Provider


class IAppConfigService(ABC):
    @property
    @abstractmethod
    def app_type(self) -> AppType:
        raise NotImplementedError

    @property
    @abstractmethod
    def repository(self) -> IAppConfigRepository:
        raise NotImplementedError

    @property
    @abstractmethod
    def mcp_mapper(self) -> IAppMCPMapper:
        raise NotImplementedError

    @property
    @abstractmethod
    def credential_mapper(self) -> ICredentialMapper:
        raise NotImplementedError

    @abstractmethod
    def validate_config(self, payload: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def template(self) -> dict[str, Any]:
        raise NotImplementedError

    @property
    def metadata(self) -> AppMetadata:
        return app_metadata(self.app_type)

    def load_existing(self) -> dict[str, Any] | None:
        existing = self.repository.load_config()
        if existing is not None:
            self.validate_config(existing)
        return existing

    def get_mcp_payload(self, payload: dict[str, Any]) -> dict[str, Any]:
        mcp = payload.get(self.metadata.mcp_key)
        return mcp if isinstance(mcp, dict) else {}

    def set_mcp_payload(self, payload: dict[str, Any], servers: dict[str, Any]) -> None:
        if not servers and self.metadata.mcp_key not in payload:
            return
        payload[self.metadata.mcp_key] = servers

    def render(
        self, existing: dict[str, Any] | None, provider: "Provider"
    ) -> dict[str, Any]:
        merged = deepcopy(existing) if existing is not None else self.template()
        self.credential_mapper.apply(merged, provider)
        desired_mcp = self.mcp_mapper.from_common(provider.mcp_servers)
        self.set_mcp_payload(
            merged, merge_mcp_servers(desired_mcp, self.get_mcp_payload(merged))
        )
        self.validate_config(merged)
        return merged

    def read_credentials(self, payload: dict[str, Any]) -> LiveCredentials:
        return self.credential_mapper.read(payload)
