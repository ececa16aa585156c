from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ccswitch.apps.common.models import LiveCredentials, MCPServerDTO

if TYPE_CHECKING:
    from ccswitch.models import Provider


class IAppMCPMapper(ABC):
    @abstractmethod
    def to_common(self, payload: dict[str, Any]) -> dict[str, MCPServerDTO]:
        raise NotImplementedError

    @abstractmethod
    def from_common(self, servers: dict[str, MCPServerDTO]) -> dict[str, Any]:
        raise NotImplementedError


class ICredentialMapper(ABC):
    @abstractmethod
    def apply(self, payload: dict[str, Any], provider: "Provider") -> None:
        """Write the provider's credential fields into ``payload`` in place."""
        raise NotImplementedError

    @abstractmethod
    def read(self, payload: dict[str, Any]) -> LiveCredentials:
        raise NotImplementedError
