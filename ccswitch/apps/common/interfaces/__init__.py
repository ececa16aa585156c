from ccswitch.apps.common.interfaces.mapper import IAppMCPMapper, ICredentialMapper
from ccswitch.apps.common.interfaces.repositories import (
    IAppConfigRepository,
    ISchemaRepository,
)
from ccswitch.apps.common.interfaces.service import IAppConfigService

__all__ = [
    "IAppConfigRepository",
    "IAppConfigService",
    "IAppMCPMapper",
    "ICredentialMapper",
    "ISchemaRepository",
]
