from ccswitch.apps.common.framework import (
    RegisteredAppConfigService,
    create_registered_app_service,
    list_registered_app_services,
)
from ccswitch.apps.common.interfaces.service import IAppConfigService
from ccswitch.apps.common.mcp_merge import merge_mcp_servers
from ccswitch.apps.common.utils import common_mcp_to_dto, dto_to_common_mcp

__all__ = [
    "IAppConfigService",
    "RegisteredAppConfigService",
    "common_mcp_to_dto",
    "create_registered_app_service",
    "dto_to_common_mcp",
    "list_registered_app_services",
    "merge_mcp_servers",
]
