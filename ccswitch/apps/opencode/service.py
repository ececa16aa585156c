from pathlib import Path
from typing import Any

from ccswitch.apps.app_id import AppType
from ccswitch.apps.common.framework import RegisteredAppConfigService
from ccswitch.apps.common.schema import bundled_schema
from ccswitch.apps.opencode.config_repository import OpenCodeConfigRepository
from ccswitch.apps.opencode.mapper import OpenCodeCredentialMapper, OpenCodeMCPMapper

OPENCODE_SCHEMA_URL = "https://opencode.ai/config.json"


class OpenCodeConfigService(RegisteredAppConfigService):
    APP_TYPE = AppType.OPENCODE

    @classmethod
    def create_default(cls, root: Path) -> "OpenCodeConfigService":
        return cls(
            repository=OpenCodeConfigRepository(root),
            mcp_mapper=OpenCodeMCPMapper(),
            credential_mapper=OpenCodeCredentialMapper(),
            schema_repository=bundled_schema(__file__),
        )

    def template(self) -> dict[str, Any]:
        return {"$schema": OPENCODE_SCHEMA_URL}
