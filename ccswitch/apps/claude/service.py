from pathlib import Path
from typing import Any

from ccswitch.apps.app_id import AppType
from ccswitch.apps.claude.config_repository import ClaudeConfigRepository
from ccswitch.apps.claude.mapper import ClaudeCredentialMapper, ClaudeMCPMapper
from ccswitch.apps.common.framework import RegisteredAppConfigService
from ccswitch.apps.common.schema import bundled_schema


class ClaudeConfigService(RegisteredAppConfigService):
    APP_TYPE = AppType.CLAUDE

    @classmethod
    def create_default(cls, root: Path) -> "ClaudeConfigService":
        return cls(
            repository=ClaudeConfigRepository(root),
            mcp_mapper=ClaudeMCPMapper(),
            credential_mapper=ClaudeCredentialMapper(),
            schema_repository=bundled_schema(__file__),
        )

    def template(self) -> dict[str, Any]:
        return {"env": {}}
