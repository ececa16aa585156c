from pathlib import Path
from typing import Any

from ccswitch.apps.app_id import AppType
from ccswitch.apps.common.framework import RegisteredAppConfigService
from ccswitch.apps.common.schema import bundled_schema
from ccswitch.apps.gemini.config_repository import GeminiConfigRepository
from ccswitch.apps.gemini.mapper import GeminiCredentialMapper, GeminiMCPMapper


class GeminiConfigService(RegisteredAppConfigService):
    APP_TYPE = AppType.GEMINI

    @classmethod
    def create_default(cls, root: Path) -> "GeminiConfigService":
        return cls(
            repository=GeminiConfigRepository(root),
            mcp_mapper=GeminiMCPMapper(),
            credential_mapper=GeminiCredentialMapper(),
            schema_repository=bundled_schema(__file__),
        )

    def template(self) -> dict[str, Any]:
        return {}
