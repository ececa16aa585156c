from pathlib import Path
from typing import Any

from ccswitch.apps.app_id import AppType
from ccswitch.apps.codex.config_repository import CodexConfigRepository
from ccswitch.apps.codex.mapper import CodexCredentialMapper, CodexMCPMapper
from ccswitch.apps.common.framework import RegisteredAppConfigService
from ccswitch.apps.common.schema import bundled_schema


class CodexConfigService(RegisteredAppConfigService):
    APP_TYPE = AppType.CODEX

    @classmethod
    def create_default(cls, root: Path) -> "CodexConfigService":
        return cls(
            repository=CodexConfigRepository(root),
            mcp_mapper=CodexMCPMapper(),
            credential_mapper=CodexCredentialMapper(),
            schema_repository=bundled_schema(__file__),
        )

    def template(self) -> dict[str, Any]:
        return {}
