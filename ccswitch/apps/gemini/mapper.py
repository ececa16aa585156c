from copy import deepcopy
from typing import TYPE_CHECKING, Any

from ccswitch.apps.common.interfaces.mapper import IAppMCPMapper, ICredentialMapper
from ccswitch.apps.common.models import LiveCredentials, MCPServerDTO, MCPServerType

if TYPE_CHECKING:
    from ccswitch.models import Provider


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return value if isinstance(value, str) else None


class GeminiMCPMapper(IAppMCPMapper):
    def to_common(self, payload: dict[str, Any]) -> dict[str, MCPServerDTO]:
        mapped: dict[str, MCPServerDTO] = {}
        for name, server in payload.items():
            if not isinstance(server, dict):
                continue

            env = {k: str(v) for k, v in (server.get("env") or {}).items()}
            if isinstance(server.get("command"), str):
                mapped[name] = MCPServerDTO(
                    name=name,
                    type=MCPServerType.STDIO,
                    command=server["command"],
                    args=[str(item) for item in server.get("args", [])],
                    env=env,
                )
                continue

            # Streamable HTTP servers use httpUrl; url is the SSE transport.
            url = server.get("httpUrl") or server.get("url")
            if not isinstance(url, str):
                continue
            mapped[name] = MCPServerDTO(
                name=name,
                type=MCPServerType.HTTP,
                url=url,
                headers={k: str(v) for k, v in (server.get("headers") or {}).items()},
                env=env,
            )
        return mapped

    def from_common(self, servers: dict[str, MCPServerDTO]) -> dict[str, Any]:
        mapped: dict[str, Any] = {}
        for name, server in servers.items():
            out: dict[str, Any] = {}
            if server.type == MCPServerType.STDIO:
                if not server.command:
                    continue
                out["command"] = server.command
                if server.args:
                    out["args"] = deepcopy(server.args)
            else:
                if not server.url:
                    continue
                out["url"] = server.url
                if server.headers:
                    out["headers"] = deepcopy(server.headers)

            if server.env:
                out["env"] = deepcopy(server.env)
            mapped[name] = out
        return mapped


class GeminiCredentialMapper(ICredentialMapper):
    def apply(self, payload: dict[str, Any], provider: "Provider") -> None:
        payload["apiKey"] = provider.api_key
        payload["baseUrl"] = provider.base_url
        if provider.model:
            payload["model"] = provider.model
        else:
            payload.pop("model", None)

    def read(self, payload: dict[str, Any]) -> LiveCredentials:
        return LiveCredentials(
            api_key=_optional_str(payload, "apiKey"),
            base_url=_optional_str(payload, "baseUrl"),
            model=_optional_str(payload, "model"),
        )
