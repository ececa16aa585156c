from copy import deepcopy
from typing import TYPE_CHECKING, Any

from ccswitch.apps.common.interfaces.mapper import IAppMCPMapper, ICredentialMapper
from ccswitch.apps.common.models import LiveCredentials, MCPServerDTO, MCPServerType

if TYPE_CHECKING:
    from ccswitch.models import Provider

AUTH_TOKEN_KEY = "ANTHROPIC_AUTH_TOKEN"
API_KEY_KEY = "ANTHROPIC_API_KEY"
BASE_URL_KEY = "ANTHROPIC_BASE_URL"
MODEL_KEY = "ANTHROPIC_MODEL"
SMALL_MODEL_KEY = "ANTHROPIC_SMALL_FAST_MODEL"


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


class ClaudeMCPMapper(IAppMCPMapper):
    def to_common(self, payload: dict[str, Any]) -> dict[str, MCPServerDTO]:
        mapped: dict[str, MCPServerDTO] = {}
        for name, server in payload.items():
            if not isinstance(server, dict):
                continue

            if isinstance(server.get("command"), str):
                mapped[name] = MCPServerDTO(
                    name=name,
                    type=MCPServerType.STDIO,
                    command=server["command"],
                    args=[
                        str(item)
                        for item in server.get("args", [])
                        if isinstance(item, (str, int, float, bool))
                    ],
                    env=_string_map(server.get("env")),
                )
                continue

            url = server.get("url")
            if not isinstance(url, str):
                continue
            mapped[name] = MCPServerDTO(
                name=name,
                type=MCPServerType.HTTP,
                url=url,
                headers=_string_map(server.get("headers")),
            )
        return mapped

    def from_common(self, servers: dict[str, MCPServerDTO]) -> dict[str, Any]:
        mapped: dict[str, Any] = {}
        for name, server in servers.items():
            out: dict[str, Any] = {}
            if server.type == MCPServerType.STDIO:
                if not server.command:
                    continue
                out["type"] = "stdio"
                out["command"] = server.command
                out["args"] = deepcopy(server.args)
                if server.env:
                    out["env"] = deepcopy(server.env)
            else:
                if not server.url:
                    continue
                out["type"] = "http"
                out["url"] = server.url
                if server.headers:
                    out["headers"] = deepcopy(server.headers)
            mapped[name] = out
        return mapped


class ClaudeCredentialMapper(ICredentialMapper):
    def apply(self, payload: dict[str, Any], provider: "Provider") -> None:
        env = payload.get("env")
        env = dict(env) if isinstance(env, dict) else {}

        env.pop(API_KEY_KEY, None)
        env[AUTH_TOKEN_KEY] = provider.api_key
        env[BASE_URL_KEY] = provider.base_url
        for key, value in (
            (MODEL_KEY, provider.model),
            (SMALL_MODEL_KEY, provider.small_model),
        ):
            if value:
                env[key] = value
            else:
                env.pop(key, None)

        payload["env"] = env

    def read(self, payload: dict[str, Any]) -> LiveCredentials:
        env = payload.get("env")
        if not isinstance(env, dict):
            return LiveCredentials()
        return LiveCredentials(
            api_key=env.get(AUTH_TOKEN_KEY) or env.get(API_KEY_KEY),
            base_url=env.get(BASE_URL_KEY),
            model=env.get(MODEL_KEY),
            small_model=env.get(SMALL_MODEL_KEY),
        )
