from copy import deepcopy
from typing import TYPE_CHECKING, Any

from ccswitch.apps.common.interfaces.mapper import IAppMCPMapper, ICredentialMapper
from ccswitch.apps.common.models import LiveCredentials, MCPServerDTO, MCPServerType

if TYPE_CHECKING:
    from ccswitch.models import Provider

PROVIDER_KEY = "ccswitch"
PROVIDER_NPM = "@ai-sdk/openai-compatible"
MODEL_PREFIX = f"{PROVIDER_KEY}/"


def _as_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value]
    if isinstance(value, str):
        return [value]
    return []


class OpenCodeMCPMapper(IAppMCPMapper):
    def to_common(self, payload: dict[str, Any]) -> dict[str, MCPServerDTO]:
        mapped: dict[str, MCPServerDTO] = {}
        for name, server in payload.items():
            if not isinstance(server, dict):
                continue

            server_type = server.get("type")
            if server_type == "local" or "command" in server:
                command_parts = _as_list(server.get("command"))
                if not command_parts:
                    continue
                mapped[name] = MCPServerDTO(
                    name=name,
                    type=MCPServerType.STDIO,
                    command=command_parts[0],
                    args=command_parts[1:],
                    env={
                        k: str(v) for k, v in (server.get("environment") or {}).items()
                    },
                )
                continue

            url = server.get("url")
            if not isinstance(url, str):
                continue
            mapped[name] = MCPServerDTO(
                name=name,
                type=MCPServerType.HTTP,
                url=url,
                headers={k: str(v) for k, v in (server.get("headers") or {}).items()},
            )
        return mapped

    def from_common(self, servers: dict[str, MCPServerDTO]) -> dict[str, Any]:
        mapped: dict[str, Any] = {}
        for name, server in servers.items():
            out: dict[str, Any] = {}
            if server.type == MCPServerType.STDIO:
                if not server.command:
                    continue
                out["type"] = "local"
                out["command"] = [server.command, *server.args]
                if server.env:
                    out["environment"] = deepcopy(server.env)
            else:
                if not server.url:
                    continue
                out["type"] = "remote"
                out["url"] = server.url
                if server.headers:
                    out["headers"] = deepcopy(server.headers)

            out["enabled"] = True
            mapped[name] = out
        return mapped


class OpenCodeCredentialMapper(ICredentialMapper):
    def apply(self, payload: dict[str, Any], provider: "Provider") -> None:
        providers = payload.get("provider")
        providers = dict(providers) if isinstance(providers, dict) else {}
        entry = providers.get(PROVIDER_KEY)
        entry = dict(entry) if isinstance(entry, dict) else {}

        options = entry.get("options")
        options = dict(options) if isinstance(options, dict) else {}
        options["apiKey"] = provider.api_key
        options["baseURL"] = provider.base_url

        entry["npm"] = PROVIDER_NPM
        entry["name"] = provider.name
        entry["options"] = options
        entry["models"] = {
            model: {"name": model}
            for model in (provider.model, provider.small_model)
            if model
        }
        providers[PROVIDER_KEY] = entry
        payload["provider"] = providers

        for key, value in (
            ("model", provider.model),
            ("small_model", provider.small_model),
        ):
            if value:
                payload[key] = f"{MODEL_PREFIX}{value}"
            elif str(payload.get(key, "")).startswith(MODEL_PREFIX):
                payload.pop(key)

    def read(self, payload: dict[str, Any]) -> LiveCredentials:
        providers = payload.get("provider")
        entry = providers.get(PROVIDER_KEY) if isinstance(providers, dict) else None
        options = entry.get("options") if isinstance(entry, dict) else None
        if not isinstance(options, dict):
            options = {}

        api_key = options.get("apiKey")
        base_url = options.get("baseURL")
        return LiveCredentials(
            api_key=api_key if isinstance(api_key, str) else None,
            base_url=base_url if isinstance(base_url, str) else None,
            model=_strip_prefix(payload.get("model")),
            small_model=_strip_prefix(payload.get("small_model")),
        )


def _strip_prefix(value: Any) -> str | None:
    if not isinstance(value, str) or not value.startswith(MODEL_PREFIX):
        return None
    return value[len(MODEL_PREFIX) :]
