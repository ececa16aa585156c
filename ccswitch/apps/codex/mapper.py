import re
from copy import deepcopy
from typing import TYPE_CHECKING, Any

from ccswitch.apps.common.interfaces.mapper import IAppMCPMapper, ICredentialMapper
from ccswitch.apps.common.models import LiveCredentials, MCPServerDTO, MCPServerType

if TYPE_CHECKING:
    from ccswitch.models import Provider

PROVIDER_KEY = "ccswitch"
WIRE_API = "responses"

_ENV_PATTERN = re.compile(r"^\$\{(?:env:)?([A-Z_][A-Z0-9_]*)\}$")
_BEARER_PATTERN = re.compile(r"^Bearer\s+\$\{(?:env:)?([A-Z_][A-Z0-9_]*)\}$")


def _extract_env_var(value: str) -> str | None:
    match = _ENV_PATTERN.match(value.strip())
    return match.group(1) if match else None


def _extract_bearer_env_var(value: str) -> str | None:
    match = _BEARER_PATTERN.match(value.strip())
    return match.group(1) if match else None


class CodexMCPMapper(IAppMCPMapper):
    def to_common(self, payload: dict[str, Any]) -> dict[str, MCPServerDTO]:
        mapped: dict[str, MCPServerDTO] = {}
        for name, server in payload.items():
            if not isinstance(server, dict):
                continue

            url = server.get("url")
            command = server.get("command")
            if not isinstance(url, str) and not isinstance(command, str):
                continue

            env: dict[str, str] = {}
            env_vars = server.get("env_vars")
            if isinstance(env_vars, list):
                for key in env_vars:
                    if isinstance(key, str):
                        env[key] = f"${{{key}}}"
            env_table = server.get("env")
            if isinstance(env_table, dict):
                for key, value in env_table.items():
                    env[str(key)] = str(value)

            headers: dict[str, str] = {}
            http_headers = server.get("http_headers")
            if isinstance(http_headers, dict):
                for key, value in http_headers.items():
                    headers[str(key)] = str(value)
            env_http_headers = server.get("env_http_headers")
            if isinstance(env_http_headers, dict):
                for key, env_name in env_http_headers.items():
                    if isinstance(env_name, str):
                        headers[str(key)] = f"${{{env_name}}}"
            bearer_token_env_var = server.get("bearer_token_env_var")
            if isinstance(bearer_token_env_var, str):
                headers["Authorization"] = f"Bearer ${{{bearer_token_env_var}}}"

            if isinstance(url, str):
                mapped[name] = MCPServerDTO(
                    name=name,
                    type=MCPServerType.HTTP,
                    url=url,
                    headers=headers,
                    env=env,
                )
                continue

            args = server.get("args")
            mapped[name] = MCPServerDTO(
                name=name,
                type=MCPServerType.STDIO,
                command=command,
                args=[str(item) for item in args] if isinstance(args, list) else [],
                headers=headers,
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

            env_vars: list[str] = []
            env_table: dict[str, str] = {}
            for key, value in server.env.items():
                env_name = _extract_env_var(value)
                if env_name is None or env_name != key:
                    env_table[key] = value
                else:
                    env_vars.append(env_name)
            if env_vars:
                out["env_vars"] = env_vars

            http_headers: dict[str, str] = {}
            env_http_headers: dict[str, str] = {}
            for key, value in server.headers.items():
                bearer_env = (
                    _extract_bearer_env_var(value)
                    if key.lower() == "authorization"
                    else None
                )
                if bearer_env is not None:
                    out["bearer_token_env_var"] = bearer_env
                    continue
                env_name = _extract_env_var(value)
                if env_name is None:
                    http_headers[key] = value
                else:
                    env_http_headers[key] = env_name

            if env_table:
                out["env"] = env_table
            if http_headers:
                out["http_headers"] = http_headers
            if env_http_headers:
                out["env_http_headers"] = env_http_headers

            mapped[name] = out
        return mapped


class CodexCredentialMapper(ICredentialMapper):
    def apply(self, payload: dict[str, Any], provider: "Provider") -> None:
        payload["model_provider"] = PROVIDER_KEY
        if provider.model:
            payload["model"] = provider.model
        else:
            payload.pop("model", None)

        providers = payload.get("model_providers")
        providers = dict(providers) if isinstance(providers, dict) else {}
        entry = providers.get(PROVIDER_KEY)
        entry = dict(entry) if isinstance(entry, dict) else {}
        entry["name"] = provider.name
        entry["base_url"] = provider.base_url
        entry["wire_api"] = entry.get("wire_api") or WIRE_API
        entry["experimental_bearer_token"] = provider.api_key
        entry.pop("env_key", None)
        providers[PROVIDER_KEY] = entry
        payload["model_providers"] = providers

    def read(self, payload: dict[str, Any]) -> LiveCredentials:
        model = payload.get("model")
        model = model if isinstance(model, str) else None

        selected = payload.get("model_provider")
        providers = payload.get("model_providers")
        if not isinstance(selected, str) or not isinstance(providers, dict):
            return LiveCredentials(model=model)
        entry = providers.get(selected)
        if not isinstance(entry, dict):
            return LiveCredentials(model=model)

        api_key = entry.get("experimental_bearer_token")
        base_url = entry.get("base_url")
        return LiveCredentials(
            api_key=api_key if isinstance(api_key, str) else None,
            base_url=base_url if isinstance(base_url, str) else None,
            model=model,
        )
