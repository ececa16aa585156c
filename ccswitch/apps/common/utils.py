from typing import Any

from ccswitch.apps.common.models import MCPServerDTO, MCPServerType
from ccswitch.errors import ValidationError


def common_mcp_to_dto(mcp_servers: dict[str, Any]) -> dict[str, MCPServerDTO]:
    """Parse the portable ``{name: {command|url, ...}}`` shape, keeping order.

    Entries that are neither a stdio command nor a remote endpoint raise
    ``ValidationError``; callers decide whether that fails one item or all.
    """
    mapped: dict[str, MCPServerDTO] = {}
    for name, raw in mcp_servers.items():
        if not isinstance(raw, dict):
            raise ValidationError(f"MCP server '{name}' must be a mapping")

        command = raw.get("command")
        args = raw.get("args")
        url = raw.get("url")
        headers = raw.get("headers")
        env = raw.get("env")
        if not isinstance(env, dict):
            env = raw.get("environment")

        if args is not None and not isinstance(args, list):
            raise ValidationError(f"MCP server '{name}' args must be a list")

        if isinstance(command, str) and command:
            mapped[str(name)] = MCPServerDTO(
                name=str(name),
                type=MCPServerType.STDIO,
                command=command,
                args=[str(item) for item in args] if isinstance(args, list) else [],
                headers={str(k): str(v) for k, v in headers.items()}
                if isinstance(headers, dict)
                else {},
                env={str(k): str(v) for k, v in env.items()}
                if isinstance(env, dict)
                else {},
            )
            continue

        if isinstance(url, str) and url:
            mapped[str(name)] = MCPServerDTO(
                name=str(name),
                type=MCPServerType.HTTP,
                url=url,
                headers={str(k): str(v) for k, v in headers.items()}
                if isinstance(headers, dict)
                else {},
                env={str(k): str(v) for k, v in env.items()}
                if isinstance(env, dict)
                else {},
            )
            continue

        raise ValidationError(f"MCP server '{name}' needs a command or a url")

    return mapped


def dto_to_common_mcp(servers: dict[str, MCPServerDTO]) -> dict[str, Any]:
    mapped: dict[str, Any] = {}
    for name, server in servers.items():
        item: dict[str, Any] = {}

        if server.command:
            item["command"] = server.command
            item["args"] = [str(arg) for arg in server.args]
        elif server.url:
            item["url"] = server.url
        else:
            continue

        if server.headers:
            item["headers"] = {str(k): str(v) for k, v in server.headers.items()}
        if server.env:
            item["env"] = {str(k): str(v) for k, v in server.env.items()}

        mapped[name] = item
    return mapped
