from dataclasses import dataclass, field
from enum import Enum


class MCPServerType(str, Enum):
    STDIO = "stdio"
    HTTP = "http"


@dataclass(frozen=True)
class MCPServerDTO:
    name: str
    type: MCPServerType
    command: str | None = None
    args: list[str] = field(default_factory=list)
    url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    env: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LiveCredentials:
    """Credential fields found in an app's live config file."""

    api_key: str | None = field(default=None, repr=False)
    base_url: str | None = None
    model: str | None = None
    small_model: str | None = None
