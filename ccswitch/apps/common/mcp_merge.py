from copy import deepcopy
from typing import Any, Mapping


def merge_mcp_servers(
    declared: Mapping[str, Any], live: Mapping[str, Any]
) -> dict[str, Any]:
    """Merge a provider's MCP entries with the ones already in a live file.

    Declared entries come first in declared order and replace same-named
    live entries; live-only entries follow in their existing order. Inputs
    are never mutated.
    """
    merged: dict[str, Any] = {}
    for name, entry in declared.items():
        merged[name] = deepcopy(entry)
    for name, entry in live.items():
        if name in merged:
            continue
        merged[name] = deepcopy(entry)
    return merged
