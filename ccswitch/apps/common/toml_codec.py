import math
import re
import tomllib
from datetime import date, datetime, time
from typing import Any

_BARE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")
_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def loads_toml(text: str) -> dict[str, Any]:
    return tomllib.loads(text)


def dumps_toml(payload: dict[str, Any]) -> str:
    """Serialize a parsed TOML document back to text.

    Key order is kept as given. Plain values of a table are written before its
    sub-tables, so a document read with ``tomllib`` and written back keeps
    every key even when the original interleaved them.
    """
    lines: list[str] = []
    _dump_table(lines, (), payload, header=False)
    return "\n".join(lines).strip() + "\n"


def _dump_table(
    lines: list[str], path: tuple[str, ...], table: dict[str, Any], *, header: bool
) -> None:
    plain = [
        (key, value)
        for key, value in table.items()
        if not isinstance(value, dict) and not _is_table_array(value)
    ]
    nested = [
        (key, value)
        for key, value in table.items()
        if isinstance(value, dict) or _is_table_array(value)
    ]

    has_subtables = any(isinstance(value, dict) for _, value in nested)
    if header and (plain or not has_subtables):
        if lines:
            lines.append("")
        lines.append(f"[{_dump_path(path)}]")
    for key, value in plain:
        lines.append(f"{_dump_key(key)} = {_dump_value(value)}")

    for key, value in nested:
        child_path = (*path, str(key))
        if isinstance(value, dict):
            _dump_table(lines, child_path, value, header=True)
            continue
        for item in value:
            if lines:
                lines.append("")
            lines.append(f"[[{_dump_path(child_path)}]]")
            _dump_array_item(lines, child_path, item)


def _dump_array_item(
    lines: list[str], path: tuple[str, ...], item: dict[str, Any]
) -> None:
    for key, value in item.items():
        if isinstance(value, dict) or _is_table_array(value):
            continue
        lines.append(f"{_dump_key(key)} = {_dump_value(value)}")
    for key, value in item.items():
        # Sub-tables of an array element must be written inline; a header
        # would attach them to the last element only by position.
        if isinstance(value, dict) or _is_table_array(value):
            lines.append(f"{_dump_key(key)} = {_dump_value(value)}")


def _is_table_array(value: Any) -> bool:
    return (
        isinstance(value, list)
        and bool(value)
        and all(isinstance(item, dict) for item in value)
    )


def _dump_path(path: tuple[str, ...]) -> str:
    return ".".join(_dump_key(part) for part in path)


def _dump_key(key: Any) -> str:
    text = str(key)
    if _BARE_KEY.match(text):
        return text
    return _dump_string(text)


def _dump_string(value: str) -> str:
    out: list[str] = []
    for char in value:
        if char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            out.append(f"\\u{ord(char):04x}")
        else:
            out.append(char)
    return '"' + "".join(out) + '"'


def _dump_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "nan"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, list):
        return "[" + ", ".join(_dump_value(item) for item in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        items = ", ".join(
            f"{_dump_key(key)} = {_dump_value(item)}" for key, item in value.items()
        )
        return "{ " + items + " }"
    if value is None:
        raise ValueError("TOML has no null value")
    return _dump_string(str(value))
