from pathlib import Path

from ccswitch.apps.common.repositories import JsonConfigRepository


class ClaudeConfigRepository(JsonConfigRepository):
    def __init__(self, root: Path | None = None) -> None:
        super().__init__(root or (Path.home() / ".claude"), "settings.json")
