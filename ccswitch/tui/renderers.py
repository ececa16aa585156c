from rich.console import Console
from rich.text import Text

from ccswitch.apps.app_id import AppType
from ccswitch.batch.models import BatchReport
from ccswitch.models import Provider
from ccswitch.status import AppStatusRow, LiveSyncStatus
from ccswitch.tui.enums import UIStyle
from ccswitch.tui.sections import UISection
from ccswitch.tui.tables import BatchTable, ProviderTable, StatusTable
from ccswitch.utils import compact_home_path


class ProviderConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_providers(
        self, providers: list[Provider], current_ids: set[str], detail: bool = False
    ) -> None:
        if not providers:
            self.console.print(
                UISection.note(
                    "providers", "No providers configured.", style=UIStyle.YELLOW.value
                )
            )
            return
        self.console.print(
            UISection.wrap(
                "providers",
                ProviderTable.list_table(providers, current_ids, detail=detail),
                style=UIStyle.BLUE.value,
            )
        )

    def render_provider(self, provider: Provider, is_current: bool) -> None:
        self.console.print(
            UISection.wrap(
                provider.name,
                ProviderTable.detail_table(provider, is_current),
                style=UIStyle.GREEN.value if is_current else UIStyle.BLUE.value,
            )
        )

    def render_saved(self, verb: str, provider: Provider, note: str = "") -> None:
        body = (
            f"Provider {verb}: [bold]{provider.name}[/bold] "
            f"({provider.app_type.value})"
        )
        if note:
            body = f"{body}\n{note}"
        removed = verb == "removed"
        border_style = UIStyle.YELLOW.value if removed else UIStyle.GREEN.value
        self.console.print(UISection.note("provider", body, style=border_style))

    def render_switched(self, provider: Provider, path_text: str) -> None:
        self.console.print(
            UISection.note(
                "switch",
                f"{provider.app_type.value} now uses [bold]{provider.name}[/bold]\n"
                f"{compact_home_path(path_text)}",
                style=UIStyle.GREEN.value,
            )
        )

    def render_status(self, rows: list[AppStatusRow]) -> None:
        style = UIStyle.GREEN.value
        if any(row.status == LiveSyncStatus.DRIFT for row in rows):
            style = UIStyle.YELLOW.value
        if any(row.status == LiveSyncStatus.ERROR for row in rows):
            style = UIStyle.RED.value
        self.console.print(
            UISection.wrap("status", StatusTable.status_table(rows), style=style)
        )

    def render_config_paths(
        self, config_dir: str, db_path: str, live: dict[AppType, str]
    ) -> None:
        lines = [
            f"[bold]config dir[/bold]  {compact_home_path(config_dir)}",
            f"[bold]database[/bold]    {compact_home_path(db_path)}",
        ]
        for app_type, path in live.items():
            lines.append(f"[bold]{app_type.value:<11}[/bold] {compact_home_path(path)}")
        self.console.print(
            UISection.note("paths", "\n".join(lines), style=UIStyle.BLUE.value)
        )

    def render_batch_report(self, report: BatchReport) -> None:
        style = UIStyle.GREEN.value if report.ok else UIStyle.RED.value
        self.console.print(
            UISection.wrap(
                f"batch {report.operation.value}",
                BatchTable.summary_block(report),
                style=style,
            )
        )
        if not report.items:
            self.console.print(
                UISection.note("items", "Nothing matched.", style=UIStyle.DIM.value)
            )
            return
        self.console.print(
            UISection.wrap(
                "items", BatchTable.items_table(report), style=UIStyle.CYAN.value
            )
        )

    def render_preview(self, provider: Provider, path_text: str, text: str) -> None:
        masked = text.replace(provider.api_key, provider.masked_api_key)
        self.console.print(
            UISection.wrap(
                f"{provider.app_type.value} preview",
                Text(masked.rstrip("\n")),
                style=UIStyle.DIM.value,
                subtitle=compact_home_path(path_text),
            )
        )

    def render_exported(self, count: int, path_text: str) -> None:
        self.console.print(
            UISection.note(
                "export",
                f"Exported {count} provider(s) to {compact_home_path(path_text)}",
                style=UIStyle.GREEN.value,
            )
        )
