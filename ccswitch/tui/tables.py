from rich.table import Column, Table
from rich.text import Text

from ccswitch.apps.app_id import app_label
from ccswitch.batch.models import BatchReport
from ccswitch.models import Provider
from ccswitch.status import AppStatusRow
from ccswitch.tui.enums import ITEM_STATUS_STYLE, LIVE_STATUS_STYLE, UIStyle
from ccswitch.utils import compact_home_path


def _styled(value: str, style: str) -> str:
    return f"[{style}]{value}[/{style}]"


def _or_dash(value: str | None) -> str:
    return value if value else "-"


class ProviderTable:
    @staticmethod
    def list_table(
        providers: list[Provider], current_ids: set[str], detail: bool = False
    ) -> Table:
        columns = [
            Column(header="", width=1),
            Column(header="App", width=9),
            Column(header="Name", overflow="fold"),
            Column(header="Base URL", overflow="ellipsis"),
            Column(header="Model", overflow="ellipsis"),
        ]
        if detail:
            columns.extend(
                [
                    Column(header="Small model", overflow="ellipsis"),
                    Column(header="API key", no_wrap=True),
                    Column(header="MCP", justify="right", width=4),
                    Column(header="ID", overflow="fold", style=UIStyle.DIM.value),
                    Column(header="Updated", no_wrap=True),
                ]
            )
        table = Table(*columns, expand=True, header_style="bold")

        for provider in providers:
            marker = (
                _styled("*", UIStyle.GREEN.value) if provider.id in current_ids else ""
            )
            row = [
                marker,
                provider.app_type.value,
                provider.name,
                provider.base_url,
                _or_dash(provider.model),
            ]
            if detail:
                updated = (
                    provider.updated_at.strftime("%Y-%m-%d %H:%M:%S")
                    if provider.updated_at
                    else "-"
                )
                row.extend(
                    [
                        _or_dash(provider.small_model),
                        provider.masked_api_key,
                        str(len(provider.mcp_servers)),
                        provider.id,
                        updated,
                    ]
                )
            table.add_row(*row)
        return table

    @staticmethod
    def detail_table(provider: Provider, is_current: bool) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("App", app_label(provider.app_type))
        table.add_row("Name", provider.name)
        table.add_row("ID", provider.id)
        table.add_row(
            "Current",
            _styled("yes", UIStyle.GREEN.value) if is_current else "no",
        )
        table.add_row("API key", provider.masked_api_key)
        table.add_row("Base URL", provider.base_url)
        table.add_row("Model", _or_dash(provider.model))
        table.add_row("Small model", _or_dash(provider.small_model))
        mcp_names = ", ".join(provider.mcp_servers) or "-"
        table.add_row("MCP servers", mcp_names)
        for key, value in provider.metadata.items():
            table.add_row(f"meta.{key}", Text(str(value)))
        if provider.created_at:
            table.add_row("Created", provider.created_at.isoformat(timespec="seconds"))
        if provider.updated_at:
            table.add_row("Updated", provider.updated_at.isoformat(timespec="seconds"))
        return table


class StatusTable:
    @staticmethod
    def status_table(rows: list[AppStatusRow]) -> Table:
        table = Table(
            Column(header="App", width=12),
            Column(header="Current", overflow="fold"),
            Column(header="Model", overflow="ellipsis"),
            Column(header="Live", width=8),
            Column(header="Config", overflow="ellipsis"),
            Column(header="Detail", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for row in rows:
            style = LIVE_STATUS_STYLE.get(row.status, UIStyle.WHITE.value)
            model = row.provider.model if row.provider is not None else None
            table.add_row(
                row.app_type.value,
                row.current_name,
                _or_dash(model),
                _styled(row.status.value, style),
                compact_home_path(row.path),
                row.detail,
            )
        return table


class BatchTable:
    @staticmethod
    def summary_block(report: BatchReport) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Operation", report.operation.value)
        table.add_row("Total", str(report.total))
        table.add_row("Succeeded", _styled(str(report.succeeded), UIStyle.GREEN.value))
        table.add_row("Failed", _styled(str(report.failed), UIStyle.RED.value))
        table.add_row("Skipped", _styled(str(report.skipped), UIStyle.YELLOW.value))
        return table

    @staticmethod
    def items_table(report: BatchReport) -> Table:
        show_latency = any(item.latency_ms is not None for item in report.items)
        columns = [
            Column(header="App", width=9),
            Column(header="Provider", overflow="fold"),
            Column(header="Status", width=10),
        ]
        if show_latency:
            columns.append(Column(header="Latency", justify="right", width=10))
        columns.append(Column(header="Detail", overflow="fold"))
        table = Table(*columns, expand=True, header_style="bold")

        for item in report.items:
            style = ITEM_STATUS_STYLE.get(item.status, UIStyle.WHITE.value)
            row = [
                item.app_type.value if item.app_type is not None else "-",
                item.name,
                _styled(item.status.value, style),
            ]
            if show_latency:
                row.append(
                    f"{item.latency_ms:.0f} ms" if item.latency_ms is not None else "-"
                )
            row.append(Text(item.detail))
            table.add_row(*row)
        return table
