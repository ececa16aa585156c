import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from ccswitch.apps.app_id import AppType, app_metadata, parse_app_type
from ccswitch.apps.common.utils import common_mcp_to_dto
from ccswitch.batch.models import BatchReport
from ccswitch.batch.service import DEFAULT_TEST_CONCURRENCY, DEFAULT_TEST_TIMEOUT
from ccswitch.context import EngineContext
from ccswitch.errors import CCSwitchError, PartialBatchFailure, ValidationError
from ccswitch.live_sync import LiveConfigSyncer
from ccswitch.models import EditableField, Provider, ProviderPatch
from ccswitch.settings import EngineSettings
from ccswitch.status import StatusService
from ccswitch.tui.renderers import ProviderConsoleUI

APP_CHOICES = [item.value for item in AppType]
FIELD_CHOICES = [item.value for item in EditableField]


class AppTypeParam(click.ParamType):
    name = "app"

    def convert(self, value: Any, param: Any, ctx: Any) -> AppType:
        if isinstance(value, AppType):
            return value
        try:
            return parse_app_type(value)
        except ValidationError:
            self.fail(
                f"{value!r} is not one of {', '.join(APP_CHOICES)}", param, ctx
            )

    def get_metavar(self, param: Any, ctx: Any = None) -> str:
        return "[" + "|".join(APP_CHOICES) + "]"


APP = AppTypeParam()


def _configure_logging() -> None:
    handler = RichHandler(
        console=Console(stderr=True), rich_tracebacks=False, markup=False
    )
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


def _settings(ctx: click.Context) -> EngineSettings:
    settings = ctx.obj.get("settings")
    if settings is None:
        settings = EngineSettings.from_env(os.environ)
        ctx.obj["settings"] = settings
    return settings


def _engine(ctx: click.Context) -> EngineContext:
    engine = ctx.obj.get("engine")
    if engine is None:
        engine = EngineContext(
            _settings(ctx), checker_factory=ctx.obj.get("checker_factory")
        )
        ctx.obj["engine"] = engine
        ctx.find_root().call_on_close(engine.close)
    return engine


def _ui(ctx: click.Context) -> ProviderConsoleUI:
    console = ctx.obj.get("console")
    return ProviderConsoleUI(console if console is not None else Console())


@contextmanager
def _user_errors() -> Iterator[None]:
    try:
        yield
    except CCSwitchError as exc:
        raise click.ClickException(str(exc)) from exc


def _finish_batch(ui: ProviderConsoleUI, report: BatchReport) -> None:
    ui.render_batch_report(report)
    try:
        report.raise_for_failures()
    except PartialBatchFailure:
        raise click.exceptions.Exit(1)


def _app_filter(apps: tuple[AppType, ...]) -> list[AppType] | None:
    return list(apps) if apps else None


def _load_mcp_file(path: Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise click.ClickException(f"Cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid MCP file {path}: {exc}") from exc
    if payload is None:
        return {}
    if isinstance(payload, dict) and isinstance(payload.get("mcpServers"), dict):
        payload = payload["mcpServers"]
    if not isinstance(payload, dict):
        raise click.ClickException(f"MCP file {path} must hold a mapping of servers")
    with _user_errors():
        return common_mcp_to_dto(payload)


def _parse_meta(pairs: tuple[str, ...]) -> dict[str, str]:
    metadata: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(
                f"expected KEY=VALUE, got {pair!r}", param_hint="--meta"
            )
        metadata[key.strip()] = value
    return metadata


def _optional(value: str | None) -> str | None:
    return value or None


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", is_flag=True, help="Log engine activity to stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Keep one active provider per AI CLI and its live config in step."""
    ctx.ensure_object(dict)
    if verbose:
        _configure_logging()


@cli.command("list", help="List saved providers.")
@click.option("--app", "apps", type=APP, multiple=True, help="Limit to an app.")
@click.option("--detail", is_flag=True, help="Show masked keys and timestamps.")
@click.pass_context
def list_command(ctx: click.Context, apps: tuple[AppType, ...], detail: bool) -> None:
    engine = _engine(ctx)
    with _user_errors():
        providers: list[Provider] = []
        current_ids: set[str] = set()
        for app_type in apps or tuple(AppType):
            providers.extend(engine.store.list(app_type))
            current = engine.store.get_current(app_type)
            if current is not None:
                current_ids.add(current)
    _ui(ctx).render_providers(providers, current_ids, detail=detail)


@cli.command("show", help="Show one provider.")
@click.argument("app", type=APP)
@click.argument("ref")
@click.pass_context
def show_command(ctx: click.Context, app: AppType, ref: str) -> None:
    engine = _engine(ctx)
    with _user_errors():
        provider = engine.store.resolve(app, ref)
        is_current = engine.store.get_current(app) == provider.id
    _ui(ctx).render_provider(provider, is_current)


@cli.command("add", help="Save a new provider; the first one for an app goes live.")
@click.argument("app", type=APP)
@click.argument("name")
@click.option("--api-key", prompt=True, hide_input=True, help="Provider API key.")
@click.option("--base-url", default=None, help="API endpoint (app default if unset).")
@click.option("--model", default=None, help="Default model.")
@click.option("--small-model", default=None, help="Fast model (claude only).")
@click.option(
    "--mcp-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSON or YAML mapping of MCP servers to carry with this provider.",
)
@click.option("--meta", multiple=True, help="Extra KEY=VALUE metadata.")
@click.option("--no-activate", is_flag=True, help="Never make it current.")
@click.pass_context
def add_command(
    ctx: click.Context,
    app: AppType,
    name: str,
    api_key: str,
    base_url: str | None,
    model: str | None,
    small_model: str | None,
    mcp_file: Path | None,
    meta: tuple[str, ...],
    no_activate: bool,
) -> None:
    engine = _engine(ctx)
    base_url = base_url or app_metadata(app).default_base_url
    if not base_url:
        raise click.UsageError(f"--base-url is required for {app.value}")

    provider = Provider(
        id="",
        app_type=app,
        name=name,
        api_key=api_key,
        base_url=base_url,
        model=_optional(model),
        small_model=_optional(small_model),
        mcp_servers=_load_mcp_file(mcp_file),
        metadata=_parse_meta(meta),
    )
    with _user_errors():
        created = engine.coordinator.add(provider, activate_if_first=not no_activate)
        is_current = engine.store.get_current(app) == created.id

    note = "Now current; live config written." if is_current else ""
    _ui(ctx).render_saved("added", created, note)


@cli.command("edit", help="Change a provider; the live config follows if current.")
@click.argument("app", type=APP)
@click.argument("ref")
@click.option("--name", default=None, help="New name.")
@click.option("--api-key", default=None, help="New API key.")
@click.option("--base-url", default=None, help="New API endpoint.")
@click.option("--model", default=None, help="New model; pass '' to clear.")
@click.option("--small-model", default=None, help="New fast model; '' clears.")
@click.pass_context
def edit_command(
    ctx: click.Context,
    app: AppType,
    ref: str,
    name: str | None,
    api_key: str | None,
    base_url: str | None,
    model: str | None,
    small_model: str | None,
) -> None:
    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = name
    if api_key is not None:
        changes["api_key"] = api_key
    if base_url is not None:
        changes["base_url"] = base_url
    if model is not None:
        changes["model"] = _optional(model)
    if small_model is not None:
        changes["small_model"] = _optional(small_model)
    patch = ProviderPatch(**changes)
    if patch.is_empty():
        raise click.UsageError("Nothing to change; pass at least one option.")

    engine = _engine(ctx)
    with _user_errors():
        provider = engine.store.resolve(app, ref)
        was_current = engine.store.get_current(app) == provider.id
        updated = engine.coordinator.edit(provider.id, patch)

    note = "Live config rewritten." if was_current else ""
    _ui(ctx).render_saved("updated", updated, note)


@cli.command("remove", help="Delete a provider. The live config is left as is.")
@click.argument("app", type=APP)
@click.argument("ref")
@click.pass_context
def remove_command(ctx: click.Context, app: AppType, ref: str) -> None:
    engine = _engine(ctx)
    with _user_errors():
        provider = engine.store.resolve(app, ref)
        was_current = engine.store.get_current(app) == provider.id
        engine.coordinator.remove(provider.id)

    note = ""
    if was_current:
        note = f"{app.value} has no current provider now; its live config is unchanged."
    _ui(ctx).render_saved("removed", provider, note)


@cli.command("switch", help="Make a provider current and write its live config.")
@click.argument("app", type=APP)
@click.argument("ref")
@click.option("--dry-run", is_flag=True, help="Show the merged file, change nothing.")
@click.pass_context
def switch_command(ctx: click.Context, app: AppType, ref: str, dry_run: bool) -> None:
    engine = _engine(ctx)
    ui = _ui(ctx)
    with _user_errors():
        provider = engine.store.resolve(app, ref)
        path = engine.syncer.config_path(app)
        if dry_run:
            ui.render_preview(provider, str(path), engine.syncer.preview(app, provider))
            return
        engine.coordinator.switch(app, provider.id)
    ui.render_switched(provider, str(path))


@cli.command("status", help="Compare current providers with live config files.")
@click.option("--app", "apps", type=APP, multiple=True, help="Limit to an app.")
@click.pass_context
def status_command(ctx: click.Context, apps: tuple[AppType, ...]) -> None:
    engine = _engine(ctx)
    with _user_errors():
        rows = StatusService(engine.store, engine.syncer).build(_app_filter(apps))
    _ui(ctx).render_status(rows)


@cli.group(help="Inspect engine configuration.")
def config() -> None:
    pass


@config.command("path", help="Show the store location and every live config file.")
@click.pass_context
def config_path_command(ctx: click.Context) -> None:
    settings = _settings(ctx)
    syncer = LiveConfigSyncer(settings.app_roots)
    live = {app_type: str(syncer.config_path(app_type)) for app_type in AppType}
    _ui(ctx).render_config_paths(str(settings.config_dir), str(settings.db_path), live)


@cli.group(help="Operate on many providers at once.")
def batch() -> None:
    pass


@batch.command("switch", help="Switch several apps in one go.")
@click.argument("ref", required=False)
@click.option("--app", "apps", type=APP, multiple=True, help="Apps to switch.")
@click.option(
    "--pick",
    "picks",
    multiple=True,
    metavar="APP=REF",
    help="Switch APP to REF; repeat for more apps.",
)
@click.pass_context
def batch_switch_command(
    ctx: click.Context,
    ref: str | None,
    apps: tuple[AppType, ...],
    picks: tuple[str, ...],
) -> None:
    if ref is None and not picks:
        raise click.UsageError("Give a REF to switch every app, or use --pick.")
    if ref is not None and picks:
        raise click.UsageError("REF and --pick cannot be combined.")

    engine = _engine(ctx)
    if ref is not None:
        report = engine.batch.switch_all(ref, _app_filter(apps))
    else:
        selection: dict[AppType, str] = {}
        for pick in picks:
            raw_app, sep, pick_ref = pick.partition("=")
            if not sep or not pick_ref:
                raise click.BadParameter(
                    f"expected APP=REF, got {pick!r}", param_hint="--pick"
                )
            selection[APP.convert(raw_app, None, ctx)] = pick_ref
        report = engine.batch.batch_switch(selection)
    _finish_batch(_ui(ctx), report)


@batch.command("test", help="Check that provider keys are accepted by their APIs.")
@click.option("--app", "apps", type=APP, multiple=True, help="Limit to an app.")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_TEST_TIMEOUT,
    show_default=True,
    help="Seconds allowed per provider.",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=DEFAULT_TEST_CONCURRENCY,
    show_default=True,
    help="Checks in flight at once.",
)
@click.pass_context
def batch_test_command(
    ctx: click.Context,
    apps: tuple[AppType, ...],
    timeout: float,
    concurrency: int,
) -> None:
    engine = _engine(ctx)
    with _user_errors():
        report = engine.batch.batch_test(
            _app_filter(apps), timeout=timeout, concurrency=concurrency
        )
    _finish_batch(_ui(ctx), report)


@batch.command("sync", help="Copy one app's providers into other apps.")
@click.option("--from", "source", type=APP, required=True, help="Source app.")
@click.option("--to", "targets", type=APP, multiple=True, required=True)
@click.option("--overwrite", is_flag=True, help="Replace same-named providers.")
@click.pass_context
def batch_sync_command(
    ctx: click.Context,
    source: AppType,
    targets: tuple[AppType, ...],
    overwrite: bool,
) -> None:
    engine = _engine(ctx)
    with _user_errors():
        report = engine.batch.batch_sync(source, targets, overwrite=overwrite)
    _finish_batch(_ui(ctx), report)


@batch.command("edit", help="Set one field on many providers. '' clears a model.")
@click.argument("field", type=click.Choice(FIELD_CHOICES, case_sensitive=False))
@click.argument("value")
@click.option("--app", "apps", type=APP, multiple=True, help="Limit to an app.")
@click.option("--pattern", default=None, help="Only names containing this text.")
@click.pass_context
def batch_edit_command(
    ctx: click.Context,
    field: str,
    value: str,
    apps: tuple[AppType, ...],
    pattern: str | None,
) -> None:
    engine = _engine(ctx)
    with _user_errors():
        report = engine.batch.batch_edit(
            field, _optional(value), app_types=_app_filter(apps), pattern=pattern
        )
    _finish_batch(_ui(ctx), report)


@batch.command("remove", help="Delete providers by id or name.")
@click.argument("refs", nargs=-1, required=True)
@click.option("--app", "apps", type=APP, multiple=True, help="Limit to an app.")
@click.pass_context
def batch_remove_command(
    ctx: click.Context, refs: tuple[str, ...], apps: tuple[AppType, ...]
) -> None:
    engine = _engine(ctx)
    with _user_errors():
        report = engine.batch.batch_remove(list(refs), _app_filter(apps))
    _finish_batch(_ui(ctx), report)


@batch.command("export", help="Write providers to a portable YAML document.")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--app", "apps", type=APP, multiple=True, help="Limit to an app.")
@click.pass_context
def batch_export_command(
    ctx: click.Context, path: Path, apps: tuple[AppType, ...]
) -> None:
    engine = _engine(ctx)
    with _user_errors():
        count = engine.batch.export(path, _app_filter(apps))
    _ui(ctx).render_exported(count, str(path))


@batch.command("import", help="Load providers from an exported document.")
@click.argument("path", type=click.Path(dir_okay=False, exists=True, path_type=Path))
@click.option("--overwrite", is_flag=True, help="Replace same-named providers.")
@click.option("--new-ids", is_flag=True, help="Ignore ids stored in the document.")
@click.pass_context
def batch_import_command(
    ctx: click.Context, path: Path, overwrite: bool, new_ids: bool
) -> None:
    engine = _engine(ctx)
    with _user_errors():
        report = engine.batch.import_(
            path, overwrite=overwrite, preserve_ids=not new_ids
        )
    _finish_batch(_ui(ctx), report)


def main() -> int:
    try:
        cli(standalone_mode=False)
    except click.exceptions.Exit as exc:
        code = exc.exit_code
        return code if isinstance(code, int) else 1
    except click.ClickException as exc:
        exc.show()
        return 2
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
