from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from ccswitch.apps.app_id import APP_CATALOG, AppType

CONFIG_DIR_ENV = "CCSWITCH_CONFIG_DIR"
XDG_CONFIG_HOME_ENV = "XDG_CONFIG_HOME"
XDG_DIRNAME = "cc-switch"
DEFAULT_DIRNAME = ".cc-switch"
DB_FILENAME = "ccswitch.db"


@dataclass(frozen=True)
class EngineSettings:
    config_dir: Path
    app_roots: Mapping[AppType, Path] = field(default_factory=dict)

    @property
    def db_path(self) -> Path:
        return self.config_dir / DB_FILENAME

    def app_root(self, app_type: AppType) -> Path:
        return self.app_roots[app_type]

    @classmethod
    def for_home(cls, home: Path, config_dir: Path | None = None) -> "EngineSettings":
        return cls(
            config_dir=config_dir or home / DEFAULT_DIRNAME,
            app_roots={
                app_type: metadata.default_root_for(home)
                for app_type, metadata in APP_CATALOG.items()
            },
        )

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str], home: Path | None = None
    ) -> "EngineSettings":
        """Resolve settings the way the CLI sees the process environment.

        ``CCSWITCH_CONFIG_DIR`` wins over ``XDG_CONFIG_HOME``; each app's live
        config directory can be moved with its own variable.
        """
        home = home or Path.home()

        override = _env_path(environ, CONFIG_DIR_ENV)
        xdg = _env_path(environ, XDG_CONFIG_HOME_ENV)
        if override is not None:
            config_dir = override
        elif xdg is not None:
            config_dir = xdg / XDG_DIRNAME
        else:
            config_dir = home / DEFAULT_DIRNAME

        app_roots: dict[AppType, Path] = {}
        for app_type, metadata in APP_CATALOG.items():
            app_roots[app_type] = _env_path(
                environ, metadata.config_dir_env
            ) or metadata.default_root_for(home)
        return cls(config_dir=config_dir, app_roots=app_roots)


def _env_path(environ: Mapping[str, str], name: str) -> Path | None:
    value = environ.get(name, "").strip()
    if not value:
        return None
    return Path(value).expanduser()
