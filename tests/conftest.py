import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Iterator

from click.testing import CliRunner
import pytest


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()

from ccswitch.apps.app_id import APP_CATALOG, AppType  # noqa: E402
from ccswitch.context import EngineContext  # noqa: E402
from ccswitch.liveness import LivenessResult  # noqa: E402
from ccswitch.models import Provider  # noqa: E402
from ccswitch.settings import EngineSettings  # noqa: E402
from ccswitch.store.sqlite import SQLiteProviderStore  # noqa: E402

TEST_API_KEY = "sk-test-abcdefgh12345678"


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("CCSWITCH_CONFIG_DIR", raising=False)
    for metadata in APP_CATALOG.values():
        monkeypatch.delenv(metadata.config_dir_env, raising=False)
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture
def write_json():
    def _write(path: Path, payload: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")

    return _write


@pytest.fixture
def read_json():
    def _read(path: Path) -> Any:
        return json.loads(path.read_text(encoding="utf-8"))

    return _read


@pytest.fixture
def settings(tmp_path: Path) -> EngineSettings:
    return EngineSettings.for_home(tmp_path)


@pytest.fixture
def store(settings: EngineSettings) -> Iterator[SQLiteProviderStore]:
    provider_store = SQLiteProviderStore(settings.db_path)
    yield provider_store
    provider_store.close()


class FakeChecker:
    """Liveness checker answering from an api key -> result table."""

    def __init__(self, outcomes: dict[str, Any], delay: float = 0.0) -> None:
        self.outcomes = outcomes
        self.delay = delay
        self.calls: list[str] = []

    async def check(self, base_url: str, api_key: str) -> LivenessResult:
        self.calls.append(api_key)
        outcome = self.outcomes.get(api_key, LivenessResult(ok=True, latency_ms=1.0))
        if isinstance(outcome, BaseException):
            raise outcome
        if self.delay:
            await asyncio.sleep(self.delay)
        return outcome


@pytest.fixture
def fake_checker() -> FakeChecker:
    return FakeChecker({})


@pytest.fixture
def engine(
    settings: EngineSettings,
    store: SQLiteProviderStore,
    fake_checker: FakeChecker,
) -> EngineContext:
    return EngineContext(
        settings, store=store, checker_factory=lambda app_type: fake_checker
    )


@pytest.fixture
def make_provider():
    def _make(
        app_type: AppType = AppType.CLAUDE, name: str = "fast-api", **overrides: Any
    ) -> Provider:
        values: dict[str, Any] = {
            "id": "",
            "app_type": app_type,
            "name": name,
            "api_key": TEST_API_KEY,
            "base_url": "https://api.example.com",
            "model": None,
            "small_model": None,
        }
        values.update(overrides)
        return Provider(**values)

    return _make


@pytest.fixture
def cli_runner(tmp_path: Path) -> CliRunner:
    class HomeCliRunner(CliRunner):
        def invoke(  # type: ignore[override]
            self, cli: Any, args: Any = None, **kwargs: Any
        ):
            env = dict(kwargs.pop("env", {}) or {})
            env.setdefault("HOME", str(tmp_path))
            kwargs["env"] = env
            return super().invoke(cli, args=args, **kwargs)

    return HomeCliRunner()
