import asyncio
import time

import pytest

from ccswitch.apps.app_id import AppType
from ccswitch.batch.models import BatchOperation, ItemStatus
from ccswitch.errors import LivenessCheckFailed, PartialBatchFailure, ValidationError
from ccswitch.liveness import LivenessResult


def _statuses(report) -> list[tuple[str, ItemStatus]]:
    return [(item.label, item.status) for item in report.items]


# --- batch switch ---


def test_batch_switch_reports_each_app(engine, make_provider) -> None:
    engine.coordinator.add(make_provider(AppType.CLAUDE, "old"))
    engine.coordinator.add(make_provider(AppType.CLAUDE, "fast-api"))
    engine.coordinator.add(make_provider(AppType.CODEX, "fast-api"))

    report = engine.batch.switch_all("fast-api", [AppType.CLAUDE, AppType.CODEX])

    assert report.operation == BatchOperation.SWITCH
    assert report.ok
    assert engine.store.current_provider(AppType.CLAUDE).name == "fast-api"
    assert engine.store.current_provider(AppType.CODEX).name == "fast-api"


def test_batch_switch_failure_does_not_stop_other_apps(engine, make_provider):
    engine.coordinator.add(make_provider(AppType.CODEX, "fast-api"))

    report = engine.batch.batch_switch(
        {AppType.CLAUDE: "missing", AppType.CODEX: "fast-api"}
    )

    assert _statuses(report) == [
        ("claude/missing", ItemStatus.FAILED),
        ("codex/fast-api", ItemStatus.SUCCEEDED),
    ]
    with pytest.raises(PartialBatchFailure, match="1 of 2"):
        report.raise_for_failures()


# --- batch test ---


def test_batch_test_records_each_outcome(engine, fake_checker, make_provider):
    engine.coordinator.add(make_provider(AppType.CLAUDE, "good", api_key="good-key"))
    engine.coordinator.add(make_provider(AppType.CLAUDE, "bad", api_key="bad-key"))
    engine.coordinator.add(make_provider(AppType.GEMINI, "boom", api_key="boom-key"))
    fake_checker.outcomes.update(
        {
            "good-key": LivenessResult(ok=True, latency_ms=12.5),
            "bad-key": LivenessResult(
                ok=False, latency_ms=3.0, error="API key rejected"
            ),
            "boom-key": LivenessCheckFailed("connection refused"),
        }
    )

    report = engine.batch.batch_test()

    assert report.operation == BatchOperation.TEST
    assert _statuses(report) == [
        ("claude/good", ItemStatus.SUCCEEDED),
        ("claude/bad", ItemStatus.FAILED),
        ("gemini/boom", ItemStatus.FAILED),
    ]
    assert report.items[0].latency_ms == 12.5
    assert report.items[1].detail == "API key rejected"
    assert report.items[2].detail == "connection refused"


def test_batch_test_times_out_slow_checks(engine, fake_checker, make_provider):
    engine.coordinator.add(make_provider(AppType.CLAUDE, "slow"))
    fake_checker.delay = 5.0

    started = time.perf_counter()
    report = engine.batch.batch_test(timeout=0.1)
    elapsed = time.perf_counter() - started

    assert elapsed < 2.0
    assert report.items[0].status == ItemStatus.FAILED
    assert "timed out" in report.items[0].detail


def test_batch_test_runs_checks_concurrently(engine, fake_checker, make_provider):
    for index in range(4):
        engine.coordinator.add(make_provider(AppType.CLAUDE, f"p{index}"))
    fake_checker.delay = 0.3

    started = time.perf_counter()
    report = engine.batch.batch_test(concurrency=4, timeout=5.0)
    elapsed = time.perf_counter() - started

    assert report.succeeded == 4
    assert elapsed < 1.0


def test_batch_test_validates_limits(engine) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(engine.batch.batch_test_async(timeout=0))
    with pytest.raises(ValidationError):
        engine.batch.batch_test(concurrency=0)


# --- batch sync ---


def test_batch_sync_copies_providers_without_activating(engine, make_provider):
    engine.coordinator.add(make_provider(AppType.CLAUDE, "relay", small_model="haiku"))

    report = engine.batch.batch_sync(AppType.CLAUDE, [AppType.CODEX, AppType.CLAUDE])

    assert _statuses(report) == [
        ("codex/relay", ItemStatus.SUCCEEDED),
        ("claude/*", ItemStatus.SKIPPED),
    ]
    assert "dropped small_model" in report.items[0].detail
    copied = engine.store.find_by_name(AppType.CODEX, "relay")
    assert copied.small_model is None
    assert engine.store.get_current(AppType.CODEX) is None


def test_batch_sync_skips_or_overwrites_existing_names(engine, make_provider):
    engine.coordinator.add(make_provider(AppType.CLAUDE, "relay", model="opus"))
    engine.coordinator.add(make_provider(AppType.GEMINI, "relay", model="old"))

    skipped = engine.batch.batch_sync(AppType.CLAUDE, [AppType.GEMINI])
    assert _statuses(skipped) == [("gemini/relay", ItemStatus.SKIPPED)]
    assert engine.store.find_by_name(AppType.GEMINI, "relay").model == "old"

    overwritten = engine.batch.batch_sync(
        AppType.CLAUDE, [AppType.GEMINI], overwrite=True
    )
    assert _statuses(overwritten) == [("gemini/relay", ItemStatus.SUCCEEDED)]
    assert engine.store.find_by_name(AppType.GEMINI, "relay").model == "opus"


# --- batch edit ---


def test_batch_edit_sets_field_on_matching_providers(engine, make_provider) -> None:
    engine.coordinator.add(make_provider(AppType.CLAUDE, "team-a"))
    engine.coordinator.add(make_provider(AppType.CLAUDE, "personal"))
    engine.coordinator.add(make_provider(AppType.CODEX, "team-b"))

    report = engine.batch.batch_edit(
        "base_url", "https://gateway.example.com", pattern="TEAM"
    )

    assert _statuses(report) == [
        ("claude/team-a", ItemStatus.SUCCEEDED),
        ("codex/team-b", ItemStatus.SUCCEEDED),
    ]
    assert (
        engine.store.find_by_name(AppType.CLAUDE, "personal").base_url
        == "https://api.example.com"
    )
    live = engine.syncer.read_current(AppType.CLAUDE)
    assert live.base_url == "https://gateway.example.com"


def test_batch_edit_skips_apps_without_small_model(engine, make_provider) -> None:
    engine.coordinator.add(make_provider(AppType.CLAUDE, "a"))
    engine.coordinator.add(make_provider(AppType.GEMINI, "b"))

    report = engine.batch.batch_edit("small-model", "haiku")

    assert _statuses(report) == [
        ("claude/a", ItemStatus.SUCCEEDED),
        ("gemini/b", ItemStatus.SKIPPED),
    ]


def test_batch_edit_rejects_unknown_field(engine) -> None:
    with pytest.raises(ValidationError):
        engine.batch.batch_edit("name", "x")


def test_batch_edit_records_invalid_value_per_item(engine, make_provider) -> None:
    engine.coordinator.add(make_provider(AppType.CLAUDE, "a"))

    report = engine.batch.batch_edit("base_url", "not-a-url")

    assert report.failed == 1
    assert report.failures() == [report.items[0]]
    assert "http" in report.items[0].detail


# --- batch remove ---


def test_batch_remove_reports_unknown_refs(engine, make_provider) -> None:
    engine.coordinator.add(make_provider(AppType.CLAUDE, "gone"))
    engine.coordinator.add(make_provider(AppType.CODEX, "gone"))

    report = engine.batch.batch_remove(["gone", "never"])

    assert _statuses(report) == [
        ("claude/gone", ItemStatus.SUCCEEDED),
        ("codex/gone", ItemStatus.SUCCEEDED),
        ("never", ItemStatus.FAILED),
    ]
    assert engine.store.count() == 0
