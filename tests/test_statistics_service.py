from __future__ import annotations

from datetime import datetime, timezone

from models.outcome import CycleReport, MessageResult, Outcome, Stage
from services.statistics_service import StatisticsService


def test_cycles_accumulate(tmp_path):
    stats = StatisticsService(tmp_path / "stats.json")
    started = datetime(2026, 7, 1, 9, 30, tzinfo=timezone.utc)
    stats.record_cycle(
        CycleReport(
            started_at=started,
            results=[
                MessageResult("a", Outcome.REPLIED, recipient="a@x.com", sent=True),
                MessageResult("b", Outcome.ALREADY_REPLIED),
                MessageResult("c", Outcome.FAILED, recipient="c@x.com", stage=Stage.LABEL, error="modify failed", sent=True),
            ],
        )
    )
    stats.record_cycle(CycleReport(started_at=started, error="list failed: boom"))

    snapshot = stats.snapshot()
    assert snapshot["cycles"] == 2
    assert snapshot["emails_seen"] == 3
    assert snapshot["replies_sent"] == 2
    assert snapshot["already_replied"] == 1
    assert snapshot["failures"] == 1
    assert snapshot["cycle_errors"] == 1
    assert snapshot["last_cycle"] == started.isoformat()


def test_corrupt_stats_file_is_reset(tmp_path):
    path = tmp_path / "stats.json"
    path.write_text("{oops", encoding="utf-8")
    assert StatisticsService(path).snapshot() == {}
