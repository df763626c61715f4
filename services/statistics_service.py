from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict

from models.outcome import CycleReport, Outcome

LOGGER = logging.getLogger(__name__)


class StatisticsService:
    """Very small JSON-backed stats store."""

    def __init__(self, stats_file: Path):
        self._stats_file = stats_file
        self._stats_file.parent.mkdir(parents=True, exist_ok=True)
        self._stats_file.touch(exist_ok=True)
        if not self._stats_file.read_text(encoding="utf-8").strip():
            self._stats_file.write_text(json.dumps({}), encoding="utf-8")

    def _read(self) -> Dict:
        try:
            return json.loads(self._stats_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            LOGGER.warning("Stats file was corrupt, resetting %s", self._stats_file)
            self._stats_file.write_text(json.dumps({}), encoding="utf-8")
            return {}

    def _write(self, payload: Dict) -> None:
        self._stats_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def record_cycle(self, report: CycleReport) -> None:
        stats = self._read()
        stats["cycles"] = stats.get("cycles", 0) + 1
        stats["emails_seen"] = stats.get("emails_seen", 0) + len(report.results)
        stats["replies_sent"] = stats.get("replies_sent", 0) + report.sent
        stats["already_replied"] = stats.get("already_replied", 0) + report.count(Outcome.ALREADY_REPLIED)
        stats["failures"] = stats.get("failures", 0) + report.failures
        if report.error:
            stats["cycle_errors"] = stats.get("cycle_errors", 0) + 1
            stats["last_error"] = report.error
        stats["last_cycle"] = report.started_at.isoformat()
        self._write(stats)

    def snapshot(self) -> Dict:
        return self._read()
