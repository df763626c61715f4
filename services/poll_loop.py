from __future__ import annotations

import logging
import random
import threading
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

import schedule

from models.outcome import CycleReport
from services.errors import AuthorizationError, CredentialError, GmailError
from services.gmail_service import GmailService
from services.responder import AutoResponder

LOGGER = logging.getLogger(__name__)
JOB_TAG = "poll"
DEFAULT_MIN_MS = 45_000
DEFAULT_MAX_MS = 120_000


def random_interval_ms(
    min_ms: int = DEFAULT_MIN_MS,
    max_ms: int = DEFAULT_MAX_MS,
    rng: random.Random | None = None,
) -> int:
    """Uniformly pick a delay in ``[min_ms, max_ms]`` milliseconds, both ends inclusive."""

    return (rng or random).randint(min_ms, max_ms)


class PollLoop:
    """Poll the inbox on a randomized timer until :meth:`stop` is called.

    Each cycle authenticates through ``connect``, lists unread inbox messages
    and hands them one at a time to the responder built for that connection.
    The next cycle is only put on the scheduler once the current one has
    returned, so two cycles never overlap.
    """

    def __init__(
        self,
        connect: Callable[[], GmailService],
        build_responder: Callable[[GmailService], AutoResponder],
        interval: Callable[[], int] | None = None,
        on_cycle: Iterable[Callable[[CycleReport], None]] = (),
        scheduler: Optional[schedule.Scheduler] = None,
        tick: float = 1.0,
    ):
        self._connect = connect
        self._build_responder = build_responder
        self._interval = interval or random_interval_ms
        self._on_cycle = list(on_cycle)
        self._scheduler = scheduler or schedule.Scheduler()
        self._tick = tick
        self._stop = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    def run_cycle(self) -> CycleReport:
        report = CycleReport(started_at=datetime.now(timezone.utc))
        try:
            gmail = self._connect()
            message_ids = gmail.list_unread_ids()
        except (CredentialError, AuthorizationError, GmailError) as exc:
            LOGGER.error("Poll cycle skipped: %s", exc)
            report.error = str(exc)
            self._notify(report)
            return report

        if message_ids:
            LOGGER.info("New emails found: %s", len(message_ids))
            responder = self._build_responder(gmail)
            for message_id in message_ids:
                report.results.append(responder.process(message_id))
        else:
            LOGGER.info("No new emails found.")

        LOGGER.info(
            "Cycle finished: %s replied, %s failed, %s inspected",
            report.replied,
            report.failures,
            len(report.results),
        )
        self._notify(report)
        return report

    def run_forever(self, run_immediately: bool = True) -> None:
        LOGGER.info("Auto-responder started")
        if run_immediately:
            self._guarded_cycle()
        if not self.stopped:
            self._schedule_next()
        while not self.stopped:
            self._scheduler.run_pending()
            self._stop.wait(self._tick)
        self._scheduler.clear(JOB_TAG)
        LOGGER.info("Auto-responder stopped")

    def _schedule_next(self) -> int:
        delay_ms = self._interval()
        self._scheduler.every(delay_ms / 1000).seconds.do(self._scheduled_cycle).tag(JOB_TAG)
        LOGGER.debug("Next poll in %.1f seconds", delay_ms / 1000)
        return delay_ms

    def _scheduled_cycle(self):
        try:
            self._guarded_cycle()
        finally:
            if not self.stopped:
                self._schedule_next()
        return schedule.CancelJob

    def _guarded_cycle(self) -> Optional[CycleReport]:
        try:
            return self.run_cycle()
        except Exception:  # noqa: BLE001 - the daemon outlives any single cycle
            LOGGER.exception("Unexpected error during poll cycle")
            return None

    def _notify(self, report: CycleReport) -> None:
        for callback in self._on_cycle:
            callback(report)
