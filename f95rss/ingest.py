"""
Ingestion cycle: fetch once, normalize every entry, upsert every good record.

Failures are contained at the narrowest scope that makes sense:
- FetchError ends the cycle; records are untouched.
- ParseError skips that entry.
- StoreError rolls back that record's transaction and skips it.
Records committed before a failure stay committed.
"""

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

import structlog

from f95rss.exceptions import FetchError, StoreError
from f95rss.metrics import (
    ACTIVE_CYCLES,
    ingest_cycle_duration_seconds,
    ingest_cycles_total,
    ingest_entries_total,
)
from f95rss.normalizer import normalize_all
from f95rss.utils import now_utc

logger = structlog.get_logger("ingest")


@dataclass
class CycleReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    fetched: int = 0
    committed: List[int] = field(default_factory=list)
    parse_failures: List[Tuple[int, str]] = field(default_factory=list)
    store_failures: List[Tuple[int, str]] = field(default_factory=list)
    fetch_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.fetch_error is None and not self.parse_failures and not self.store_failures

    def to_dict(self):
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "fetched": self.fetched,
            "committed": len(self.committed),
            "parse_failures": len(self.parse_failures),
            "store_failures": len(self.store_failures),
            "fetch_error": self.fetch_error,
        }


class IngestionService:
    """Runs ingestion cycles against one source and one store, one at a time"""

    def __init__(self, source, store, clock=now_utc):
        self.source = source
        self.store = store
        self.clock = clock
        self._lock = threading.Lock()
        self.last_report: Optional[CycleReport] = None

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def run_cycle(self) -> Optional[CycleReport]:
        """Run one cycle, or return None if a cycle is already in progress"""
        if not self._lock.acquire(blocking=False):
            logger.info("Ingestion cycle already in progress, skipping this firing.")
            ingest_cycles_total.labels(status="skipped").inc()
            return None

        start = time.monotonic()
        ACTIVE_CYCLES.inc()
        try:
            report = self._cycle()
        finally:
            ACTIVE_CYCLES.dec()
            ingest_cycle_duration_seconds.observe(time.monotonic() - start)
            self._lock.release()

        self.last_report = report
        return report

    def _cycle(self) -> CycleReport:
        report = CycleReport(started_at=self.clock())
        logger.info("Starting ingestion cycle...")

        try:
            raws = self.source.fetch()
        except FetchError as e:
            report.fetch_error = e.message
            report.finished_at = self.clock()
            ingest_cycles_total.labels(status="fetch_error").inc()
            logger.error("Ingestion cycle aborted", reason=e.message)
            return report

        report.fetched = len(raws)
        for result in normalize_all(raws):
            if not result.ok:
                report.parse_failures.append((result.index, result.error.message))
                ingest_entries_total.labels(status="parse_error").inc()
                continue

            record = result.record
            try:
                self.store.upsert_game(record, now=self.clock())
            except StoreError as e:
                report.store_failures.append((record.id, e.message))
                ingest_entries_total.labels(status="store_error").inc()
                continue

            report.committed.append(record.id)
            ingest_entries_total.labels(status="committed").inc()

        report.finished_at = self.clock()
        ingest_cycles_total.labels(status="completed").inc()
        logger.info(
            "Ingestion cycle completed",
            fetched=report.fetched,
            committed=len(report.committed),
            parse_failures=len(report.parse_failures),
            store_failures=len(report.store_failures),
        )
        return report
