"""
Crypto Pulse — Refresh Scheduler
═══════════════════════════════════════════════════════════════════════

One cycle every CRON_INTERVAL_S (60s), first one CRON_WARMUP_S (3s)
after start. At most one cycle runs at a time: a trigger that lands
while a cycle is in flight is dropped, not queued.

─────────────────────────────────────────────────────────────────────
CYCLE
─────────────────────────────────────────────────────────────────────

  PHASE A   (concurrent, settled)
         ├─ exchange depth     every tracked asset
         └─ strategy metrics   simulated drift

  PHASE B   (concurrent, settled, starts after A settles)
         ├─ AI predictions     every tracked asset, 1H
         └─ news predictions   one batch

  CLEANUP   predictions older than 12h

A failed task never cancels its siblings and never stops the next
phase. Anything escaping the whole cycle lands in state.last_error.
"""

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from pulse_engine import config

log = logging.getLogger("cp.scheduler")

GRACE_S = 30   # misfire grace window for the interval job


@dataclass
class SchedulerState:
    running:               bool = False
    cycles_run:            int = 0
    cycles_skipped:        int = 0
    last_cycle_started:    Optional[str] = None
    last_cycle_duration_s: Optional[float] = None
    last_error:            Optional[str] = None

    def try_begin(self) -> bool:
        """Check-and-set with no await in between, atomic on one event loop."""
        if self.running:
            self.cycles_skipped += 1
            return False
        self.running = True
        self.last_cycle_started = datetime.now(timezone.utc).isoformat()
        return True

    def end(self, duration_s: float):
        self.running = False
        self.cycles_run += 1
        self.last_cycle_duration_s = duration_s


class RefreshScheduler:

    def __init__(self, tasks, interval_s: float = config.CRON_INTERVAL_S,
                 warmup_delay_s: float = config.CRON_WARMUP_S):
        self.tasks          = tasks
        self.interval_s     = interval_s
        self.warmup_delay_s = warmup_delay_s
        self.state          = SchedulerState()
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._background: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    # ── Lifecycle ────────────────────────────────────────────

    def start(self):
        if self._scheduler is not None:
            log.warning("Scheduler already running — ignoring start call")
            return

        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._scheduler.add_job(
            self.run_cycle,
            "interval",
            seconds            = self.interval_s,
            id                 = "refresh_cycle",
            name               = "Refresh cycle",
            max_instances      = 1,
            coalesce           = True,
            misfire_grace_time = GRACE_S,
            replace_existing   = True,
        )
        self._scheduler.add_job(
            self.run_cycle,
            "date",
            run_date         = datetime.now(timezone.utc) + timedelta(seconds=self.warmup_delay_s),
            kwargs           = {"reason": "warmup"},
            id               = "warmup_cycle",
            name             = "Warm-up cycle",
            replace_existing = True,
        )
        self._scheduler.start()
        log.info(f"Scheduler live — every {self.interval_s}s, first cycle in {self.warmup_delay_s}s")

    def stop(self):
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        log.info("Scheduler stopped")

    # ── Cycle ────────────────────────────────────────────────

    async def _phase(self, name: str, *coros) -> list:
        results = await asyncio.gather(*coros, return_exceptions=True)
        for r in results:
            if isinstance(r, BaseException):
                log.error(f"[phase {name}] task failed: {r}")
        return results

    async def run_cycle(self, reason: str = "interval") -> bool:
        if not self.state.try_begin():
            log.info(f"[{reason}] Cycle already in flight — trigger dropped")
            return False

        log.info(f"[{reason}] Cycle starting")
        t0 = time.monotonic()
        try:
            await self._phase("A",
                              self.tasks.refresh_exchange_depth(),
                              self.tasks.update_strategy_metrics())
            await self._phase("B",
                              self.tasks.refresh_ai_predictions(),
                              self.tasks.refresh_news_predictions())
            await self.tasks.clean_old_data()
            self.state.last_error = None
        except Exception as e:
            log.error(f"[{reason}] Cycle failed: {e}")
            self.state.last_error = str(e)
        finally:
            elapsed = round(time.monotonic() - t0, 1)
            self.state.end(elapsed)
        log.info(f"[{reason}] Cycle done — {elapsed}s")
        return True

    def trigger_now(self) -> dict:
        """Out-of-band cycle. Same guard as the interval job."""
        if self.state.running:
            self.state.cycles_skipped += 1
            return {"triggered": False, "reason": "cycle in flight"}
        task = asyncio.create_task(self.run_cycle("manual"))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return {"triggered": True}

    def status(self) -> dict:
        jobs = []
        if self._scheduler is not None:
            for job in self._scheduler.get_jobs():
                nxt = job.next_run_time
                jobs.append({
                    "id":       job.id,
                    "name":     job.name,
                    "next_run": nxt.isoformat() if nxt else None,
                })
        return {
            "scheduler_running": self.is_running,
            "interval_s":        self.interval_s,
            **asdict(self.state),
            "jobs":              jobs,
        }


# ─────────────────────────────────────────────────────────────
# PROCESS-WIDE CONTROL
# ─────────────────────────────────────────────────────────────

_scheduler: Optional[RefreshScheduler] = None


def start_cron_jobs(tasks, interval_s: Optional[float] = None,
                    warmup_delay_s: Optional[float] = None) -> RefreshScheduler:
    global _scheduler
    if _scheduler is not None and _scheduler.is_running:
        log.warning("Cron jobs already started — ignoring start call")
        return _scheduler

    _scheduler = RefreshScheduler(
        tasks,
        interval_s     = interval_s if interval_s is not None else config.CRON_INTERVAL_S,
        warmup_delay_s = warmup_delay_s if warmup_delay_s is not None else config.CRON_WARMUP_S,
    )
    _scheduler.start()
    return _scheduler


def stop_cron_jobs():
    global _scheduler
    if _scheduler is not None:
        _scheduler.stop()
        _scheduler = None
