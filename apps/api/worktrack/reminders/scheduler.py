from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from worktrack.db import SessionLocal
from worktrack.reminders.service import ScanResult, build_scanner

logger = logging.getLogger(__name__)

ScanFn = Callable[[], Awaitable[ScanResult]]
SleepFn = Callable[[float], Awaitable[None]]


async def run_reminder_scan() -> ScanResult:
  async with SessionLocal() as db:
    return await build_scanner(db).scan_once()


class ReminderScheduler:
  """
  Runs the reminder scan once shortly after start, then on a fixed interval.

  Periodic and manual passes share one lock, so they never overlap within a
  process. A failing pass is logged and the next tick retries.
  """

  def __init__(
    self,
    scan: ScanFn = run_reminder_scan,
    *,
    interval_seconds: float = 3600,
    startup_delay_seconds: float = 5,
    sleep: SleepFn = asyncio.sleep,
  ) -> None:
    self._scan = scan
    self.interval_seconds = max(1.0, float(interval_seconds))
    self.startup_delay_seconds = max(0.0, float(startup_delay_seconds))
    self._sleep = sleep
    self._lock = asyncio.Lock()
    self._task: asyncio.Task | None = None
    self.last_result: ScanResult | None = None

  @property
  def running(self) -> bool:
    return self._task is not None and not self._task.done()

  def start(self) -> None:
    if self.running:
      logger.info("Reminder scheduler already running, skipping start")
      return
    self._task = asyncio.create_task(self._loop(), name="reminder-scheduler")
    logger.info("Reminder scheduler started: every %ss, first pass in %ss", self.interval_seconds, self.startup_delay_seconds)

  async def stop(self) -> None:
    task = self._task
    self._task = None
    if task is None or task.done():
      return
    task.cancel()
    try:
      await task
    except asyncio.CancelledError:
      pass
    logger.info("Reminder scheduler stopped")

  async def trigger_once(self) -> ScanResult:
    async with self._lock:
      result = await self._scan()
    self.last_result = result
    logger.info("Reminder check complete: %s", result)
    return result

  async def _tick(self) -> None:
    try:
      await self.trigger_once()
    except Exception:
      logger.exception("Reminder scan failed; will retry on next interval")

  async def _loop(self) -> None:
    await self._sleep(self.startup_delay_seconds)
    while True:
      await self._tick()
      await self._sleep(self.interval_seconds)
