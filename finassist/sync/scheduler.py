"""Mini README: Periodic background synchronisation.

Structure:
    * BackgroundSync - interval job on an APScheduler background scheduler
      that nudges a data manager to sync.

Each tick calls ``sync_with_server`` only when the manager is online and not
already mid-sync. The guard is the manager's boolean flag, not a lock, so a
tick that lands between another caller's check and its flag update can
still start a second sync.
"""

from __future__ import annotations

from typing import Any, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

SYNC_JOB_ID = "background_sync"


class BackgroundSync:
    """Run ``manager.sync_with_server`` every ``interval`` seconds."""

    def __init__(
        self,
        manager: Any,
        interval: float = 60.0,
        scheduler: Optional[BackgroundScheduler] = None,
    ) -> None:
        self.manager = manager
        self.interval = interval
        self.scheduler = scheduler or BackgroundScheduler(daemon=True)

    @property
    def running(self) -> bool:
        return self.scheduler.running and self.scheduler.get_job(SYNC_JOB_ID) is not None

    def tick(self) -> bool:
        """Attempt one sync; return whether it was started."""

        if self.manager.offline or self.manager.sync_in_progress:
            LOGGER.debug("Skipping background sync (offline=%s, busy=%s)", self.manager.offline, self.manager.sync_in_progress)
            return False
        self.manager.sync_with_server()
        return True

    def start(self) -> None:
        if self.running:
            return
        self.scheduler.add_job(
            self.tick,
            "interval",
            seconds=self.interval,
            id=SYNC_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        LOGGER.info("Background sync started every %.0f seconds", self.interval)

    def stop(self) -> None:
        if not self.scheduler.running:
            return
        if self.scheduler.get_job(SYNC_JOB_ID) is not None:
            self.scheduler.remove_job(SYNC_JOB_ID)
        self.scheduler.shutdown(wait=False)
        LOGGER.info("Background sync stopped")
