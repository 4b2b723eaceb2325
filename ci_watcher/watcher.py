"""
Watches one service repository for new commits on its tracked branch.

Every cycle the local and remote hashes of the branch are listed again and
compared. Any difference, including a side that could not be read and came
back empty, counts as a change and starts a job.
"""

import logging
import threading
import time
from typing import Optional

from ci_watcher import config, helpers, revision
from ci_watcher.config import ServiceConfig
from ci_watcher.job_runner import JobResult, JobRunner
from ci_watcher.notifier import Notifier

logger = logging.getLogger(__name__)


class Watcher:
    """Polling loop for a single service"""

    def __init__(self, service: ServiceConfig, notifier: Optional[Notifier] = None,
                 runner: Optional[JobRunner] = None, git=helpers.git,
                 interval: float = config.REPO_POLL_INTERVAL):
        self.service = service
        self.notifier = notifier or Notifier(service.notification_url)
        self.runner = runner or JobRunner(service, self.notifier)
        self.interval = interval
        self._git = git

        # Display only, change detection never reads these
        self.last_checked: Optional[float] = None
        self.last_local = ""
        self.last_remote = ""
        self.jobs_run = 0
        self.last_job: Optional[JobResult] = None

    @property
    def name(self) -> str:
        return self.service.name

    def _branch_hash(self, args, side: str) -> str:
        try:
            output = self._git(args, cwd=self.service.path)
        except helpers.CommandError as e:
            logger.error(f"[{self.name}] Error getting {side} hash: {e}")
            return ""
        return revision.extract_hash(output, self.service.branch)

    def local_revision(self) -> str:
        return self._branch_hash(["show-ref", "--head"], "local")

    def remote_revision(self) -> str:
        return self._branch_hash(["ls-remote"], "remote")

    def has_changed(self) -> bool:
        """True whenever the remote hash differs from the local one"""
        local = self.local_revision()
        remote = self.remote_revision()
        self.last_checked = time.time()
        self.last_local, self.last_remote = local, remote
        return remote != local

    def check(self) -> bool:
        """Run one poll cycle, returns whether a job was started"""
        if not self.has_changed():
            return False

        logger.info(f"[{self.name}] {self.service.branch} changed "
                    f"(local={self.last_local[:8] or '-'} remote={self.last_remote[:8] or '-'})")
        try:
            self.last_job = self.runner.run()
        except Exception as e:
            logger.error(f"[{self.name}] Job crashed: {e}")
            self.last_job = None
        self.jobs_run += 1
        return True

    def start(self, stop_event: Optional[threading.Event] = None) -> None:
        """Poll until the process dies or ``stop_event`` is set"""
        stop_event = stop_event or threading.Event()
        logger.info(f"[{self.name}] Watching {self.service.path} on {self.service.branch}")
        while not stop_event.is_set():
            self.check()
            stop_event.wait(self.interval)
        logger.info(f"[{self.name}] Watcher stopped")
