"""
Runs one CI job for a service whose tracked branch has moved:
    - announces the job through the service notifier
    - pulls the repository in a worker thread and waits for its outcome
    - runs the configured commands one after another in the service directory

Command failures are logged and the remaining commands still run unless the
runner was built with ``stop_on_failure=True``.
"""

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import List

from ci_watcher import config, helpers, notifier as ntf
from ci_watcher.config import ServiceConfig

logger = logging.getLogger(__name__)


@dataclass
class CommandOutcome:
    command: str
    ok: bool
    output: str = ""


@dataclass
class JobResult:
    pulled: bool = False
    commands: List[CommandOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.pulled and all(c.ok for c in self.commands)

    @property
    def failed_command(self):
        return next((c for c in self.commands if not c.ok), None)


class JobRunner:
    """Pull-then-build pipeline for a single service"""

    def __init__(self, service: ServiceConfig, notifier: ntf.Notifier,
                 run_command=helpers.run_command, git=helpers.git,
                 stop_on_failure: bool = False, notify_on_finish: bool = False):
        self.service = service
        self.notifier = notifier
        self._run_command = run_command
        self._git = git
        self.stop_on_failure = stop_on_failure
        self.notify_on_finish = notify_on_finish

    def run(self) -> JobResult:
        """Full job workflow"""
        self.notifier.compose("Started job for service ", self.service.name, ntf.INFO)

        done = queue.Queue(maxsize=1)
        threading.Thread(target=self._pull, args=(done,), daemon=True).start()
        result = JobResult(pulled=done.get())

        if self.service.commands:
            self._run_commands(result)

        if self.notify_on_finish:
            self._notify_finished(result)
        return result

    def _pull(self, done: queue.Queue) -> None:
        """Update the working copy and report the outcome on ``done``"""
        pulled = False
        try:
            logger.info(f"[{self.service.name}] Pulling {self.service.branch}")
            output = self._git(["pull", config.DEFAULT_REMOTE, self.service.branch],
                               cwd=self.service.path)
            logger.debug(f"[{self.service.name}] Pull output: {output}")
            pulled = True
        except helpers.CommandError as e:
            logger.error(f"[{self.service.name}] Repository pull failed: {e}")
        except Exception as e:
            logger.error(f"[{self.service.name}] Unexpected pull error: {e}")
        finally:
            done.put(pulled)

    def _run_commands(self, result: JobResult) -> None:
        for command in self.service.commands:
            logger.info(f"[{self.service.name}] -> '{command}'")
            try:
                output = self._run_command(command, cwd=self.service.path)
                result.commands.append(CommandOutcome(command, True, output))
            except helpers.CommandError as e:
                logger.error(f"[{self.service.name}] Error running command: {e}")
                result.commands.append(CommandOutcome(command, False, e.output))
                if self.stop_on_failure:
                    logger.info(f"[{self.service.name}] Skipping remaining commands")
                    return

    def _notify_finished(self, result: JobResult) -> None:
        failed = result.failed_command
        if result.succeeded:
            self.notifier.compose("Finished job for service ", self.service.name, ntf.SUCCESS)
        elif failed is not None:
            self.notifier.compose("Job failed for service ", self.service.name, ntf.ERROR,
                                  log=f"{failed.command}\n{failed.output}")
        else:
            self.notifier.compose("Job failed for service ", self.service.name, ntf.ERROR,
                                  log="Repository pull failed")
