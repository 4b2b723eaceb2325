"""
Supervisor for the CI watcher

Reads the service configuration, builds one Watcher per service, announces
the start of CI for each of them and runs every watcher loop in its own
thread. Optionally serves the status reporter next to the watchers.
"""

import argparse
import logging
import sys
import threading
from typing import List, Optional

from ci_watcher import config, notifier as ntf
from ci_watcher.config import ServerConfig
from ci_watcher.job_runner import JobRunner
from ci_watcher.watcher import Watcher

logger = logging.getLogger(__name__)


class Supervisor:
    """Owns the watcher threads of all configured services"""

    def __init__(self, server_config: ServerConfig, notifier_factory=ntf.Notifier,
                 stop_on_failure: bool = False, notify_on_finish: bool = False):
        self.config = server_config
        self.watchers: List[Watcher] = []
        self.threads: List[threading.Thread] = []

        for service in server_config.services:
            notifier = notifier_factory(service.notification_url)
            runner = JobRunner(service, notifier,
                               stop_on_failure=stop_on_failure,
                               notify_on_finish=notify_on_finish)
            self.watchers.append(Watcher(service, notifier=notifier, runner=runner))

    def start(self, stop_event: Optional[threading.Event] = None) -> List[threading.Thread]:
        """Launch every watcher loop, does not wait for them"""
        for w in self.watchers:
            w.notifier.compose("Started CI for ", w.name, ntf.SUCCESS)
            thread = threading.Thread(
                target=w.start,
                args=(stop_event,),
                name=f"watcher-{w.name}",
                daemon=True,
            )
            thread.start()
            self.threads.append(thread)
            logger.info(f"Started watcher for {w.name}")
        return self.threads


def _start_reporter(watchers: List[Watcher]) -> None:
    from ci_watcher.reporter import create_app

    app = create_app(watchers)
    threading.Thread(
        target=app.run,
        kwargs={"host": config.REPORTER_HOST, "port": config.REPORTER_PORT, "use_reloader": False},
        name="reporter",
        daemon=True,
    ).start()
    logger.info(f"Reporter listening on {config.REPORTER_HOST}:{config.REPORTER_PORT}")


def main(argv=None) -> int:
    """Main entry point for the CI watcher"""
    parser = argparse.ArgumentParser(description="Watch service repositories and run CI jobs")
    parser.add_argument("config", help="Path to the YAML service configuration")
    parser.add_argument("--reporter", action="store_true",
                        help="Serve the status page (default port %d)" % config.REPORTER_PORT)
    parser.add_argument("--stop-on-failure", action="store_true",
                        help="Skip the remaining commands of a job after the first failure")
    parser.add_argument("--notify-on-finish", action="store_true",
                        help="Send a notification when a job completes")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level (default: %(default)s)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format=config.LOG_FORMAT)

    try:
        server_config = config.load_config(args.config)
    except config.ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    supervisor = Supervisor(server_config,
                            stop_on_failure=args.stop_on_failure,
                            notify_on_finish=args.notify_on_finish)
    stop_event = threading.Event()
    supervisor.start(stop_event)
    if args.reporter:
        _start_reporter(supervisor.watchers)

    try:
        while not stop_event.wait(1):
            pass
    except KeyboardInterrupt:
        logger.info("Shutting down CI watcher")
        stop_event.set()
    return 0


if __name__ == "__main__":
    sys.exit(main())
