"""
tests/test_job_runner.py

Unit tests for the job pipeline: pull first, then every configured command in
declared order, with failures logged but not stopping the sequence.
"""

import threading
import unittest
from unittest import mock

from ci_watcher import helpers, notifier
from ci_watcher.config import ServiceConfig
from ci_watcher.job_runner import JobRunner


class DummyShell:
    """Records command invocations; commands listed in ``failing`` exit non-zero"""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def __call__(self, command, cwd=None):
        self.calls.append((command, cwd))
        if command in self.failing:
            raise helpers.CommandError(command, 1, f"{command} exploded")
        return f"{command} ok\n"


class DummyGit:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []
        self.threads = []

    def __call__(self, args, cwd):
        self.calls.append((list(args), cwd))
        self.threads.append(threading.current_thread())
        if self.fail:
            raise helpers.CommandError("git " + " ".join(args), 1, "could not resolve host")
        return "Already up to date.\n"


def make_service(commands=(), **kwargs):
    return ServiceConfig(name="api", path="/srv/api", commands=list(commands), **kwargs)


class TestJobRunner(unittest.TestCase):
    def setUp(self):
        self.post = mock.Mock()
        self.notifier = notifier.Notifier("http://hooks.local/ci", post=self.post)

    def test_commands_run_in_order_despite_failure(self):
        shell = DummyShell(failing={"cmd-fail"})
        runner = JobRunner(make_service(["cmd-ok", "cmd-fail", "cmd-ok2"]), self.notifier,
                           run_command=shell, git=DummyGit())

        with self.assertLogs("ci_watcher.job_runner", level="ERROR"):
            result = runner.run()

        self.assertEqual(shell.calls, [
            ("cmd-ok", "/srv/api"),
            ("cmd-fail", "/srv/api"),
            ("cmd-ok2", "/srv/api"),
        ])
        self.assertEqual([c.ok for c in result.commands], [True, False, True])
        self.assertFalse(result.succeeded)
        self.assertEqual(result.failed_command.command, "cmd-fail")

    def test_pull_runs_in_separate_thread_before_commands(self):
        git = DummyGit()
        order = []
        shell = mock.Mock(side_effect=lambda command, cwd=None: order.append(len(git.calls)) or "")
        runner = JobRunner(make_service(["make"], branch="dev"), self.notifier,
                           run_command=shell, git=git)

        result = runner.run()

        self.assertTrue(result.pulled)
        self.assertEqual(git.calls, [(["pull", "origin", "dev"], "/srv/api")])
        self.assertIsNot(git.threads[0], threading.current_thread())
        self.assertEqual(order, [1])

    def test_pull_failure_does_not_block_commands(self):
        shell = DummyShell()
        runner = JobRunner(make_service(["make"]), self.notifier,
                           run_command=shell, git=DummyGit(fail=True))

        with self.assertLogs("ci_watcher.job_runner", level="ERROR") as logs:
            result = runner.run()

        self.assertFalse(result.pulled)
        self.assertEqual(shell.calls, [("make", "/srv/api")])
        self.assertIn("pull failed", logs.output[0])

    def test_no_commands_ends_after_pull(self):
        shell = DummyShell()
        git = DummyGit()
        result = JobRunner(make_service(), self.notifier, run_command=shell, git=git).run()

        self.assertTrue(result.succeeded)
        self.assertEqual(result.commands, [])
        self.assertEqual(shell.calls, [])
        self.assertEqual(len(git.calls), 1)

    def test_only_job_start_is_notified_by_default(self):
        runner = JobRunner(make_service(["cmd-ok", "cmd-fail"]), self.notifier,
                           run_command=DummyShell(failing={"cmd-fail"}), git=DummyGit())
        with self.assertLogs("ci_watcher.job_runner", level="ERROR"):
            runner.run()

        self.post.assert_called_once_with(
            "http://hooks.local/ci",
            {"title": "Started job for service api", "type": "info"},
        )

    def test_disabled_notifier_sends_nothing(self):
        post = mock.Mock()
        runner = JobRunner(make_service(["cmd-ok"]), notifier.Notifier("", post=post),
                           run_command=DummyShell(), git=DummyGit(), notify_on_finish=True)
        runner.run()
        post.assert_not_called()

    def test_stop_on_failure_skips_remaining(self):
        shell = DummyShell(failing={"cmd-fail"})
        runner = JobRunner(make_service(["cmd-ok", "cmd-fail", "cmd-ok2"]), self.notifier,
                           run_command=shell, git=DummyGit(), stop_on_failure=True)
        with self.assertLogs("ci_watcher.job_runner", level="ERROR"):
            result = runner.run()

        self.assertEqual([c for c, _ in shell.calls], ["cmd-ok", "cmd-fail"])
        self.assertEqual(len(result.commands), 2)

    def test_notify_on_finish_success(self):
        runner = JobRunner(make_service(["cmd-ok"]), self.notifier,
                           run_command=DummyShell(), git=DummyGit(), notify_on_finish=True)
        runner.run()

        titles = [c[0][1]["title"] for c in self.post.call_args_list]
        self.assertEqual(titles, ["Started job for service api", "Finished job for service api"])
        self.assertEqual(self.post.call_args_list[1][0][1]["type"], "success")

    def test_notify_on_finish_failure_carries_log(self):
        runner = JobRunner(make_service(["cmd-fail"]), self.notifier,
                           run_command=DummyShell(failing={"cmd-fail"}), git=DummyGit(),
                           notify_on_finish=True)
        with self.assertLogs("ci_watcher.job_runner", level="ERROR"):
            runner.run()

        payload = self.post.call_args_list[-1][0][1]
        self.assertEqual(payload["type"], "error")
        self.assertEqual(payload["title"], "Job failed for service api")
        self.assertIn("cmd-fail exploded", payload["log"])


if __name__ == "__main__":
    unittest.main()
