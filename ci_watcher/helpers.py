"""
Provides the utilities(functions) needed by the CI watcher:
    - run_command
    - git
    - post_json
"""

import subprocess
from typing import List, Optional

import requests

from ci_watcher import config


class CommandError(Exception):
    """A command could not be launched or exited with a non-zero status."""

    def __init__(self, command: str, returncode: Optional[int], output: str = ""):
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(f"Command failed: {command} (exit {returncode})\nOutput: {output}")


def run_command(command: str, cwd: Optional[str] = None) -> str:
    """
    Execute a shell command and return its output
    :param command: command to execute
    :param cwd: directory to run the command in
    :return: decoded output of the command
    :raises CommandError: If the command can't be launched or exits with a non-zero status
    """

    try:
        output = subprocess.check_output(command, shell=True, cwd=cwd, stderr=subprocess.STDOUT)
        return output.decode(errors="replace")
    except subprocess.CalledProcessError as e:
        raise CommandError(command, e.returncode, e.output.decode(errors="replace"))
    except OSError as e:
        raise CommandError(command, None, str(e))


def git(args: List[str], cwd: str) -> str:
    """
    Run a git subcommand inside a repository.
    :param args: arguments passed after ``git``
    :param cwd: repository path
    :return: decoded standard output
    :raises CommandError: same contract as run_command
    """

    command = ["git"] + list(args)
    try:
        result = subprocess.run(command, cwd=cwd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except OSError as e:
        raise CommandError(" ".join(command), None, str(e))
    if result.returncode != 0:
        raise CommandError(" ".join(command), result.returncode,
                           result.stderr.decode(errors="replace").strip())
    return result.stdout.decode(errors="replace")


def post_json(url: str, payload: dict, timeout: float = config.NOTIFICATION_TIMEOUT) -> None:
    """
    POST a JSON document to a webhook endpoint.
    :raises requests.RequestException: on connection errors and non-2xx responses
    """

    response = requests.post(url, json=payload, timeout=timeout)
    response.raise_for_status()
