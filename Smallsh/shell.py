import os
from dataclasses import dataclass, field

from Smallsh.builtin import execute_builtin
from Smallsh.config import PROMPT
from Smallsh.executor import run_command
from Smallsh.job_control import JobTable
from Smallsh.parser import parse_command
from Smallsh.signals import SignalController


@dataclass
class ShellState:
    """
    Everything the shell remembers between lines.

    last_status: raw wait status of the last foreground command
    foreground_only: set and cleared only by the Ctrl+Z handler
    """
    last_status: int = 0
    foreground_only: bool = False
    jobs: JobTable = field(default_factory=JobTable)
    pid: int = field(default_factory=os.getpid)


def execute_line(state, line):
    """Dispatch one input line to a built-in or an external program"""
    command = parse_command(line, state.pid)
    if command is None:
        return None

    if execute_builtin(state, command):
        return None

    return run_command(state, command)


def read_line():
    """Prompt and read one line. Returns None at end of input."""
    try:
        return input(PROMPT)
    except EOFError:
        print()
        return None


def main_loop(state=None):
    """Main shell loop"""
    state = state or ShellState()
    signals = SignalController(state)
    signals.install()

    try:
        while True:
            # Finished background jobs are reported before the next prompt
            state.jobs.reap()

            line = read_line()
            if line is None:
                state.jobs.terminate_all()
                return 0

            execute_line(state, line)
    finally:
        signals.uninstall()
