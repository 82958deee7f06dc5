import os
import time

import pytest

from Smallsh.shell import ShellState


@pytest.fixture
def state():
    """A fresh shell state; jobs a test leaves running are terminated and collected."""
    shell_state = ShellState()
    yield shell_state
    shell_state.jobs.terminate_all()
    for job in shell_state.jobs:
        if job.status is None and not job.done:
            try:
                os.waitpid(job.pid, 0)
            except ChildProcessError:
                pass


@pytest.fixture
def wait_reaped():
    """Sweep a job table until something is reported, giving up after a few seconds."""

    def _wait(jobs, timeout=5.0):
        deadline = time.monotonic() + timeout
        finished = []
        while time.monotonic() < deadline:
            finished = jobs.reap()
            if finished:
                break
            time.sleep(0.02)
        return finished

    return _wait
