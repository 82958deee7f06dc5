import os
import sys
import signal
from dataclasses import dataclass

import psutil


def encode_exit(code):
    """Raw wait status of a process that exited normally with code."""
    return (code & 0xFF) << 8


def describe_status(status):
    """Status line for a raw wait status, as printed by `status` and the reaper."""
    if os.WIFSIGNALED(status):
        return f"terminated by signal {os.WTERMSIG(status)}\n"
    return f"exit value {os.WEXITSTATUS(status)}\n"


@dataclass
class Job:
    pid: int
    process: psutil.Process = None
    status: int = None
    done: bool = False


class JobTable:
    """
    Background jobs in launch order.
    Finished jobs stay in the table, marked done, so they are reported only once.
    """

    def __init__(self):
        self._jobs = []

    def __iter__(self):
        return iter(self._jobs)

    def __len__(self):
        return len(self._jobs)

    def get(self, pid):
        for job in self._jobs:
            if job.pid == pid:
                return job
        return None

    def add(self, pid):
        """Track a freshly forked background child and make one non-blocking reap attempt."""
        try:
            process = psutil.Process(pid)
        except psutil.NoSuchProcess:
            process = None

        job = Job(pid=pid, process=process)
        self._poll(job)
        self._jobs.append(job)
        return job

    def _poll(self, job):
        if job.status is not None:
            return True
        try:
            pid, status = os.waitpid(job.pid, os.WNOHANG)
        except ChildProcessError:
            # Collected elsewhere; nothing left to report
            job.done = True
            return False
        if pid == 0:
            return False
        job.status = status
        return True

    def reap(self):
        """Report every job that has finished since the last sweep."""
        finished = []
        for job in self._jobs:
            if job.done or not self._poll(job):
                continue
            print(f"background pid {job.pid} is done: {describe_status(job.status)}", end="", flush=True)
            job.done = True
            finished.append(job)
        return finished

    def terminate_all(self):
        """Send SIGTERM to every job ever tracked, finished or not."""
        for job in self._jobs:
            try:
                if job.process is not None:
                    job.process.terminate()
                else:
                    os.kill(job.pid, signal.SIGTERM)
            except (psutil.NoSuchProcess, ProcessLookupError):
                pass
            except (psutil.AccessDenied, PermissionError) as e:
                print(f"smallsh: could not terminate job {job.pid}: {e}", file=sys.stderr)
