import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field

from Smallsh.config import (
    DUP_FAILURE_STATUS,
    INPUT_OPERATOR,
    NULL_DEVICE,
    OUTPUT_FILE_MODE,
    OUTPUT_OPERATOR,
)
from Smallsh.job_control import encode_exit

STDIN_FD = 0
STDOUT_FD = 1


class RedirectionError(Exception):
    """A redirection target could not be opened; nothing gets launched."""


class MissingTargetError(RedirectionError):
    """A redirection operator ends the line with no file name after it."""


@dataclass
class RedirectionPlan:
    """Resolved file substitutions for one launch. Holds open descriptors until closed."""
    argv: list = field(default_factory=list)
    input_path: str = None
    output_path: str = None
    input_fd: int = None
    output_fd: int = None

    @property
    def redirects(self):
        return self.input_fd is not None or self.output_fd is not None

    def use_null_device(self):
        """Background jobs without a redirection read from and write to the null device."""
        if self.input_fd is None:
            self.input_path = NULL_DEVICE
            self.input_fd = _open(NULL_DEVICE, os.O_RDONLY, "input")
        if self.output_fd is None:
            self.output_path = NULL_DEVICE
            self.output_fd = _open(NULL_DEVICE, os.O_WRONLY, "output")

    def close(self):
        for name in ("input_fd", "output_fd"):
            fd = getattr(self, name)
            if fd is not None:
                os.close(fd)
                setattr(self, name, None)


def _open(path, flags, direction, mode=OUTPUT_FILE_MODE):
    try:
        return os.open(path, flags, mode)
    except OSError as e:
        raise RedirectionError(f"cannot open {path} for {direction}") from e


def plan_redirections(command):
    """
    Scan the command tokens for < and > and open their targets.
    Raises RedirectionError if a target cannot be opened; no descriptor is leaked.
    """
    plan = RedirectionPlan(argv=command.argv)
    tokens = command.tokens
    i = 0
    try:
        while i < len(tokens):
            tok = tokens[i]
            if tok not in (INPUT_OPERATOR, OUTPUT_OPERATOR):
                i += 1
                continue

            direction = "input" if tok == INPUT_OPERATOR else "output"
            if i + 1 >= len(tokens):
                raise MissingTargetError(f"missing file name for {direction} redirection")
            path = tokens[i + 1]

            # A later operator of the same direction replaces the earlier one
            if tok == INPUT_OPERATOR:
                fd = _open(path, os.O_RDONLY, direction)
                if plan.input_fd is not None:
                    os.close(plan.input_fd)
                plan.input_path, plan.input_fd = path, fd
            else:
                fd = _open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, direction)
                if plan.output_fd is not None:
                    os.close(plan.output_fd)
                plan.output_path, plan.output_fd = path, fd
            i += 2
    except RedirectionError:
        plan.close()
        raise
    return plan


class StdioSwap:
    """
    Outcome of swapping the shell's stdio for one launch.

    applied: the plan's descriptors are in place on fds 0 and 1
    failed: some dup or dup2 failed while saving, swapping or restoring
    """

    def __init__(self):
        self.applied = True
        self.failed = False


def _dup_failed(swap, state, action, err):
    print(f"smallsh: {action}: {err.strerror}", file=sys.stderr, flush=True)
    swap.failed = True
    state.last_status = encode_exit(DUP_FAILURE_STATUS)


def _save_stdio(swap, state):
    saved = []
    for fd in (STDIN_FD, STDOUT_FD):
        try:
            saved.append(os.dup(fd))
        except OSError as e:
            _dup_failed(swap, state, f"cannot save descriptor {fd}", e)
            saved.append(None)
    return saved


def _restore_stdio(saved, swap, state):
    for target, fd in zip((STDIN_FD, STDOUT_FD), saved):
        if fd is None:
            continue
        try:
            os.dup2(fd, target)
        except OSError as e:
            _dup_failed(swap, state, f"cannot restore descriptor {target}", e)
        finally:
            os.close(fd)


@contextmanager
def redirected_stdio(plan, state):
    """
    Point the shell's stdin/stdout at the plan's files for the duration of one launch.
    The shell's own descriptors are saved first, whatever the plan holds, and put
    back on every way out of the block. The plan's descriptors are closed on exit.

    Yields a StdioSwap; when swap.applied is False a planned file could not be
    put in place and nothing should be launched.
    """
    swap = StdioSwap()
    sys.stdout.flush()
    saved = _save_stdio(swap, state)
    try:
        if plan.redirects:
            for target, fd in ((STDIN_FD, plan.input_fd), (STDOUT_FD, plan.output_fd)):
                if fd is None:
                    continue
                try:
                    os.dup2(fd, target)
                except OSError as e:
                    _dup_failed(swap, state, f"cannot redirect descriptor {target}", e)
                    swap.applied = False
                    break
        yield swap
    finally:
        sys.stdout.flush()
        _restore_stdio(saved, swap, state)
        plan.close()
