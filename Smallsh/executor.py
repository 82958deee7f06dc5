import os
import sys

from Smallsh.config import DUP_FAILURE_STATUS, FORK_FAILURE_STATUS, REDIRECT_FAILURE_STATUS
from Smallsh.job_control import encode_exit
from Smallsh.redirection import MissingTargetError, RedirectionError, plan_redirections, redirected_stdio
from Smallsh.signals import reset_child_signals


def exec_child(argv, foreground):
    """
    Body of the forked child: never returns.
    If the program cannot be run the failure is reported under its name and the child exits 1.
    """
    try:
        reset_child_signals(foreground)
        os.execvp(argv[0], argv)
    except OSError as e:
        os.write(2, f"{argv[0]}: {e.strerror}\n".encode(errors="replace"))
    finally:
        os._exit(1)


def spawn(argv, foreground):
    """Fork a child running argv. A failed fork ends the shell."""
    try:
        pid = os.fork()
    except OSError as e:
        print(f"smallsh: fork failed: {e.strerror}", file=sys.stderr, flush=True)
        raise SystemExit(FORK_FAILURE_STATUS) from e

    if pid == 0:
        exec_child(argv, foreground)
    return pid


def redirect_failed(state, err):
    if isinstance(err, MissingTargetError):
        print(f"smallsh: {err}", file=sys.stderr, flush=True)
    else:
        print(err, flush=True)
    state.last_status = encode_exit(REDIRECT_FAILURE_STATUS)
    return None


def run_command(state, command):
    """
    Launch an external command in the foreground or background.
    Returns: pid of the child, or None if nothing was launched
    """
    # Checked at dispatch: Ctrl+Z can flip the mode after the line was parsed
    background = command.background and not state.foreground_only

    try:
        plan = plan_redirections(command)
    except RedirectionError as e:
        return redirect_failed(state, e)

    if background:
        try:
            plan.use_null_device()
        except RedirectionError as e:
            plan.close()
            return redirect_failed(state, e)

    if not plan.argv:
        # Only redirections on the line: files are opened, nothing runs
        plan.close()
        return None

    if background:
        return run_background(state, plan)
    return run_foreground(state, plan)


def run_foreground(state, plan):
    """
    Run the child to completion and record its raw wait status.
    A descriptor that could not be duplicated leaves exit value 2 as the last status.
    """
    with redirected_stdio(plan, state) as swap:
        if not swap.applied:
            return None
        pid = spawn(plan.argv, foreground=True)
        _, status = os.waitpid(pid, 0)

    state.last_status = encode_exit(DUP_FAILURE_STATUS) if swap.failed else status
    if os.WIFSIGNALED(status):
        print(f"terminated by signal {os.WTERMSIG(status)}", flush=True)
    return pid


def run_background(state, plan):
    """Start the child and hand it to the job table without waiting for it."""
    with redirected_stdio(plan, state) as swap:
        if not swap.applied:
            return None
        pid = spawn(plan.argv, foreground=False)

    state.jobs.add(pid)
    print(f"background pid is {pid}", flush=True)
    return pid
