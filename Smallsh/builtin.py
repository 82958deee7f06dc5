import os

from Smallsh.job_control import describe_status


def builtin_exit(state, args):
    """Terminate every tracked job, then leave the shell"""
    state.jobs.terminate_all()
    raise SystemExit(0)


def builtin_cd(state, args):
    """Change directory; $HOME when no directory is given"""
    path = args[0] if args else os.environ.get("HOME")
    if not path:
        return
    try:
        os.chdir(path)
    except OSError:
        # Failure leaves the directory and the last status as they were
        pass


def builtin_status(state, args):
    """Print how the last foreground command ended"""
    print(describe_status(state.last_status), end="", flush=True)


BUILTINS = {
    "exit": builtin_exit,
    "cd": builtin_cd,
    "status": builtin_status,
}


def execute_builtin(state, command):
    """
    Execute built-in command if it matches. Built-ins ignore a background request.
    Returns: True if the command was a built-in
    """
    handler = BUILTINS.get(command.name)
    if handler is None:
        return False
    handler(state, command.argv[1:])
    return True
