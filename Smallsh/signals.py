import os
import signal

from Smallsh.config import FOREGROUND_ONLY_OFF_MESSAGE, FOREGROUND_ONLY_ON_MESSAGE, PROMPT


class SignalController:
    """
    The shell's own signal dispositions.
    Ctrl+C never reaches the shell; Ctrl+Z toggles foreground-only mode.
    """

    def __init__(self, state):
        self.state = state
        self._previous = {}
        # Messages go to the terminal even while fd 1 is redirected for a job
        self._out_fd = None

    def install(self):
        self._out_fd = os.dup(1)
        self._previous[signal.SIGINT] = signal.signal(signal.SIGINT, signal.SIG_IGN)
        self._previous[signal.SIGTSTP] = signal.signal(signal.SIGTSTP, self.handle_sigtstp)

    def uninstall(self):
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()
        if self._out_fd is not None:
            os.close(self._out_fd)
            self._out_fd = None

    def handle_sigtstp(self, signum, frame):
        """Flip foreground-only mode and tell the user, with other signals held off."""
        blocked = signal.pthread_sigmask(signal.SIG_BLOCK, signal.valid_signals())
        try:
            self.state.foreground_only = not self.state.foreground_only
            message = FOREGROUND_ONLY_ON_MESSAGE if self.state.foreground_only else FOREGROUND_ONLY_OFF_MESSAGE
            out_fd = 1 if self._out_fd is None else self._out_fd
            os.write(out_fd, message.encode())
            os.write(out_fd, PROMPT.encode())
        finally:
            signal.pthread_sigmask(signal.SIG_SETMASK, blocked)


def reset_child_signals(foreground):
    """
    Run in a forked child before exec.
    Foreground jobs get the default Ctrl+C behaviour back; background jobs keep
    ignoring it. Neither may be stopped by Ctrl+Z, which belongs to the shell.
    """
    if foreground:
        signal.signal(signal.SIGINT, signal.SIG_DFL)
    signal.signal(signal.SIGTSTP, signal.SIG_IGN)
