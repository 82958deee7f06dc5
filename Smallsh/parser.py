import sys
from dataclasses import dataclass, field

from Smallsh.config import (
    BACKGROUND_MARKER,
    COMMENT_MARKER,
    INPUT_OPERATOR,
    MAX_COMMAND_ARGS,
    MAX_COMMAND_LENGTH,
    OUTPUT_OPERATOR,
    PID_MARKER,
)

REDIRECT_OPERATORS = (INPUT_OPERATOR, OUTPUT_OPERATOR)


@dataclass
class Command:
    """
    One parsed input line.

    tokens: every token of the line, trailing background marker removed
    background: the line ended with a lone background marker
    """
    tokens: list = field(default_factory=list)
    background: bool = False

    @property
    def argv(self):
        """Tokens handed to the program: everything before the first redirection operator."""
        for idx, tok in enumerate(self.tokens):
            if tok in REDIRECT_OPERATORS:
                return self.tokens[:idx]
        return list(self.tokens)

    @property
    def name(self):
        return self.tokens[0] if self.tokens else ""


def expand_pid(token, pid):
    """Replace each $$ in token, left to right, with the shell pid."""
    parts = []
    start = 0
    while True:
        idx = token.find(PID_MARKER, start)
        if idx < 0:
            parts.append(token[start:])
            break
        parts.append(token[start:idx])
        parts.append(str(pid))
        start = idx + len(PID_MARKER)
    return "".join(parts)


def tokenize(line, pid):
    """
    Split a raw line into whitespace separated tokens with $$ expanded.
    A blank line gives a single empty token.
    """
    tokens = [expand_pid(tok, pid) for tok in line.split()]
    return tokens or [""]


def is_noop(tokens):
    """Blank lines and comments are never dispatched."""
    return not tokens or not tokens[0] or tokens[0].startswith(COMMENT_MARKER)


def parse_command(line, pid):
    """
    Parse one input line.
    Returns: Command, or None when there is nothing to dispatch
    """
    if len(line.rstrip("\n")) > MAX_COMMAND_LENGTH:
        print(f"smallsh: command line longer than {MAX_COMMAND_LENGTH} characters", file=sys.stderr)
        return None

    tokens = tokenize(line, pid)
    if is_noop(tokens):
        return None

    if len(tokens) > MAX_COMMAND_ARGS:
        print(f"smallsh: too many arguments (max {MAX_COMMAND_ARGS})", file=sys.stderr)
        return None

    background = len(tokens) > 1 and tokens[-1] == BACKGROUND_MARKER
    if background:
        tokens = tokens[:-1]

    return Command(tokens=tokens, background=background)
