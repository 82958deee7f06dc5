import os

# Command line limits
MAX_COMMAND_LENGTH = 2048
MAX_COMMAND_ARGS = 512

PROMPT = ": "

BACKGROUND_MARKER = "&"
PID_MARKER = "$$"
COMMENT_MARKER = "#"

INPUT_OPERATOR = "<"
OUTPUT_OPERATOR = ">"

NULL_DEVICE = os.devnull
OUTPUT_FILE_MODE = 0o644

# Exit values recorded in last status when no child was run
REDIRECT_FAILURE_STATUS = 1
DUP_FAILURE_STATUS = 2
FORK_FAILURE_STATUS = 1

FOREGROUND_ONLY_ON_MESSAGE = "\nEntering foreground-only mode (& is now ignored)\n"
FOREGROUND_ONLY_OFF_MESSAGE = "\nExiting foreground-only mode\n"
