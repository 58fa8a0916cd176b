"""Process exit codes for the obstinate CLI."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
NOT_FOUND = 3
