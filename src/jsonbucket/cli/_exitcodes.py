"""Process exit codes used by the jsonbucket CLI."""

OK = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
NOT_FOUND = 3
STORE_ERROR = 4
CONFIG_ERROR = 5
