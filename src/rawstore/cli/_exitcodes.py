"""Process exit codes for the rawstore CLI."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
NOT_FOUND = 3
STORAGE_ERROR = 4
VALIDATION_ERROR = 5
EXECUTION_FAILURE = 6
