"""Process exit statuses returned by `snapshot-publish`."""

SUCCESS: int = 0
DIRTY_WORKING_TREE: int = 1
CONFIG_ERROR: int = 2
RUNTIME_ERROR: int = 3
