"""Package table for snapshot publishing.

Public API:
    load_snapshot_config(path, default_hash) -> SnapshotConfig
"""

from snapshots.packages.loader import load_snapshot_config, parse_snapshot_config
from snapshots.packages.types import (
    BuildCommands,
    PackageConfigError,
    PackageInfo,
    SnapshotConfig,
)

__all__ = [
    "load_snapshot_config",
    "parse_snapshot_config",
    "BuildCommands",
    "PackageConfigError",
    "PackageInfo",
    "SnapshotConfig",
]
