"""Snapshot publishing to per-package mirror repositories.

Public API:
    run_snapshots(options, packages, settings) -> int
    publish_snapshot(pkg, context) -> bool
"""

from snapshots.publish.publisher import (
    publish_snapshot,
    resolve_branch,
    resolve_github_token,
    run_snapshots,
)
from snapshots.publish.types import RunContext, SnapshotOptions

__all__ = [
    "publish_snapshot",
    "resolve_branch",
    "resolve_github_token",
    "run_snapshots",
    "RunContext",
    "SnapshotOptions",
]
