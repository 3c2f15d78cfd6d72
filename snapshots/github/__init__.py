"""GitHub API access used for mirror preflight checks."""

from snapshots.github.client import MirrorAccess, MirrorCheckError, verify_mirrors

__all__ = ["MirrorAccess", "MirrorCheckError", "verify_mirrors"]
