"""Snapshot publishing for monorepo packages.

Builds every package in snapshot mode and pushes one commit plus one tag
per package to its mirror repository.
"""

__version__ = "0.1.0"
