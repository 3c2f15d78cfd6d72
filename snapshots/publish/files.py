"""Filesystem helpers for populating a mirror clone."""

import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

UNIQUE_ID_FILENAME = "uniqueId"


def copy_tree(src: Path, dest: Path) -> None:
    """Copy every file under ``src`` into ``dest``.

    Existing files are overwritten and missing directories created.
    Files in ``dest`` that ``src`` does not have are left alone.
    """
    if not src.is_dir():
        raise FileNotFoundError(f"Build output directory does not exist: {src}")
    shutil.copytree(src, dest, dirs_exist_ok=True)


def write_unique_id(repo_dir: Path, now: Optional[datetime] = None) -> Path:
    """Write the current timestamp so every snapshot commit has a diff."""
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    path = repo_dir / UNIQUE_ID_FILENAME
    path.write_text(stamp, encoding="utf-8")
    return path
