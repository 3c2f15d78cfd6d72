"""Snapshot config loader.

Reads the YAML file that lists every package and the build commands:

    upstream: https://github.com/example/monorepo
    commands:
      staging: npx scaffold new staging-project
      build: npm run build -- --snapshot
      help: npm run build:help -- --project {staging_dir}
    packages:
      core:
        dist: dist/core
        snapshot: true
        snapshotRepo: org/core-builds
      schematics:
        dist: dist/schematics
        snapshot: false

``packages`` may also be a list of entries carrying a ``name`` key. Keys
are accepted in camelCase or snake_case. Relative ``dist`` paths resolve
against the directory holding the config file.
"""

import logging
import posixpath
from pathlib import Path
from typing import Any, Optional

import yaml

from snapshots.packages.types import (
    BuildCommands,
    PackageConfigError,
    PackageInfo,
    SnapshotConfig,
)

logger = logging.getLogger(__name__)

_KEY_ALIASES = {
    "snapshotRepo": "snapshot_repo",
    "snapshotHash": "snapshot_hash",
}


def load_snapshot_config(path: Path, default_hash: str = "") -> SnapshotConfig:
    """Load and validate the snapshot config file at ``path``.

    ``default_hash`` is used as the tag for packages that do not set one.
    """
    path = Path(path)
    if not path.is_file():
        raise PackageConfigError(f"Snapshot config not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise PackageConfigError(f"Invalid YAML in {path}: {exc}") from exc

    config = parse_snapshot_config(raw, base_dir=path.parent, default_hash=default_hash)
    logger.info("Loaded %d packages from %s", len(config.packages), path)
    return config


def parse_snapshot_config(
    raw: Any,
    base_dir: Path = Path("."),
    default_hash: str = "",
) -> SnapshotConfig:
    """Build a SnapshotConfig from already-parsed YAML data."""
    if not isinstance(raw, dict):
        raise PackageConfigError("Snapshot config must be a mapping")

    entries = _package_entries(raw.get("packages"))
    packages: list[PackageInfo] = []
    seen: set[str] = set()

    for name, fields in entries:
        if name in seen:
            raise PackageConfigError(f"Duplicate package name: {name!r}")
        seen.add(name)
        packages.append(_parse_package(name, fields, base_dir, default_hash))

    _check_clone_targets(packages)

    commands_raw = raw.get("commands") or {}
    if not isinstance(commands_raw, dict):
        raise PackageConfigError("'commands' must be a mapping")
    commands = BuildCommands(
        staging=str(commands_raw.get("staging") or ""),
        build=str(commands_raw.get("build") or ""),
        help=str(commands_raw.get("help") or ""),
    )

    upstream: Optional[str] = raw.get("upstream")
    return SnapshotConfig(
        packages=tuple(packages),
        commands=commands,
        upstream_repo_url=str(upstream).rstrip("/") if upstream else None,
    )


def _package_entries(raw_packages: Any) -> list[tuple[str, dict]]:
    """Normalise the mapping or list form into ordered (name, fields) pairs."""
    if raw_packages is None:
        raise PackageConfigError("Snapshot config has no 'packages' section")

    if isinstance(raw_packages, dict):
        entries = []
        for name, fields in raw_packages.items():
            if not isinstance(fields, dict):
                raise PackageConfigError(f"Package {name!r} must be a mapping")
            entries.append((str(name), fields))
        return entries

    if isinstance(raw_packages, list):
        entries = []
        for index, fields in enumerate(raw_packages):
            if not isinstance(fields, dict) or not fields.get("name"):
                raise PackageConfigError(f"Package entry #{index} needs a 'name'")
            entries.append((str(fields["name"]), fields))
        return entries

    raise PackageConfigError("'packages' must be a mapping or a list")


def _parse_package(
    name: str,
    fields: dict,
    base_dir: Path,
    default_hash: str,
) -> PackageInfo:
    values = {_KEY_ALIASES.get(k, k): v for k, v in fields.items()}

    dist = values.get("dist")
    if not dist:
        raise PackageConfigError(f"Package {name!r} has no 'dist' path")
    dist_path = Path(str(dist))
    if not dist_path.is_absolute():
        dist_path = base_dir / dist_path

    snapshot = values.get("snapshot", False)
    if not isinstance(snapshot, bool):
        raise PackageConfigError(f"Package {name!r}: 'snapshot' must be true or false")

    snapshot_repo = str(values.get("snapshot_repo") or "").strip()
    if snapshot and snapshot_repo.count("/") != 1:
        raise PackageConfigError(
            f"Package {name!r}: 'snapshotRepo' must be in owner/name form, got {snapshot_repo!r}"
        )

    snapshot_hash = str(values.get("snapshot_hash") or default_hash).strip()
    if snapshot and not snapshot_hash:
        raise PackageConfigError(f"Package {name!r} has no 'snapshotHash' and no default")

    return PackageInfo(
        name=name,
        dist=dist_path,
        snapshot=snapshot,
        snapshot_repo=snapshot_repo,
        snapshot_hash=snapshot_hash,
    )


def _check_clone_targets(packages: list[PackageInfo]) -> None:
    """Mirrors are cloned side by side under one directory named by repo basename."""
    owners: dict[str, str] = {}
    for pkg in packages:
        if not pkg.snapshot:
            continue
        target = posixpath.basename(pkg.snapshot_repo)
        if target in owners:
            raise PackageConfigError(
                f"Packages {owners[target]!r} and {pkg.name!r} both clone into {target!r}"
            )
        owners[target] = pkg.name
