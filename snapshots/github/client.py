"""GitHub API preflight for snapshot mirrors.

Uses httpx to confirm, before anything is pushed, that every mirror the
run will touch exists and that the publish token can push to it. Without
this check a permission problem surfaces only at ``git push`` time,
after earlier packages have already been published.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import httpx

from snapshots.packages.types import PackageInfo

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"

# Timeout for API calls (seconds)
API_TIMEOUT = 30


class MirrorCheckError(Exception):
    """Raised when one or more mirrors are missing or not writable."""

    def __init__(self, failures: list["MirrorAccess"]):
        self.failures = failures
        details = "; ".join(f"{f.repo}: {f.reason}" for f in failures)
        super().__init__(f"{len(failures)} snapshot mirror(s) unusable: {details}")


@dataclass
class MirrorAccess:
    """Outcome of checking one mirror repository."""

    repo: str
    exists: bool
    can_push: bool
    reason: str = ""

    @property
    def is_usable(self) -> bool:
        return self.exists and self.can_push


def _auth_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }


def check_mirror_access(client: httpx.Client, snapshot_repo: str) -> MirrorAccess:
    """GET /repos/{owner}/{repo} and read the token's push permission."""
    response = client.get(f"/repos/{snapshot_repo}")
    if response.status_code == 404:
        return MirrorAccess(
            repo=snapshot_repo, exists=False, can_push=False,
            reason="repository not found or not visible to the token",
        )
    response.raise_for_status()

    permissions = response.json().get("permissions") or {}
    can_push = bool(permissions.get("push") or permissions.get("admin"))
    return MirrorAccess(
        repo=snapshot_repo,
        exists=True,
        can_push=can_push,
        reason="" if can_push else "token lacks push permission",
    )


def verify_mirrors(
    packages: Iterable[PackageInfo],
    github_token: str,
    api_base_url: str = GITHUB_API_BASE,
    transport: Optional[httpx.BaseTransport] = None,
) -> list[MirrorAccess]:
    """Check every snapshot mirror; raise MirrorCheckError if any is unusable.

    Packages with ``snapshot`` false are not checked. Returns the access
    results in package order when all mirrors are usable.
    """
    repos = [pkg.snapshot_repo for pkg in packages if pkg.snapshot]
    results: list[MirrorAccess] = []

    with httpx.Client(
        base_url=api_base_url,
        headers=_auth_headers(github_token),
        timeout=API_TIMEOUT,
        transport=transport,
    ) as client:
        for repo in repos:
            access = check_mirror_access(client, repo)
            logger.info(
                "Mirror %s: exists=%s push=%s", repo, access.exists, access.can_push,
            )
            results.append(access)

    failures = [r for r in results if not r.is_usable]
    if failures:
        raise MirrorCheckError(failures)
    return results
