"""Clone URL construction and log redaction for mirror repositories."""

import posixpath
import re
from urllib.parse import urlparse, urlsplit, urlunparse, urlunsplit

_CREDENTIAL_SCHEMES = {"http", "https"}

# userinfo in any URL embedded in free text (git error output)
_USERINFO_RE = re.compile(r"(://)[^/\s@]+@")


def redact_repo_url(url: str) -> str:
    """Return a clone URL safe to write into logs.

    Masks embedded credentials (the snapshot publish token) while preserving
    host/path context useful for debugging.
    """
    parsed = urlparse(url)
    if parsed.username is None:
        return url

    host = parsed.hostname or ""
    if not host:
        return url

    port = f":{parsed.port}" if parsed.port else ""
    if parsed.password is not None:
        auth = f"{parsed.username}:***@"
    else:
        auth = "***@"

    redacted_netloc = f"{auth}{host}{port}"
    return urlunparse(parsed._replace(netloc=redacted_netloc))


def build_clone_url(snapshot_repo: str, github_token: str, host_url: str) -> str:
    """Build the clone URL for ``owner/name`` under ``host_url``.

    The token becomes the userinfo part of the URL for http(s) hosts only;
    file:// and bare-path hosts (local mirrors) never carry it.
    """
    parts = urlsplit(host_url.rstrip("/"))
    netloc = parts.netloc
    if github_token and parts.scheme in _CREDENTIAL_SCHEMES:
        netloc = f"{github_token}@{netloc}"
    base = urlunsplit(parts._replace(netloc=netloc))
    return f"{base}/{snapshot_repo.strip('/')}.git"


def repo_basename(snapshot_repo: str) -> str:
    """Directory name a mirror is cloned into: ``org/core-builds`` -> ``core-builds``."""
    return posixpath.basename(snapshot_repo.rstrip("/"))


def redact_text(text: str) -> str:
    """Mask URL credentials anywhere inside free-form command output."""
    return _USERINFO_RE.sub(r"\1***@", text)
