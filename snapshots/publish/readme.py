"""README header prepended to every snapshot commit."""

import logging
from pathlib import Path

from snapshots.packages.types import PackageInfo

logger = logging.getLogger(__name__)

README_FILENAME = "README.md"

# Markdown. Kept in sync with what consumers of the mirrors expect to see.
_README_HEADER = """
# Snapshot build of {name}

This repository is a snapshot of a commit on the original repository. The original code used to
generate this is located at {upstream}.

We do not accept PRs or Issues opened on this repository. You should not use this over a tested and
released version of this package.

To test this snapshot in your own project, use

```bash
npm install git+{install_host}/{snapshot_repo}.git
```

----
"""


def render_readme_header(
    pkg: PackageInfo,
    upstream_repo_url: str,
    install_host: str = "https://github.com",
) -> str:
    return _README_HEADER.format(
        name=pkg.name,
        upstream=upstream_repo_url,
        install_host=install_host.rstrip("/"),
        snapshot_repo=pkg.snapshot_repo,
    )


def prepend_readme_header(
    repo_dir: Path,
    pkg: PackageInfo,
    upstream_repo_url: str,
    install_host: str = "https://github.com",
) -> Path:
    """Prepend the snapshot header to ``README.md``, creating it if missing.

    Bytes that are not valid UTF-8 are replaced with U+FFFD.
    """
    readme_path = repo_dir / README_FILENAME
    content = render_readme_header(pkg, upstream_repo_url, install_host)
    if readme_path.is_file():
        content += readme_path.read_text(encoding="utf-8", errors="replace")
    else:
        logger.debug("No README in %s, creating one", repo_dir.name)

    readme_path.write_text(content, encoding="utf-8")
    return readme_path
