"""
Shared fixtures for unit tests.
"""

import gzip
import io
import tarfile
from typing import Optional

import pytest

from github_utils.utils.logging import clear_contextvars


def build_tar(
    files: dict[str, bytes],
    directories: Optional[list[str]] = None,
    symlinks: Optional[dict[str, str]] = None,
) -> bytes:
    """Build an uncompressed tar archive in memory."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.PAX_FORMAT) as tar:
        for name in directories or []:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tar.addfile(info)
    return buf.getvalue()


def build_tarball(
    files: dict[str, bytes],
    directories: Optional[list[str]] = None,
    symlinks: Optional[dict[str, str]] = None,
) -> bytes:
    """Build a gzip-compressed tar archive in memory."""
    return gzip.compress(build_tar(files, directories, symlinks))


@pytest.fixture
def tar_factory():
    """Factory building uncompressed tar archives."""
    return build_tar


@pytest.fixture
def tarball_factory():
    """Factory building gzip-compressed tar archives."""
    return build_tarball


@pytest.fixture
def github_tarball():
    """A tarball laid out the way GitHub serves acme/widgets at abc123."""
    return build_tarball(
        {
            "acme-widgets-abc123/README.md": b"# widgets\n",
            "acme-widgets-abc123/src/widget.py": b"print('widget')\n",
        },
        directories=["acme-widgets-abc123/", "acme-widgets-abc123/src/"],
    )


@pytest.fixture(autouse=True)
def _reset_context():
    """Clear logging context vars between tests."""
    clear_contextvars()
    yield
    clear_contextvars()
