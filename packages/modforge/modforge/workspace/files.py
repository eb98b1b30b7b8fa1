"""Workspace — Artifact I/O and the project lock.

Artifacts are never edited in place: the full text is read, transformed in
memory, written to a temporary file in the same directory and moved over the
original with ``os.replace``.  A crash therefore leaves either the old or the
new document on disk, never a partial one.
"""

from __future__ import annotations

import fcntl
import os
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from modforge.exceptions import (
    ArtifactWriteError,
    EntryFileUnreadable,
    FilesystemError,
    ProjectLocked,
)
from modforge.logging import get_logger

log = get_logger(__name__)

_LOCK_POLL_SECONDS = 0.1


def read_artifact(path: Path) -> str:
    """Return the text of *path*.

    Raises:
        EntryFileUnreadable: The file is missing or cannot be decoded.
    """
    try:
        # newline="" keeps CRLF documents byte-identical on rewrite.
        with path.open(encoding="utf-8", newline="") as f:
            return f.read()
    except FileNotFoundError as exc:
        raise EntryFileUnreadable(path, "file not found") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise EntryFileUnreadable(path, str(exc)) from exc


def write_artifact(path: Path, content: str) -> None:
    """Atomically replace *path* with *content*, keeping its permission bits.

    Raises:
        ArtifactWriteError: The temporary file could not be written or moved.
    """
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            os.chmod(tmp_path, path.stat().st_mode & 0o7777)
        os.replace(tmp_path, path)
    except OSError as exc:
        raise ArtifactWriteError(path, str(exc)) from exc
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
    log.debug("artifact_written", path=str(path), size=len(content))


@contextmanager
def project_lock(lock_path: Path, timeout: float = 10.0) -> Iterator[None]:
    """Hold an exclusive single-writer lock on the project for the block.

    The lock lives in a sidecar file so that artifacts can be replaced while
    it is held.  Waits up to *timeout* seconds for a concurrent run.

    Raises:
        ProjectLocked: The lock could not be acquired in time.
        FilesystemError: The lock file could not be created.
    """
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        handle = lock_path.open("a+", encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(lock_path, "create", str(exc)) from exc
    deadline = time.monotonic() + timeout
    with handle:
        while True:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    raise ProjectLocked(lock_path, timeout) from None
                time.sleep(_LOCK_POLL_SECONDS)
        log.debug("project_lock_acquired", path=str(lock_path))
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            log.debug("project_lock_released", path=str(lock_path))
