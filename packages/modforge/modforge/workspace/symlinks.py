"""Workspace — node_modules symlinks for current-layout module packages."""

from __future__ import annotations

import os
from pathlib import Path

from modforge.descriptor import ModuleDescriptor
from modforge.exceptions import SymlinkError
from modforge.layout import ProjectLayout
from modforge.logging import get_logger

log = get_logger(__name__)


class SymlinkManager:
    """Links a module package into the workspace resolution path.

    The link is relative (``node_modules/@gqlapp/blog-server-ts`` →
    ``../../modules/blog/server-ts``) so the project tree can be moved.
    """

    def __init__(self, layout: ProjectLayout) -> None:
        self._layout = layout

    def link(self, descriptor: ModuleDescriptor) -> Path:
        """Create the symlink and return its path.

        An existing link to the same target is accepted.

        Raises:
            SymlinkError: Something else occupies the link path, or the
                filesystem refused the link.
        """
        link_path = self._layout.symlink_path(descriptor)
        target = Path(
            os.path.relpath(self._layout.module_path(descriptor), link_path.parent)
        )

        if link_path.is_symlink():
            if Path(os.readlink(link_path)) == target:
                log.debug("symlink_exists", path=str(link_path))
                return link_path
            raise SymlinkError(link_path, f"already links to {os.readlink(link_path)}")
        if link_path.exists():
            raise SymlinkError(link_path, "path exists and is not a symlink")

        try:
            link_path.parent.mkdir(parents=True, exist_ok=True)
            link_path.symlink_to(target, target_is_directory=True)
        except OSError as exc:
            raise SymlinkError(link_path, str(exc)) from exc

        log.info("symlink_created", path=str(link_path), target=str(target))
        return link_path

    def unlink(self, descriptor: ModuleDescriptor) -> Path | None:
        """Remove the symlink. Returns its former target, None when absent.

        Raises:
            SymlinkError: The link path holds a real file or directory.
        """
        link_path = self._layout.symlink_path(descriptor)
        if not link_path.is_symlink():
            if link_path.exists():
                raise SymlinkError(link_path, "path exists and is not a symlink")
            log.debug("symlink_absent", path=str(link_path))
            return None

        target = Path(os.readlink(link_path))
        try:
            link_path.unlink()
        except OSError as exc:
            raise SymlinkError(link_path, str(exc)) from exc

        log.info("symlink_removed", path=str(link_path))
        return target
