"""Workspace — Template provisioning.

A template set is a directory tree (``tools/templates/<flavour>/<package>``)
copied verbatim into the new module directory.  Module-name tokens are
substituted in file contents and in file and directory names:

    $module$    blogPost        the name as given
    $Module$    BlogPost        first letter upper-cased
    $MODULE$    BLOGPOST        upper-cased
    $_module$   blog_post       snake_case
    $-module$   blog-post       kebab-case

The tree is assembled in a hidden staging directory next to the destination
and renamed into place as the very last step, so a failure never leaves a
half-populated module directory behind.
"""

from __future__ import annotations

import os
import re
import shutil
import tempfile
from pathlib import Path

from modforge.descriptor import ModuleDescriptor, decamelize, upper_first
from modforge.exceptions import DirectoryAlreadyExists, FilesystemError, TemplateNotFound
from modforge.layout import ProjectLayout
from modforge.logging import get_logger

log = get_logger(__name__)

_TOKEN_RE = re.compile(r"\$(module|Module|MODULE|_module|-module)\$")


class TokenRenderer:
    """Substitutes module-name tokens in template text.

    Usage::

        renderer = TokenRenderer("blogPost")
        renderer.render("export class $Module$Resolver {}")
        # "export class BlogPostResolver {}"
    """

    def __init__(self, module_name: str) -> None:
        self._values = {
            "module": module_name,
            "Module": upper_first(module_name),
            "MODULE": module_name.upper(),
            "_module": decamelize(module_name, "_"),
            "-module": decamelize(module_name, "-"),
        }

    def render(self, text: str) -> str:
        return _TOKEN_RE.sub(lambda m: self._values[m.group(1)], text)


class TemplateProvisioner:
    """Materialises and removes module directories.

    Usage::

        provisioner = TemplateProvisioner(layout)
        path = provisioner.provision(descriptor)
    """

    def __init__(self, layout: ProjectLayout) -> None:
        self._layout = layout

    def provision(self, descriptor: ModuleDescriptor) -> Path:
        """Create the module directory from its template set.

        Raises:
            DirectoryAlreadyExists: The module directory is already present.
            TemplateNotFound: The template set does not exist.
            FilesystemError: The tree could not be copied or moved into place.
                Parent directories created along the way are removed again.
        """
        destination = self._layout.module_path(descriptor)
        if destination.exists() or destination.is_symlink():
            raise DirectoryAlreadyExists(destination)
        source = self._layout.templates_path(descriptor)
        if not source.is_dir():
            raise TemplateNotFound(source)

        created = [p for p in reversed(destination.parents) if not p.exists()]
        holder: Path | None = None
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            holder = Path(
                tempfile.mkdtemp(
                    prefix=f".{destination.name}.", suffix=".staging", dir=destination.parent
                )
            )
            staging = holder / destination.name
            # copytree carries the template directory's permission bits.
            shutil.copytree(source, staging)
            rendered = self._render_tree(staging, TokenRenderer(descriptor.name))
            os.rename(staging, destination)
        except BaseException as exc:
            if holder is not None:
                shutil.rmtree(holder, ignore_errors=True)
            _remove_empty(created)
            if isinstance(exc, OSError):
                raise FilesystemError(destination, "provision", str(exc)) from exc
            raise
        shutil.rmtree(holder, ignore_errors=True)

        log.info(
            "templates_provisioned",
            source=str(source),
            destination=str(destination),
            files=rendered,
        )
        return destination

    def _render_tree(self, root: Path, renderer: TokenRenderer) -> int:
        """Substitute tokens below *root*; returns the number of files."""
        count = 0
        for dirpath, dirnames, filenames in os.walk(root, topdown=False):
            current = Path(dirpath)
            for filename in filenames:
                path = current / filename
                self._render_file(path, renderer)
                self._rename(path, renderer)
                count += 1
            for dirname in dirnames:
                self._rename(current / dirname, renderer)
        return count

    @staticmethod
    def _render_file(path: Path, renderer: TokenRenderer) -> None:
        try:
            with path.open(encoding="utf-8", newline="") as f:
                text = f.read()
        except UnicodeDecodeError:
            # Binary assets are copied untouched.
            return
        rendered = renderer.render(text)
        if rendered != text:
            with path.open("w", encoding="utf-8", newline="") as f:
                f.write(rendered)

    @staticmethod
    def _rename(path: Path, renderer: TokenRenderer) -> None:
        new_name = renderer.render(path.name)
        if new_name != path.name:
            path.rename(path.with_name(new_name))

    def deprovision(self, path: Path) -> None:
        """Remove the module directory tree. A missing path is a no-op."""
        try:
            if path.is_symlink():
                path.unlink()
            elif path.exists():
                shutil.rmtree(path)
            else:
                return
        except OSError as exc:
            raise FilesystemError(path, "remove", str(exc)) from exc
        log.info("templates_deprovisioned", path=str(path))

    # ------------------------------------------------------------------
    # Reversible removal (used by the delete pipeline)
    # ------------------------------------------------------------------

    def stash(self, path: Path) -> Path | None:
        """Move *path* aside instead of deleting it.

        Returns the stashed location, or None when *path* does not exist.
        """
        if not path.exists():
            return None
        try:
            holder = Path(
                tempfile.mkdtemp(prefix=f".{path.name}.", suffix=".removed", dir=path.parent)
            )
        except OSError as exc:
            raise FilesystemError(path, "move aside", str(exc)) from exc
        stashed = holder / path.name
        try:
            os.rename(path, stashed)
        except OSError as exc:
            holder.rmdir()
            raise FilesystemError(path, "move aside", str(exc)) from exc
        log.debug("module_directory_stashed", path=str(path), stash=str(holder))
        return stashed

    def restore(self, stashed: Path, path: Path) -> None:
        try:
            os.rename(stashed, path)
            stashed.parent.rmdir()
        except OSError as exc:
            raise FilesystemError(path, "restore", str(exc)) from exc
        log.info("module_directory_restored", path=str(path))

    def purge(self, stashed: Path) -> None:
        try:
            shutil.rmtree(stashed.parent)
        except OSError as exc:
            raise FilesystemError(stashed, "remove", str(exc)) from exc

    def prune_root(self, descriptor: ModuleDescriptor) -> bool:
        """Remove the shared ``modules/<name>`` directory once it is empty."""
        if not descriptor.is_current:
            return False
        root = self._layout.module_root(descriptor)
        if root.is_dir() and not any(root.iterdir()):
            root.rmdir()
            log.info("module_root_pruned", path=str(root))
            return True
        return False


def _remove_empty(directories: list[Path]) -> None:
    """Remove *directories* deepest first, stopping at the first non-empty one."""
    for directory in reversed(directories):
        try:
            directory.rmdir()
        except OSError:
            break
