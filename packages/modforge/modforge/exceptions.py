"""modforge — Exception hierarchy.

All exceptions raised by modforge inherit from ModforgeError so that callers
can catch the full family with a single except clause when needed.  Each
class carries a distinct ``exit_code`` that the CLI uses when terminating.

Hierarchy:
    ModforgeError
    ├── InvalidModuleName
    ├── ConfigError
    ├── WorkspaceError
    │   ├── DirectoryAlreadyExists
    │   ├── TemplateNotFound
    │   ├── EntryFileUnreadable
    │   ├── ArtifactWriteError
    │   ├── SymlinkError
    │   ├── ProjectLocked
    │   └── FilesystemError
    └── ArtifactError
        ├── RegistryPatternNotFound
        ├── ManifestPatternNotFound
        ├── ModuleAlreadyRegistered
        └── DependencyAlreadyDeclared
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class ModforgeError(Exception):
    """Base exception for all modforge errors."""

    exit_code: int = 1

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


class InvalidModuleName(ModforgeError):
    """The requested module name is not a valid identifier."""

    exit_code = 2

    def __init__(self, name: str) -> None:
        super().__init__(
            f"'{name}' is not a valid module name: use letters, digits, '_' or '$' "
            "and do not start with a digit",
            context={"name": name},
        )
        self.name = name


class ConfigError(ModforgeError):
    """A configuration file could not be read or holds invalid values."""

    exit_code = 3

    def __init__(self, reason: str, path: Path | None = None) -> None:
        super().__init__(
            "Invalid configuration" + (f" in {path}" if path else "") + f": {reason}",
            context={"reason": reason, "path": str(path) if path else None},
        )
        self.path = path


# ---------------------------------------------------------------------------
# Workspace layer (filesystem)
# ---------------------------------------------------------------------------


class WorkspaceError(ModforgeError):
    """Base for errors raised while touching the project filesystem."""


class DirectoryAlreadyExists(WorkspaceError):
    """The module directory is already present."""

    exit_code = 10

    def __init__(self, path: Path) -> None:
        super().__init__(
            f"The module directory {path} already exists",
            context={"path": str(path)},
        )
        self.path = path


class TemplateNotFound(WorkspaceError):
    """The template set for the requested package is missing."""

    exit_code = 11

    def __init__(self, path: Path) -> None:
        super().__init__(
            f"Template directory {path} does not exist",
            context={"path": str(path)},
        )
        self.path = path


class EntryFileUnreadable(WorkspaceError):
    """A registry or manifest artifact is missing or cannot be read."""

    exit_code = 12

    def __init__(self, path: Path, reason: str = "") -> None:
        super().__init__(
            f"Failed to read {path}" + (f": {reason}" if reason else ""),
            context={"path": str(path), "reason": reason},
        )
        self.path = path


class ArtifactWriteError(WorkspaceError):
    """An artifact could not be replaced on disk."""

    exit_code = 19

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(
            f"Failed to write {path}: {reason}",
            context={"path": str(path), "reason": reason},
        )
        self.path = path


class SymlinkError(WorkspaceError):
    """The workspace symlink for a module could not be created or removed."""

    exit_code = 17

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(
            f"Symlink {path}: {reason}",
            context={"path": str(path), "reason": reason},
        )
        self.path = path


class ProjectLocked(WorkspaceError):
    """Another modforge invocation holds the project lock."""

    exit_code = 18

    def __init__(self, lock_path: Path, timeout: float) -> None:
        super().__init__(
            f"Project is locked by another modforge run ({lock_path}); "
            f"gave up after {timeout:g}s",
            context={"lock_path": str(lock_path), "timeout": timeout},
        )
        self.lock_path = lock_path


class FilesystemError(WorkspaceError):
    """A module directory or the lock file could not be created, moved or removed."""

    exit_code = 20

    def __init__(self, path: Path, action: str, reason: str) -> None:
        super().__init__(
            f"Failed to {action} {path}: {reason}",
            context={"path": str(path), "action": action, "reason": reason},
        )
        self.path = path
        self.action = action


# ---------------------------------------------------------------------------
# Artifact layer (registry / manifest text)
# ---------------------------------------------------------------------------


class ArtifactError(ModforgeError):
    """Base for errors raised by the registry and manifest editors."""


class RegistryPatternNotFound(ArtifactError):
    """The registry artifact holds no (or more than one) registration list."""

    exit_code = 13

    def __init__(self, reason: str, path: Path | None = None) -> None:
        super().__init__(
            f"Module registration list not found: {reason}",
            context={"reason": reason, "path": str(path) if path else None},
        )
        self.reason = reason


class ManifestPatternNotFound(ArtifactError):
    """The manifest has no dependencies block followed by devDependencies."""

    exit_code = 14

    def __init__(self, reason: str, path: Path | None = None) -> None:
        super().__init__(
            f"Dependencies block not found: {reason}",
            context={"reason": reason, "path": str(path) if path else None},
        )
        self.reason = reason


class ModuleAlreadyRegistered(ArtifactError):
    """The module identifier is already part of the registration list."""

    exit_code = 15

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Module '{name}' is already registered",
            context={"name": name},
        )
        self.name = name


class DependencyAlreadyDeclared(ArtifactError):
    """The manifest already declares the module package."""

    exit_code = 16

    def __init__(self, package_ref: str) -> None:
        super().__init__(
            f"Dependency '{package_ref}' is already declared",
            context={"package_ref": package_ref},
        )
        self.package_ref = package_ref
