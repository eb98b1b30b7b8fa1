"""Orchestration layer — Pipeline context and results.

Stages receive everything they need through an explicit, immutable
:class:`PipelineContext`; nothing is shared through module globals or
closures.  Each run returns a :class:`ModuleOperationResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from modforge.descriptor import ModuleDescriptor
from modforge.editors import DependencyManifestEditor, ModuleRegistryEditor
from modforge.layout import ProjectLayout
from modforge.workspace import Formatter, SymlinkManager, TemplateProvisioner


class Operation(str, Enum):
    ADD = "add"
    DELETE = "delete"


class Stage(str, Enum):
    """Pipeline states, in execution order."""

    PROVISION_TEMPLATES = "provision_templates"
    MERGE_REGISTRY = "merge_registry"
    ADD_DEPENDENCY = "add_dependency"
    LINK_PACKAGE = "link_package"
    DEPROVISION_TEMPLATES = "deprovision_templates"
    UNMERGE_REGISTRY = "unmerge_registry"
    REMOVE_DEPENDENCY = "remove_dependency"
    UNLINK_PACKAGE = "unlink_package"


@dataclass(frozen=True)
class Collaborators:
    """Editors and filesystem collaborators bound to one project layout."""

    registry: ModuleRegistryEditor
    manifest: DependencyManifestEditor
    templates: TemplateProvisioner
    symlinks: SymlinkManager
    formatter: Formatter


@dataclass(frozen=True)
class PipelineContext:
    descriptor: ModuleDescriptor
    layout: ProjectLayout
    collaborators: Collaborators

    @property
    def module_path(self) -> Path:
        return self.layout.module_path(self.descriptor)

    @property
    def package_ref(self) -> str:
        return self.layout.package_ref(self.descriptor)


@dataclass
class ModuleOperationResult:
    """Outcome of one add or delete run for a single location."""

    descriptor: ModuleDescriptor
    operation: Operation
    module_path: Path
    registry_path: Path | None = None
    manifest_path: Path | None = None
    symlink_path: Path | None = None
    stages: list[Stage] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "module": self.descriptor.name,
            "package": self.descriptor.package_name,
            "layout": self.descriptor.layout.value,
            "operation": self.operation.value,
            "module_path": str(self.module_path),
            "registry_path": str(self.registry_path) if self.registry_path else None,
            "manifest_path": str(self.manifest_path) if self.manifest_path else None,
            "symlink_path": str(self.symlink_path) if self.symlink_path else None,
            "stages": [s.value for s in self.stages],
            "warnings": list(self.warnings),
        }
