"""Orchestration layer — Add and delete pipelines.

State machines:
    add:    provision_templates -> merge_registry
                -> (current layout) add_dependency -> link_package
    delete: deprovision_templates -> unmerge_registry
                -> (current layout) remove_dependency -> unlink_package

Every run holds the project lock, reads and transforms the artifacts in
memory before the first filesystem change (so malformed artifacts abort
without side effects), and registers a compensating action after each
applied stage.  The first failure unwinds the compensations and re-raises;
the caller decides how to terminate.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

from modforge.config import Settings, get_settings
from modforge.descriptor import Layout, Location, ModuleDescriptor
from modforge.editors import DependencyManifestEditor, ModuleRegistryEditor
from modforge.exceptions import DirectoryAlreadyExists
from modforge.layout import ProjectLayout
from modforge.logging import bind_operation_context, clear_operation_context, get_logger
from modforge.orchestration.context import (
    Collaborators,
    ModuleOperationResult,
    Operation,
    PipelineContext,
    Stage,
)
from modforge.orchestration.saga import CompensationStack
from modforge.workspace import (
    Formatter,
    SymlinkManager,
    TemplateProvisioner,
    project_lock,
    read_artifact,
    write_artifact,
)

log = get_logger(__name__)


class Orchestrator:
    """Adds and deletes feature modules of one project.

    Usage::

        orchestrator = Orchestrator(Path("."), settings)
        descriptor = orchestrator.describe("blog", Location.SERVER, Layout.CURRENT)[0]
        result = orchestrator.add_module(descriptor)
    """

    def __init__(
        self,
        root: Path,
        settings: Settings | None = None,
        formatter: Formatter | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.layout = ProjectLayout(root, settings.layout)
        self._collaborators = Collaborators(
            registry=ModuleRegistryEditor(self.layout),
            manifest=DependencyManifestEditor(
                version_range=settings.layout.version_range,
                match=settings.manifest.match,
            ),
            templates=TemplateProvisioner(self.layout),
            symlinks=SymlinkManager(self.layout),
            formatter=formatter or Formatter(settings.formatter, cwd=root),
        )
        self._lock_path = root / settings.lock.filename
        self._lock_timeout = settings.lock.timeout_seconds

    def describe(self, name: str, location: Location, layout: Layout) -> list[ModuleDescriptor]:
        """One descriptor per concrete location (``both`` yields client and server)."""
        return [self.layout.describe(name, loc, layout) for loc in location.expand()]

    # ------------------------------------------------------------------
    # Public pipelines
    # ------------------------------------------------------------------

    def add_module(self, descriptor: ModuleDescriptor) -> ModuleOperationResult:
        """Provision, register and (current layout) declare and link a module.

        Raises:
            ModforgeError: Any stage failed; applied stages have been undone.
        """
        bind_operation_context(module_name=descriptor.name, operation=Operation.ADD.value)
        try:
            with project_lock(self._lock_path, self._lock_timeout):
                stack = CompensationStack()
                result = self._run(stack, [descriptor], self._add)[0]
        finally:
            clear_operation_context()
        log.info(
            "module_added",
            module=descriptor.name,
            package=descriptor.package_name,
            path=str(result.module_path),
        )
        return result

    def delete_module(self, descriptor: ModuleDescriptor) -> ModuleOperationResult:
        return self.delete_modules([descriptor])[0]

    def delete_modules(self, descriptors: Sequence[ModuleDescriptor]) -> list[ModuleOperationResult]:
        """Delete a module from one or more locations as a single unit.

        A failure in any location restores every location touched so far.

        Raises:
            ModforgeError: Any stage failed; applied stages have been undone.
        """
        if not descriptors:
            return []
        bind_operation_context(module_name=descriptors[0].name, operation=Operation.DELETE.value)
        try:
            with project_lock(self._lock_path, self._lock_timeout):
                stack = CompensationStack()
                results = self._run(stack, descriptors, self._delete)
        finally:
            clear_operation_context()
        for result in results:
            log.info(
                "module_deleted",
                module=result.descriptor.name,
                package=result.descriptor.package_name,
                warnings=len(result.warnings),
            )
        return results

    # ------------------------------------------------------------------
    # Runner
    # ------------------------------------------------------------------

    def _run(
        self,
        stack: CompensationStack,
        descriptors: Sequence[ModuleDescriptor],
        pipeline: Callable[[PipelineContext, CompensationStack], ModuleOperationResult],
    ) -> list[ModuleOperationResult]:
        results: list[ModuleOperationResult] = []
        try:
            for descriptor in descriptors:
                ctx = PipelineContext(
                    descriptor=descriptor,
                    layout=self.layout,
                    collaborators=self._collaborators,
                )
                results.append(pipeline(ctx, stack))
        except Exception as exc:
            log.error(
                "pipeline_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                compensations=len(stack),
            )
            failed = stack.unwind()
            if failed:
                log.error("rollback_incomplete", stages=failed)
            raise
        stack.commit()
        return results

    def _replace(
        self,
        ctx: PipelineContext,
        stack: CompensationStack,
        stage: Stage,
        path: Path,
        original: str,
        updated: str,
    ) -> None:
        """Persist one artifact edit and register its inverse."""
        if updated == original:
            log.debug("artifact_unchanged", stage=stage.value, path=str(path))
            return
        write_artifact(path, updated)
        stack.push(stage.value, lambda: write_artifact(path, original))
        ctx.collaborators.formatter.format(path)

    # ------------------------------------------------------------------
    # Add
    # ------------------------------------------------------------------

    def _add(self, ctx: PipelineContext, stack: CompensationStack) -> ModuleOperationResult:
        d = ctx.descriptor
        c = ctx.collaborators
        result = ModuleOperationResult(descriptor=d, operation=Operation.ADD, module_path=ctx.module_path)

        if ctx.module_path.exists():
            raise DirectoryAlreadyExists(ctx.module_path)

        registry_path = self.layout.registry_path(d)
        registry_text = read_artifact(registry_path)
        registry_updated = c.registry.add_entry(registry_text, d, registry_path)

        manifest_path: Path | None = None
        manifest_text = manifest_updated = ""
        if d.is_current:
            manifest_path = self.layout.manifest_path(d)
            manifest_text = read_artifact(manifest_path)
            manifest_updated = c.manifest.add_dependency(manifest_text, ctx.package_ref, manifest_path)

        log.info("copying_templates", package=d.package_name)
        path = c.templates.provision(d)
        stack.push(Stage.PROVISION_TEMPLATES.value, lambda: self._undo_provision(ctx, path))
        result.stages.append(Stage.PROVISION_TEMPLATES)

        self._replace(ctx, stack, Stage.MERGE_REGISTRY, registry_path, registry_text, registry_updated)
        result.registry_path = registry_path
        result.stages.append(Stage.MERGE_REGISTRY)

        if manifest_path is None:
            return result

        self._replace(ctx, stack, Stage.ADD_DEPENDENCY, manifest_path, manifest_text, manifest_updated)
        result.manifest_path = manifest_path
        result.stages.append(Stage.ADD_DEPENDENCY)

        result.symlink_path = c.symlinks.link(d)
        stack.push(Stage.LINK_PACKAGE.value, lambda: c.symlinks.unlink(d))
        result.stages.append(Stage.LINK_PACKAGE)
        return result

    def _undo_provision(self, ctx: PipelineContext, path: Path) -> None:
        ctx.collaborators.templates.deprovision(path)
        ctx.collaborators.templates.prune_root(ctx.descriptor)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def _delete(self, ctx: PipelineContext, stack: CompensationStack) -> ModuleOperationResult:
        d = ctx.descriptor
        c = ctx.collaborators
        result = ModuleOperationResult(descriptor=d, operation=Operation.DELETE, module_path=ctx.module_path)

        registry_path = self.layout.registry_path(d)
        registry_text = read_artifact(registry_path)
        registry_updated = c.registry.remove_entry(registry_text, d, registry_path)

        manifest_path: Path | None = None
        manifest_text = manifest_updated = ""
        if d.is_current:
            manifest_path = self.layout.manifest_path(d)
            manifest_text = read_artifact(manifest_path)
            manifest_updated = c.manifest.remove_dependency(manifest_text, ctx.package_ref, manifest_path)

        log.info("deleting_module_files", package=d.package_name)
        path = ctx.module_path
        stashed = c.templates.stash(path)
        if stashed is None:
            log.warning("module_directory_missing", path=str(path))
            result.warnings.append(f"Module directory {path} not found")
        else:
            stack.push(Stage.DEPROVISION_TEMPLATES.value, lambda: c.templates.restore(stashed, path))
            stack.defer(Stage.DEPROVISION_TEMPLATES.value, lambda: c.templates.purge(stashed))
        result.stages.append(Stage.DEPROVISION_TEMPLATES)

        self._replace(ctx, stack, Stage.UNMERGE_REGISTRY, registry_path, registry_text, registry_updated)
        result.registry_path = registry_path
        result.stages.append(Stage.UNMERGE_REGISTRY)

        if manifest_path is None:
            return result

        self._replace(
            ctx, stack, Stage.REMOVE_DEPENDENCY, manifest_path, manifest_text, manifest_updated
        )
        result.manifest_path = manifest_path
        result.stages.append(Stage.REMOVE_DEPENDENCY)

        link_path = self.layout.symlink_path(d)
        if c.symlinks.unlink(d) is not None:
            stack.push(Stage.UNLINK_PACKAGE.value, lambda: c.symlinks.link(d))
            result.symlink_path = link_path
        result.stages.append(Stage.UNLINK_PACKAGE)
        # Runs after the purge so the stash no longer occupies modules/<name>.
        stack.defer("prune_module_root", lambda: c.templates.prune_root(d))
        return result
