"""Project layout — deterministic path rules for legacy and current projects.

Legacy layout (``--old``)::

    packages/<client|server>/src/modules/<name>/         module directory
    packages/<client|server>/src/modules/index.ts        registry artifact
    tools/templates/module/<client|server>/              template set

Current layout::

    modules/<name>/<client-react|server-ts>/             module directory
    packages/<client|server>/src/modules.ts              registry artifact
    packages/<client|server>/package.json                manifest artifact
    node_modules/@scope/<name>-<package>  ->  module directory (symlink)
    tools/templates/new-module/<client-react|server-ts>/ template set
"""

from __future__ import annotations

from pathlib import Path

from modforge.config import LayoutConfig
from modforge.descriptor import Layout, Location, ModuleDescriptor, decamelize
from modforge.exceptions import EntryFileUnreadable


class ProjectLayout:
    """Resolves every artifact path for a project rooted at *root*.

    Usage::

        layout = ProjectLayout(Path("."), settings.layout)
        descriptor = layout.describe("blog", Location.SERVER, Layout.CURRENT)
        layout.module_path(descriptor)   # modules/blog/server-ts
    """

    def __init__(self, root: Path, config: LayoutConfig | None = None) -> None:
        self.root = root
        self._config = config or LayoutConfig()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def package_name(self, location: Location, layout: Layout) -> str:
        if layout is Layout.LEGACY:
            return location.value
        return self._config.package_names.get(location.value, location.value)

    def describe(self, name: str, location: Location, layout: Layout) -> ModuleDescriptor:
        return ModuleDescriptor(
            name=name,
            package_name=self.package_name(location, layout),
            layout=layout,
            location=location,
        )

    # ------------------------------------------------------------------
    # Module directory
    # ------------------------------------------------------------------

    def module_path(self, d: ModuleDescriptor) -> Path:
        if d.is_current:
            return self.root / "modules" / d.name / d.package_name
        return self.root / "packages" / d.package_name / "src" / "modules" / d.name

    def module_root(self, d: ModuleDescriptor) -> Path:
        """Directory shared by the client and server packages of one module."""
        return self.root / "modules" / d.name

    def templates_path(self, d: ModuleDescriptor) -> Path:
        flavour = self._config.current_templates if d.is_current else self._config.legacy_templates
        return self.root / self._config.templates_dir / flavour / d.package_name

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def package_ref(self, d: ModuleDescriptor) -> str:
        """Import specifier of the module, as written in the registry and manifest."""
        if d.is_current:
            return f"{self._config.package_scope}/{decamelize(d.name, '-')}-{d.package_name}"
        return f"./{d.name}"

    def registry_path(self, d: ModuleDescriptor) -> Path:
        """First existing registry artifact for the module's package.

        Raises:
            EntryFileUnreadable: No candidate file exists.
        """
        src = self.root / "packages" / d.location.value / "src"
        stem = src / "modules"
        candidates = [
            (stem / f"index{ext}") if d.layout is Layout.LEGACY else stem.with_suffix(ext)
            for ext in self._config.registry_extensions
        ]
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        raise EntryFileUnreadable(candidates[0], "no module registry file found")

    def manifest_path(self, d: ModuleDescriptor) -> Path:
        return self.root / "packages" / d.location.value / "package.json"

    def symlink_path(self, d: ModuleDescriptor) -> Path:
        return self.root / "node_modules" / self.package_ref(d)
