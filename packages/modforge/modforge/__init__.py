"""modforge — Feature-module scaffolding for multi-package applications.

modforge provisions a module directory from templates, registers the module in
the package's module-registry source file and, for the current project layout,
declares it as a dependency in ``package.json`` and links it into
``node_modules``.  Deleting a module reverses every step.

Architecture layers (bottom to top):
    1. Descriptor — module identity and layout path rules
    2. Editors    — registry and dependency-manifest text mutation engine
    3. Workspace  — templates, symlinks, atomic artifact I/O, project lock
    4. Orchestration — add/delete pipelines with compensating actions
    5. CLI        — typer entry point
"""

__version__ = "0.1.0"
__author__ = "modforge Contributors"
__license__ = "Apache-2.0"

from modforge.descriptor import Layout, Location, ModuleDescriptor

__all__ = [
    "__version__",
    "Layout",
    "Location",
    "ModuleDescriptor",
]
