"""Editors — text mutation engine for the registry and manifest artifacts."""

from modforge.editors.manifest import DependencyBlock, DependencyManifestEditor
from modforge.editors.registry import ModuleRegistryEditor, RegistryList, find_registration_list

__all__ = [
    "DependencyBlock",
    "DependencyManifestEditor",
    "ModuleRegistryEditor",
    "RegistryList",
    "find_registration_list",
]
