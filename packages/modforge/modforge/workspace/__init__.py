"""Workspace — filesystem collaborators of the add/delete pipelines."""

from modforge.workspace.files import project_lock, read_artifact, write_artifact
from modforge.workspace.formatter import Formatter
from modforge.workspace.symlinks import SymlinkManager
from modforge.workspace.templates import TemplateProvisioner, TokenRenderer

__all__ = [
    "Formatter",
    "SymlinkManager",
    "TemplateProvisioner",
    "TokenRenderer",
    "project_lock",
    "read_artifact",
    "write_artifact",
]
