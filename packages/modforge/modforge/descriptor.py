"""Module descriptor — identity of the module an invocation operates on."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from modforge.exceptions import InvalidModuleName

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class Layout(str, Enum):
    """Historical project structures with different path conventions."""

    LEGACY = "legacy"
    CURRENT = "current"


class Location(str, Enum):
    CLIENT = "client"
    SERVER = "server"
    BOTH = "both"

    def expand(self) -> list["Location"]:
        """Concrete locations covered by this one (``both`` → client, server)."""
        if self is Location.BOTH:
            return [Location.CLIENT, Location.SERVER]
        return [self]


@dataclass(frozen=True)
class ModuleDescriptor:
    """Identifies one module for one add/delete invocation.

    ``package_name`` is the owning package directory (``client`` or
    ``server`` for the legacy layout, ``client-react`` / ``server-ts`` by
    default for the current one).  Build descriptors with
    :meth:`ProjectLayout.describe` so the package name follows the
    configured conventions.
    """

    name: str
    package_name: str
    layout: Layout
    location: Location

    def __post_init__(self) -> None:
        if not _IDENTIFIER_RE.match(self.name):
            raise InvalidModuleName(self.name)
        if self.location is Location.BOTH:
            raise ValueError("A descriptor addresses a single location; expand 'both' first.")

    @property
    def is_current(self) -> bool:
        return self.layout is Layout.CURRENT


def decamelize(name: str, separator: str = "_") -> str:
    """``fooBarBaz`` → ``foo_bar_baz`` (or ``foo-bar-baz`` with ``separator='-'``)."""
    spaced = re.sub(r"([a-z\d])([A-Z])", r"\1" + separator + r"\2", name)
    spaced = re.sub(r"([A-Z]+)([A-Z][a-z\d]+)", r"\1" + separator + r"\2", spaced)
    return spaced.lower()


def upper_first(name: str) -> str:
    return name[:1].upper() + name[1:]
