"""Editors — Module registry artifact.

The registry artifact is a source file of the host application that imports
every active module and lists it in a single registration expression::

    import blog from '@gqlapp/blog-server-ts';
    import user from '@gqlapp/user-server-ts';

    export default new ServerModule(blog, user);

The editor never parses the host language.  It locates the one call whose
callee ends in ``Module`` and scans its argument list with a small
bracket/quote-aware scanner, so only the text between the parentheses and the
module's own import line are ever rewritten.  Whitespace around list items is
kept with the items, which makes ``remove_entry(add_entry(doc, d), d) == doc``
hold for any document that did not already list ``d``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from modforge.descriptor import ModuleDescriptor
from modforge.editors.segments import drop_segment
from modforge.exceptions import ModuleAlreadyRegistered, RegistryPatternNotFound
from modforge.layout import ProjectLayout
from modforge.logging import get_logger

log = get_logger(__name__)

_CALL_HEAD_RE = re.compile(r"(?<![\w$])[A-Za-z_$][\w$]*Module\(|(?<![\w$])Module\(")
_OPENERS = "([{"
_CLOSERS = ")]}"
_QUOTES = "'\"`"


@dataclass(frozen=True)
class RegistryList:
    """The registration-list expression found in a registry document.

    ``items`` are the raw comma-separated segments between the parentheses,
    surrounding whitespace included.  ``open`` is the index just past ``(``
    and ``close`` the index of the matching ``)``.
    """

    callee: str
    open: int
    close: int
    items: tuple[str, ...]

    @property
    def identifiers(self) -> list[str]:
        return [item.strip() for item in self.items if item.strip()]

    def __contains__(self, name: object) -> bool:
        return name in self.identifiers

    def prepend(self, name: str) -> str:
        """Argument text with *name* listed first."""
        inner = ",".join(self.items)
        rest = inner.lstrip()
        leading = inner[: len(inner) - len(rest)]
        if not rest:
            return leading + name
        return f"{leading}{name}, {rest}"

    def without(self, name: str) -> str:
        """Argument text with every occurrence of *name* removed."""
        segments = list(self.items)
        for index in reversed(range(len(segments))):
            if segments[index].strip() == name:
                drop_segment(segments, index)
        return ",".join(segments)

    def splice(self, doc: str, arguments: str) -> str:
        return doc[: self.open] + arguments + doc[self.close :]


def _literal_end(doc: str, i: int) -> int | None:
    """End of the string or comment opening at *i*, or None for plain code."""
    ch = doc[i]
    if ch in _QUOTES:
        j = i + 1
        while j < len(doc):
            if doc[j] == "\\":
                j += 2
            elif doc[j] == ch:
                return j + 1
            else:
                j += 1
        return len(doc)
    if doc.startswith("//", i):
        newline = doc.find("\n", i)
        return len(doc) if newline < 0 else newline
    if doc.startswith("/*", i):
        end = doc.find("*/", i + 2)
        return len(doc) if end < 0 else end + 2
    return None


def _mask_literals(doc: str) -> str:
    """*doc* with every string and comment blanked out, offsets unchanged."""
    parts: list[str] = []
    i = last = 0
    while i < len(doc):
        end = _literal_end(doc, i)
        if end is None:
            i += 1
            continue
        parts.append(doc[last:i])
        parts.append(" " * (end - i))
        i = last = end
    parts.append(doc[last:])
    return "".join(parts)


def _scan_arguments(doc: str, start: int) -> tuple[tuple[str, ...], int] | None:
    """Split the argument list starting at *start* on top-level commas.

    Returns the raw segments and the index of the closing parenthesis, or
    ``None`` when the brackets never balance.
    """
    depth = 0
    segment_start = start
    segments: list[str] = []
    i = start
    while i < len(doc):
        end = _literal_end(doc, i)
        if end is not None:
            i = end
            continue
        ch = doc[i]
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            if depth == 0:
                if ch != ")":
                    return None
                segments.append(doc[segment_start:i])
                return tuple(segments), i
            depth -= 1
        elif ch == "," and depth == 0:
            segments.append(doc[segment_start:i])
            segment_start = i + 1
        i += 1
    return None


def find_registration_list(doc: str, path: Path | None = None) -> RegistryList:
    """Locate the single ``...Module(<ids>)`` expression in *doc*.

    Calls nested inside an earlier list are part of that list, not
    candidates of their own.  Mentions inside strings and comments are
    ignored.

    Raises:
        RegistryPatternNotFound: No list, an unbalanced list, or more than one.
    """
    found: list[RegistryList] = []
    for match in _CALL_HEAD_RE.finditer(_mask_literals(doc)):
        if found and match.start() < found[-1].close:
            continue
        scanned = _scan_arguments(doc, match.end())
        if scanned is None:
            raise RegistryPatternNotFound(
                f"unbalanced argument list after '{match.group(0)}'", path
            )
        items, close = scanned
        found.append(
            RegistryList(
                callee=match.group(0)[:-1],
                open=match.end(),
                close=close,
                items=items,
            )
        )

    if not found:
        raise RegistryPatternNotFound("no '<Name>Module(...)' expression", path)
    if len(found) > 1:
        raise RegistryPatternNotFound(
            f"{len(found)} candidate expressions ({', '.join(f.callee for f in found)})",
            path,
        )
    return found[0]


class ModuleRegistryEditor:
    """Adds and removes one module's import and registration entry.

    Both operations are pure text transforms: the caller persists the returned
    document and runs the formatter afterwards.

    Usage::

        editor = ModuleRegistryEditor(layout)
        text = editor.add_entry(text, descriptor)
    """

    def __init__(self, layout: ProjectLayout) -> None:
        self._layout = layout

    def import_line(self, descriptor: ModuleDescriptor) -> str:
        return f"import {descriptor.name} from '{self._layout.package_ref(descriptor)}';\n"

    def _import_re(self, descriptor: ModuleDescriptor) -> re.Pattern[str]:
        ref = re.escape(self._layout.package_ref(descriptor))
        name = re.escape(descriptor.name)
        return re.compile(
            rf"^import[ \t]+{name}[ \t]+from[ \t]+(['\"]){ref}\1;?[ \t]*(?:\r?\n|\Z)",
            re.MULTILINE,
        )

    def add_entry(self, doc: str, descriptor: ModuleDescriptor, path: Path | None = None) -> str:
        """Return *doc* with the module imported first and listed first.

        Raises:
            RegistryPatternNotFound: The registration list cannot be located.
            ModuleAlreadyRegistered: The module is already listed or imported.
        """
        registration = find_registration_list(doc, path)
        if descriptor.name in registration or self._import_re(descriptor).search(doc):
            raise ModuleAlreadyRegistered(descriptor.name)

        arguments = registration.prepend(descriptor.name)
        updated = self.import_line(descriptor) + registration.splice(doc, arguments)
        log.debug(
            "registry_entry_added",
            module=descriptor.name,
            callee=registration.callee,
            registered=len(registration.identifiers) + 1,
        )
        return updated

    def remove_entry(self, doc: str, descriptor: ModuleDescriptor, path: Path | None = None) -> str:
        """Return *doc* without the module's list entry and import line.

        A module that is not registered leaves the document unchanged.

        Raises:
            RegistryPatternNotFound: The registration list cannot be located.
        """
        registration = find_registration_list(doc, path)
        updated = doc
        if descriptor.name in registration:
            updated = registration.splice(doc, registration.without(descriptor.name))
        updated = self._import_re(descriptor).sub("", updated)
        if updated == doc:
            log.debug("registry_entry_absent", module=descriptor.name)
        return updated
