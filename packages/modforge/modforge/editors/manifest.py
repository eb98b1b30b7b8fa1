"""Editors — Package manifest dependency block.

Only the text between ``"dependencies": {`` and the ``}`` that is directly
followed by ``, "devDependencies"`` is ever rewritten; everything before and
after the block stays byte-identical.

Entries are handled as raw text (``\\n    "name": "^1.0.0"``), split on commas
that sit outside string literals.  After an insertion every entry is sorted
as a raw string.  New entries copy the leading whitespace of the existing
first entry, which keeps that raw order alphabetical by package name for a
consistently indented manifest.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from modforge.editors.segments import drop_segment, leading_whitespace
from modforge.exceptions import DependencyAlreadyDeclared, ManifestPatternNotFound
from modforge.logging import get_logger

log = get_logger(__name__)

_BLOCK_RE = re.compile(
    r'"dependencies"\s*:\s*\{(?P<body>[^{}]*)\}(?=\s*,\s*"devDependencies")'
)
_KEY_RE = re.compile(r'^\s*"((?:[^"\\]|\\.)*)"\s*:')

MatchMode = Literal["exact", "substring"]


def _split_entries(body: str) -> list[str]:
    """Split *body* on commas outside double-quoted strings."""
    entries: list[str] = []
    in_string = False
    start = 0
    i = 0
    while i < len(body):
        ch = body[i]
        if in_string:
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == ",":
            entries.append(body[start:i])
            start = i + 1
        i += 1
    entries.append(body[start:])
    return entries


def entry_key(entry: str) -> str | None:
    match = _KEY_RE.match(entry)
    return match.group(1) if match else None


@dataclass(frozen=True)
class DependencyBlock:
    """The dependency map as found in a manifest document.

    ``entries`` are the raw entry texts with their own leading whitespace;
    ``trailing`` is the whitespace between the last entry and ``}``.
    """

    start: int
    end: int
    entries: tuple[str, ...]
    trailing: str

    @classmethod
    def parse(cls, doc: str, path: Path | None = None) -> "DependencyBlock":
        """Locate the unique dependencies block in *doc*.

        Raises:
            ManifestPatternNotFound: The block is missing, not followed by
                ``devDependencies``, or present more than once.
        """
        matches = list(_BLOCK_RE.finditer(doc))
        if not matches:
            raise ManifestPatternNotFound(
                "expected '\"dependencies\": {...}' followed by '\"devDependencies\"'", path
            )
        if len(matches) > 1:
            raise ManifestPatternNotFound(f"{len(matches)} dependency blocks", path)

        match = matches[0]
        body = match.group("body")
        core = body.rstrip()
        entries = [e for e in _split_entries(core) if e.strip()] if core.strip() else []
        return cls(
            start=match.start("body"),
            end=match.end("body"),
            entries=tuple(entries),
            trailing=body[len(core) :],
        )

    @property
    def keys(self) -> list[str]:
        return [k for k in (entry_key(e) for e in self.entries) if k is not None]

    @property
    def indent(self) -> str:
        """Leading whitespace for a new entry.

        Copied from the first entry.  An empty multi-line block nests one
        level deeper than its closing brace; an inline one stays inline.
        """
        if self.entries:
            return leading_whitespace(self.entries[0])
        if "\n" not in self.trailing:
            return ""
        closing = self.trailing.rsplit("\n", 1)[1]
        step = "\t" if closing.startswith("\t") else "  "
        return "\n" + closing + step

    def render(self, doc: str, entries: list[str]) -> str:
        return doc[: self.start] + ",".join(entries) + self.trailing + doc[self.end :]


class DependencyManifestEditor:
    """Adds and removes one dependency entry of a package manifest.

    Usage::

        editor = DependencyManifestEditor(version_range="^1.0.0")
        text = editor.add_dependency(text, "@gqlapp/blog-server-ts")
    """

    def __init__(self, version_range: str = "^1.0.0", match: MatchMode = "exact") -> None:
        self._version_range = version_range
        self._match = match

    def add_dependency(self, doc: str, package_ref: str, path: Path | None = None) -> str:
        """Return *doc* with *package_ref* declared and all entries raw-sorted.

        Raises:
            ManifestPatternNotFound: The dependencies block cannot be located.
            DependencyAlreadyDeclared: *package_ref* is already a key.
        """
        block = DependencyBlock.parse(doc, path)
        if package_ref in block.keys:
            raise DependencyAlreadyDeclared(package_ref)

        entries = list(block.entries)
        entries.append(f'{block.indent}"{package_ref}": "{self._version_range}"')
        entries.sort()
        log.debug("dependency_added", package=package_ref, total=len(entries))
        return block.render(doc, entries)

    def remove_dependency(self, doc: str, package_ref: str, path: Path | None = None) -> str:
        """Return *doc* without the *package_ref* entry; order is left as is.

        With ``match="substring"`` every entry whose text contains
        *package_ref* is dropped, including unrelated packages that merely
        share a prefix or suffix with it.

        Raises:
            ManifestPatternNotFound: The dependencies block cannot be located.
        """
        block = DependencyBlock.parse(doc, path)
        entries = list(block.entries)
        removed = 0
        for index in reversed(range(len(entries))):
            if self._matches(entries[index], package_ref):
                drop_segment(entries, index)
                removed += 1
        if not removed:
            log.debug("dependency_absent", package=package_ref)
            return doc
        # A dropped sole entry leaves only its whitespace behind.
        entries = [e for e in entries if e.strip()]
        return block.render(doc, entries)

    def _matches(self, entry: str, package_ref: str) -> bool:
        if self._match == "substring":
            return package_ref in entry
        return entry_key(entry) == package_ref
