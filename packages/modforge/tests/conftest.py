"""Shared pytest fixtures for the modforge test suite."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest

from modforge.config import Settings, override_settings
from modforge.descriptor import Layout, Location, ModuleDescriptor
from modforge.layout import ProjectLayout
from modforge.orchestration import Orchestrator

SERVER_REGISTRY = """\
import ServerModule from '@gqlapp/module-server-ts';
import core from '@gqlapp/core-server-ts';
import user from '@gqlapp/user-server-ts';

export default new ServerModule(core, user);
"""

CLIENT_REGISTRY = """\
import ClientModule from '@gqlapp/module-client-react';
import core from '@gqlapp/core-client-react';

export default new ClientModule(
  core,
);
"""

LEGACY_SERVER_REGISTRY = """\
import counter from './counter';
import post from './post';

import ServerModule from './ServerModule';

export default new ServerModule(counter, post);
"""

SERVER_MANIFEST = """\
{
  "name": "@gqlapp/server-ts",
  "version": "1.0.0",
  "dependencies": {
    "@gqlapp/core-server-ts": "^1.0.0",
    "@gqlapp/user-server-ts": "^1.0.0",
    "graphql": "^14.1.1"
  },
  "devDependencies": {
    "jest": "^24.0.0"
  }
}
"""

CLIENT_MANIFEST = """\
{
  "name": "@gqlapp/client-react",
  "dependencies": {
    "@gqlapp/core-client-react": "^1.0.0",
    "react": "^16.8.0"
  },
  "devDependencies": {
    "enzyme": "^3.0.0"
  }
}
"""


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _write_templates(root: Path, flavour: str, package: str) -> None:
    base = root / "tools" / "templates" / flavour / package
    _write(
        base / "package.json",
        '{\n  "name": "@gqlapp/$-module$-' + package + '",\n  "version": "1.0.0"\n}\n',
    )
    _write(
        base / "src" / "index.ts",
        "import $Module$Resolver from './$Module$Resolver';\n\n"
        "export const $MODULE$_KEY = '$_module$';\n"
        "export default new Module({ name: '$module$', resolvers: [$Module$Resolver] });\n",
    )
    _write(base / "src" / "$Module$Resolver.ts", "export default class $Module$Resolver {}\n")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    settings = Settings(
        formatter={"enabled": False},
        lock={"timeout_seconds": 0.0},
        logging={"level": "debug", "format": "console"},
    )
    override_settings(settings)
    return settings


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@pytest.fixture
def current_project(tmp_path: Path) -> Path:
    """A current-layout monorepo with a server and a client package."""
    root = tmp_path / "app"
    _write(root / "packages" / "server" / "src" / "modules.ts", SERVER_REGISTRY)
    _write(root / "packages" / "server" / "package.json", SERVER_MANIFEST)
    _write(root / "packages" / "client" / "src" / "modules.ts", CLIENT_REGISTRY)
    _write(root / "packages" / "client" / "package.json", CLIENT_MANIFEST)
    _write_templates(root, "new-module", "server-ts")
    _write_templates(root, "new-module", "client-react")
    (root / "node_modules" / "@gqlapp").mkdir(parents=True)
    (root / "modules").mkdir()
    return root


@pytest.fixture
def legacy_project(tmp_path: Path) -> Path:
    """A legacy-layout project: modules live inside each package."""
    root = tmp_path / "legacy-app"
    _write(root / "packages" / "server" / "src" / "modules" / "index.ts", LEGACY_SERVER_REGISTRY)
    _write(root / "packages" / "server" / "package.json", SERVER_MANIFEST)
    _write_templates(root, "module", "server")
    return root


@pytest.fixture
def orchestrator(current_project: Path, test_settings: Settings) -> Orchestrator:
    return Orchestrator(current_project, test_settings)


@pytest.fixture
def legacy_orchestrator(legacy_project: Path, test_settings: Settings) -> Orchestrator:
    return Orchestrator(legacy_project, test_settings)


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


@pytest.fixture
def layout() -> ProjectLayout:
    return ProjectLayout(Path("/project"))


@pytest.fixture
def legacy_descriptor(layout: ProjectLayout) -> ModuleDescriptor:
    return layout.describe("baz", Location.SERVER, Layout.LEGACY)


@pytest.fixture
def current_descriptor(layout: ProjectLayout) -> ModuleDescriptor:
    return layout.describe("blogPost", Location.SERVER, Layout.CURRENT)


# ---------------------------------------------------------------------------
# Tree snapshots
# ---------------------------------------------------------------------------


def _snapshot(root: Path) -> dict[str, bytes | str]:
    result: dict[str, bytes | str] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        for name in dirnames + filenames:
            path = current / name
            rel = str(path.relative_to(root))
            if path.is_symlink():
                result[rel] = f"-> {os.readlink(path)}"
            elif path.is_dir():
                result[rel] = "<dir>"
            elif name != ".modforge.lock":
                result[rel] = path.read_bytes()
    return result


@pytest.fixture
def snapshot() -> Callable[[Path], dict[str, bytes | str]]:
    """Every directory, file (content) and symlink (target) below a root.

    The project lock file is ignored: it is created on first use.
    """
    return _snapshot
