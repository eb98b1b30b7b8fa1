"""Unit tests — SymlinkManager."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from modforge.descriptor import Layout, Location, ModuleDescriptor
from modforge.exceptions import SymlinkError
from modforge.layout import ProjectLayout
from modforge.workspace import SymlinkManager


@pytest.fixture
def project_layout(current_project: Path) -> ProjectLayout:
    return ProjectLayout(current_project)


@pytest.fixture
def manager(project_layout: ProjectLayout) -> SymlinkManager:
    return SymlinkManager(project_layout)


@pytest.fixture
def blog(project_layout: ProjectLayout) -> ModuleDescriptor:
    descriptor = project_layout.describe("blog", Location.SERVER, Layout.CURRENT)
    project_layout.module_path(descriptor).mkdir(parents=True)
    return descriptor


@pytest.mark.unit
class TestLink:
    def test_creates_relative_link(
        self, manager: SymlinkManager, blog: ModuleDescriptor, current_project: Path
    ) -> None:
        link = manager.link(blog)
        assert link == current_project / "node_modules" / "@gqlapp" / "blog-server-ts"
        assert os.readlink(link) == os.path.join("..", "..", "modules", "blog", "server-ts")
        assert link.resolve() == (current_project / "modules" / "blog" / "server-ts").resolve()

    def test_same_link_is_accepted(self, manager: SymlinkManager, blog: ModuleDescriptor) -> None:
        first = manager.link(blog)
        assert manager.link(blog) == first

    def test_foreign_link_raises(
        self, manager: SymlinkManager, blog: ModuleDescriptor, project_layout: ProjectLayout
    ) -> None:
        link = project_layout.symlink_path(blog)
        link.parent.mkdir(parents=True, exist_ok=True)
        link.symlink_to("/elsewhere")
        with pytest.raises(SymlinkError):
            manager.link(blog)
        assert os.readlink(link) == "/elsewhere"

    def test_real_directory_raises(
        self, manager: SymlinkManager, blog: ModuleDescriptor, project_layout: ProjectLayout
    ) -> None:
        project_layout.symlink_path(blog).mkdir(parents=True)
        with pytest.raises(SymlinkError) as exc_info:
            manager.link(blog)
        assert exc_info.value.exit_code == 17


@pytest.mark.unit
class TestUnlink:
    def test_returns_previous_target(self, manager: SymlinkManager, blog: ModuleDescriptor) -> None:
        link = manager.link(blog)
        target = manager.unlink(blog)
        assert target == Path("..", "..", "modules", "blog", "server-ts")
        assert not link.is_symlink()

    def test_leaves_module_directory(
        self, manager: SymlinkManager, blog: ModuleDescriptor, project_layout: ProjectLayout
    ) -> None:
        manager.link(blog)
        manager.unlink(blog)
        assert project_layout.module_path(blog).is_dir()

    def test_absent_returns_none(self, manager: SymlinkManager, blog: ModuleDescriptor) -> None:
        assert manager.unlink(blog) is None

    def test_real_directory_raises(
        self, manager: SymlinkManager, blog: ModuleDescriptor, project_layout: ProjectLayout
    ) -> None:
        occupied = project_layout.symlink_path(blog)
        occupied.mkdir(parents=True)
        with pytest.raises(SymlinkError):
            manager.unlink(blog)
        assert occupied.is_dir()
