"""Tests for per-variant project compiler arguments."""

from __future__ import annotations

from z_flag_resolver.models.project import (
    BuildDescriptionProject,
    CppRootProject,
    GenericProject,
    KernelProject,
    Project,
    ProvidesCompilerArgs,
    Target,
)
from z_flag_resolver.resolver import ProjectFlagResolver


def _build_project() -> BuildDescriptionProject:
    return BuildDescriptionProject(
        root="/p",
        targets=[
            Target(
                name="app",
                sources=["main.c"],
                configuration_variables={"debug": [("app_CFLAGS", "-Iinc -Wall")]},
            ),
            Target(name="tool", path="tools", sources=["tool.c"]),
        ],
        variables=[("CFLAGS", "-g -I/x -DFOO")],
        configuration_variables={
            "debug": [("CPPFLAGS", "-DDEBUG -O0")],
            "release": [("CPPFLAGS", "-DNDEBUG")],
        },
    )


class TestProjectFlagResolver:
    def test_cpp_root_project(self):
        project = CppRootProject(
            root="/proj/",
            include_paths=["include", "/gen"],
            system_include_paths=["/opt/sys"],
            macros={"A": None, "B": "2"},
        )
        assert ProjectFlagResolver().args_for(project) == [
            "-I/proj/include",
            "-I/proj/gen",
            "-I/opt/sys",
            "-DA",
            "-DB=2",
            "-I/proj",
        ]

    def test_kernel_project(self):
        project = KernelProject(root="/k", include_paths=["/k/include"], build_dir="/b")
        args = ProjectFlagResolver().args_for(project, source_file="/k/drivers/net/e1000.c")
        assert args == [
            "-include",
            "/k/include/linux/kconfig.h",
            "-I/k/include",
            "-I/k/drivers/net",
            "-I/b/drivers/net",
            "-D__KERNEL__",
        ]

    def test_kernel_in_tree_build_mirror_not_repeated(self):
        project = KernelProject(root="/k")
        assert project.build_dir == "/k"
        args = ProjectFlagResolver().args_for(project, source_file="/k/fs/ext4/inode.c")
        assert args.count("-I/k/fs/ext4") == 1

    def test_build_description_target_found_from_source(self):
        args = ProjectFlagResolver().args_for(_build_project(), source_file="/p/main.c")
        assert args == ["-I/p", "-I/x", "-DFOO", "-DDEBUG", "-Iinc"]

    def test_build_description_target_by_name(self):
        args = ProjectFlagResolver().args_for(_build_project(), target="app")
        assert args[-1] == "-Iinc"

    def test_build_description_other_configuration(self):
        project = _build_project()
        project.configuration = "release"
        args = ProjectFlagResolver().args_for(project, source_file="/p/main.c")
        assert args == ["-I/p", "-I/x", "-DFOO", "-DNDEBUG"]

    def test_target_in_subdirectory(self):
        project = _build_project()
        assert project.target_for("/p/tools/tool.c").name == "tool"
        assert project.target_for("/p/tool.c") is None

    def test_generic_project_contributes_nothing(self):
        project = GenericProject(root="/g", project_type="generic-git")
        assert not isinstance(project, ProvidesCompilerArgs)
        assert ProjectFlagResolver().args_for(project, source_file="/g/a.c") == []

    def test_no_project(self):
        assert ProjectFlagResolver().args_for(None, source_file="/a.c") == []


class TestProject:
    def test_root_normalized(self):
        project = Project(root="/a/b/../c/")
        assert project.root == "/a/c"
        assert project.name == "c"

    def test_contains(self):
        project = Project(root="/a/c")
        assert project.contains("/a/c")
        assert project.contains("/a/c/d/e.c")
        assert not project.contains("/a/cd/e.c")

    def test_kind(self):
        assert CppRootProject(root="/x").kind == "CppRootProject"
