"""Project object variants produced by project type loaders."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

KERNEL_CONFIG_HEADER = "include/linux/kconfig.h"
KERNEL_MACRO = "__KERNEL__"


@runtime_checkable
class ProvidesCompilerArgs(Protocol):
    """Capability of project variants that contribute their own compiler flags."""

    def compiler_args(self, target: Target | None, source_file: str | None) -> list[str]: ...


@dataclass
class Target:
    """A buildable unit inside a project (program, library, ...)."""

    name: str
    path: str = ""  # directory relative to the project root
    sources: list[str] = field(default_factory=list)
    # {"debug": [("CFLAGS", "-g -DDEBUG")], ...}
    configuration_variables: dict[str, list[tuple[str, str]]] = field(default_factory=dict)


@dataclass
class Project:
    """Base project object: root, include paths, macros and targets."""

    root: str
    name: str = ""
    include_paths: list[str] = field(default_factory=list)
    system_include_paths: list[str] = field(default_factory=list)
    macros: dict[str, str | None] = field(default_factory=dict)
    targets: list[Target] = field(default_factory=list)

    def __post_init__(self) -> None:
        root = os.path.abspath(self.root)
        self.root = root.rstrip(os.sep) or os.sep
        if not self.name:
            self.name = Path(self.root).name

    @property
    def kind(self) -> str:
        return type(self).__name__

    def contains(self, path: str) -> bool:
        """True if ``path`` lies inside this project's root."""
        candidate = os.path.abspath(path)
        root = self.root if self.root.endswith(os.sep) else self.root + os.sep
        return candidate == self.root or candidate.startswith(root)

    def target_for(self, source_file: str) -> Target | None:
        """Find the target whose source list names ``source_file``."""
        source = os.path.abspath(source_file)
        for target in self.targets:
            target_dir = os.path.join(self.root, target.path)
            for src in target.sources:
                if os.path.normpath(os.path.join(target_dir, src)) == source:
                    return target
        return None


@dataclass
class CppRootProject(Project):
    """Project whose include paths are declared relative to its root.

    Paths starting with a separator are appended to the root verbatim
    ("/include" -> "<root>/include").
    """

    def compiler_args(self, target: Target | None, source_file: str | None) -> list[str]:
        args = [f"-I{self._under_root(inc)}" for inc in self.include_paths]
        args.extend(f"-I{inc}" for inc in self.system_include_paths)
        for name, value in self.macros.items():
            args.append(f"-D{name}" if value is None else f"-D{name}={value}")
        args.append(f"-I{self.root}")
        return args

    def _under_root(self, relative: str) -> str:
        if relative.startswith(("/", os.sep)):
            return f"{self.root}{relative}"
        return f"{self.root}{os.sep}{relative}"


@dataclass
class KernelProject(Project):
    """Linux kernel source tree, optionally built out of tree."""

    build_dir: str = ""
    arch: str = "x86"

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.build_dir:
            self.build_dir = self.root

    def compiler_args(self, target: Target | None, source_file: str | None) -> list[str]:
        args = ["-include", os.path.join(self.root, KERNEL_CONFIG_HEADER)]
        args.extend(f"-I{inc}" for inc in self.include_paths)
        if source_file:
            file_dir = os.path.dirname(os.path.abspath(source_file))
            args.append(f"-I{file_dir}")
            if self.contains(file_dir):
                rel = os.path.relpath(file_dir, self.root)
                mirrored = os.path.normpath(os.path.join(self.build_dir, rel))
                if mirrored != file_dir:
                    args.append(f"-I{mirrored}")
        args.append(f"-D{KERNEL_MACRO}")
        return args


@dataclass
class BuildDescriptionProject(Project):
    """Project described by a build file carrying flag variables.

    ``variables`` are project-wide; ``configuration_variables`` and each
    target's table are keyed by configuration name.
    """

    variables: list[tuple[str, str]] = field(default_factory=list)
    configuration_variables: dict[str, list[tuple[str, str]]] = field(default_factory=dict)
    configuration: str = "debug"

    def compiler_args(self, target: Target | None, source_file: str | None) -> list[str]:
        values = [value for _, value in self.variables]
        values.extend(value for _, value in self.configuration_variables.get(self.configuration, []))
        if target is not None:
            values.extend(
                value for _, value in target.configuration_variables.get(self.configuration, [])
            )
        args = [f"-I{self.root}"]
        for value in values:
            args.extend(tok for tok in value.split() if tok.startswith(("-I", "-D")))
        return args


@dataclass
class GenericProject(Project):
    """Catch-all project identified only by a marker such as a Makefile or VCS dir."""

    project_type: str = "generic"
