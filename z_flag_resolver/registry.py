"""Project type registry — priority-ordered descriptors and directory detection.

The registry is one ordered list split into three tiers, front to back:

    unique   project-specific overrides, prepended
    default  general-purpose project types, inserted before the first generic
    generic  catch-all fallbacks, appended

Detection walks the list in order and the first match wins, so the order
*is* the resolution policy.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Union

from z_flag_resolver.exceptions import ConfigurationError, RegistryNotInitializedError
from z_flag_resolver.matchers.dirmatch import DirMatcher
from z_flag_resolver.models.project import Project

logger = logging.getLogger(__name__)

MarkerFile = Union[str, Callable[[str], "str | None"]]


class Priority(Enum):
    """Registration tier."""

    DEFAULT = "default"
    UNIQUE = "unique"
    GENERIC = "generic"


def as_directory(path: str) -> str:
    """Absolute path with a trailing separator."""
    return os.path.join(os.path.abspath(path), "")


@dataclass
class ProjectTypeDescriptor:
    """Describes one kind of project without loading it."""

    name: str
    loader: Callable[..., Project | None]
    marker_file: MarkerFile | None = None  # "Makefile.am", or fn(dir) -> filename
    root_only: bool = True
    root_dir_matcher: DirMatcher | None = None
    root_finder: Callable[[str], str | None] | None = None
    project_class: type[Project] | None = None
    init_args: dict[str, Any] = field(default_factory=dict)
    allow_as_new_project_choice: bool = True
    is_safe: bool = True  # False if reading the marker file can execute code
    is_generic: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if self.marker_file is None and self.root_dir_matcher is None:
            raise ConfigurationError(
                f"Project type '{self.name}' needs a marker file or a root dir matcher"
            )
        if self.marker_file is not None and not (
            isinstance(self.marker_file, str) or callable(self.marker_file)
        ):
            raise ConfigurationError(
                f"Project type '{self.name}' has an unsupported marker file "
                f"{type(self.marker_file).__name__}"
            )
        if not callable(self.loader):
            raise ConfigurationError(f"Project type '{self.name}' has no callable loader")

    def marker_name(self, directory: str) -> str | None:
        if callable(self.marker_file):
            return self.marker_file(directory)
        return self.marker_file

    def detect_in(self, directory: str) -> bool:
        """Whether ``directory`` holds this project type, without loading it."""
        directory = as_directory(directory)
        matcher = self.root_dir_matcher
        if matcher is not None and matcher.installed() and matcher.matches(directory):
            return True
        marker = self.marker_name(directory)
        if marker:
            return os.path.exists(directory + marker)
        return False


class ProjectTypeRegistry:
    """Ordered registry of project type descriptors."""

    def __init__(self, seed: Iterable[ProjectTypeDescriptor] | None = None) -> None:
        self._types: list[ProjectTypeDescriptor] = []
        self._seeded = False
        self._lock = threading.RLock()
        if seed is not None:
            self.seed(seed)

    def seed(self, descriptors: Iterable[ProjectTypeDescriptor]) -> None:
        """Startup population; default-priority registration is allowed afterwards."""
        with self._lock:
            self._seeded = True
            for descriptor in descriptors:
                self.register(descriptor)

    @property
    def seeded(self) -> bool:
        return self._seeded

    def register(
        self,
        descriptor: ProjectTypeDescriptor,
        priority: Priority | str = Priority.DEFAULT,
    ) -> None:
        priority = Priority(priority)
        with self._lock:
            for i, existing in enumerate(self._types):
                if existing.name == descriptor.name:
                    descriptor.is_generic = existing.is_generic
                    self._types[i] = descriptor
                    logger.info("Replaced project type: %s", descriptor.name)
                    return

            if priority is Priority.UNIQUE:
                self._types.insert(0, descriptor)
            elif priority is Priority.GENERIC:
                descriptor.is_generic = True
                self._types.append(descriptor)
            else:
                if not self._seeded:
                    raise RegistryNotInitializedError(descriptor.name)
                index = next(
                    (i for i, d in enumerate(self._types) if d.is_generic),
                    len(self._types),
                )
                self._types.insert(index, descriptor)
            logger.debug("Registered project type: %s (%s)", descriptor.name, priority.value)

    def get(self, name: str) -> ProjectTypeDescriptor | None:
        with self._lock:
            return next((d for d in self._types if d.name == name), None)

    def descriptors(self) -> list[ProjectTypeDescriptor]:
        with self._lock:
            return list(self._types)

    def new_project_choices(self) -> list[str]:
        """Names of project types a user may create from scratch."""
        return [d.name for d in self.descriptors() if d.allow_as_new_project_choice]

    def detect(self, directory: str) -> ProjectTypeDescriptor | None:
        """Return the first descriptor, in registry order, that matches ``directory``."""
        directory = as_directory(directory)
        for descriptor in self.descriptors():
            if descriptor.detect_in(directory):
                logger.debug("Detected project type %s in %s", descriptor.name, directory)
                return descriptor
        return None

    def detect_owner(self, directory: str) -> tuple[ProjectTypeDescriptor, str] | None:
        """Descriptor and project root owning ``directory``.

        A specific type detected in ``directory`` itself wins. Otherwise the
        parent directories are searched for a root-only specific type (a
        kernel tree, a sketch), since sources usually sit below the root
        that carries the marker. Only then does a generic match apply.
        """
        directory = os.path.abspath(directory)
        local = self.detect(directory)
        if local is not None and not local.is_generic:
            return local, self.find_root(local, directory)

        rooted = [d for d in self.descriptors() if d.root_only and not d.is_generic]
        current = directory
        parent = os.path.dirname(current)
        while rooted and parent != current:
            current = parent
            parent = os.path.dirname(current)
            for descriptor in rooted:
                if descriptor.detect_in(current):
                    logger.debug("Detected %s root %s above %s", descriptor.name, current, directory)
                    return descriptor, self.find_root(descriptor, current)

        if local is not None:
            return local, self.find_root(local, directory)
        return None

    def find_root(self, descriptor: ProjectTypeDescriptor, directory: str) -> str:
        """Compute the project root for ``directory`` under ``descriptor``.

        Uses the descriptor's root finder if it has one. Root-only types are
        rooted where they were detected; others walk upward while the parent
        directory still carries the marker file.
        """
        directory = os.path.abspath(directory)
        if descriptor.root_finder is not None:
            root = descriptor.root_finder(directory)
            if root:
                return os.path.abspath(root)
        if descriptor.root_only or descriptor.marker_file is None:
            return directory

        current = directory
        parent = os.path.dirname(current)
        while parent != current and descriptor.detect_in(parent):
            current = parent
            parent = os.path.dirname(current)
        return current
