"""Project loading with a safety gate against executing untrusted project files."""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Iterable, Iterator

from z_flag_resolver.exceptions import LoaderContractError, UnsafeProjectError
from z_flag_resolver.models.project import Project
from z_flag_resolver.registry import ProjectTypeDescriptor, ProjectTypeRegistry

logger = logging.getLogger(__name__)


class TrustPolicy:
    """Decides whether a directory may load project types that execute code.

    A directory is trusted if it is, or lies under, one of the trusted
    directories, or if the optional predicate accepts it.
    """

    def __init__(
        self,
        trusted_dirs: Iterable[str] = (),
        predicate: Callable[[str], bool] | None = None,
    ) -> None:
        self._trusted = [os.path.abspath(os.path.expanduser(d)) for d in trusted_dirs]
        self._predicate = predicate

    def trust(self, directory: str) -> None:
        path = os.path.abspath(os.path.expanduser(directory))
        if path not in self._trusted:
            self._trusted.append(path)

    def is_trusted(self, directory: str) -> bool:
        path = os.path.abspath(directory)
        for trusted in self._trusted:
            if path == trusted or path.startswith(os.path.join(trusted, "")):
                return True
        if self._predicate is not None:
            return bool(self._predicate(path))
        return False


class ProjectList:
    """Process-wide list of loaded projects."""

    def __init__(self) -> None:
        self._projects: list[Project] = []
        self._lock = threading.Lock()

    def add(self, project: Project) -> Project:
        """Add ``project``; a project already loaded for the same root is kept instead."""
        with self._lock:
            for existing in self._projects:
                if existing.root == project.root:
                    if existing.kind != project.kind:
                        logger.debug(
                            "Keeping %s at %s; discarding newly loaded %s",
                            existing.kind,
                            existing.root,
                            project.kind,
                        )
                    return existing
            self._projects.append(project)
            logger.info("Added project %s (%s) at %s", project.name, project.kind, project.root)
            return project

    def remove(self, project: Project) -> None:
        with self._lock:
            self._projects = [p for p in self._projects if p is not project]

    def find(self, path: str) -> Project | None:
        """The project with the deepest root containing ``path``."""
        with self._lock:
            owners = [p for p in self._projects if p.contains(path)]
        if not owners:
            return None
        return max(owners, key=lambda p: len(p.root))

    def clear(self) -> None:
        with self._lock:
            self._projects.clear()

    def __iter__(self) -> Iterator[Project]:
        with self._lock:
            return iter(list(self._projects))

    def __len__(self) -> int:
        return len(self._projects)


class ProjectLoader:
    """Materialize project objects from detected project types."""

    def __init__(
        self,
        registry: ProjectTypeRegistry,
        trust: TrustPolicy | None = None,
        projects: ProjectList | None = None,
    ) -> None:
        self.registry = registry
        self.trust = trust or TrustPolicy()
        self.projects = projects if projects is not None else ProjectList()

    def load(self, descriptor: ProjectTypeDescriptor, directory: str) -> Project:
        """Safety-check, run the descriptor's loader, and register the result.

        Raises:
            UnsafeProjectError: the project type can execute code and
                ``directory`` is not trusted. The loader is never invoked.
            LoaderContractError: the loader returned nothing.
        """
        directory = os.path.abspath(directory)
        if not descriptor.is_safe and not self.trust.is_trusted(directory):
            raise UnsafeProjectError(descriptor.name, directory)

        project = descriptor.loader(directory, **descriptor.init_args)
        if project is None:
            raise LoaderContractError(
                f"Project type '{descriptor.name}' loader failed to create a project "
                f"for {directory}"
            )
        return self.projects.add(project)

    def load_for(self, directory: str) -> Project | None:
        """Return the project owning ``directory``, detecting and loading it if needed."""
        existing = self.projects.find(directory)
        if existing is not None:
            return existing

        owner = self.registry.detect_owner(directory)
        if owner is None:
            logger.debug("No project type matches %s", directory)
            return None
        descriptor, root = owner
        logger.info("Loading %s project at %s", descriptor.name, root)
        return self.load(descriptor, root)
