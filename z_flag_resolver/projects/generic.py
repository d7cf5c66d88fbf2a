"""Generic fallback project types — consulted only after every specific type fails."""

from __future__ import annotations

import logging

from z_flag_resolver.models.project import GenericProject
from z_flag_resolver.registry import ProjectTypeDescriptor

logger = logging.getLogger(__name__)

# (name, marker_file, root_only), ordered by priority
GENERIC_TYPES: list[tuple[str, str, bool]] = [
    ("generic-makefile", "Makefile", False),
    ("generic-scons", "SConstruct", True),
    ("generic-cmake", "CMakeLists.txt", False),
    ("generic-git", ".git", True),
    ("generic-bzr", ".bzr", True),
    ("generic-hg", ".hg", True),
    ("generic-svn", ".svn", False),
    ("generic-cvs", "CVS", False),
]


def load_generic(root: str, project_type: str = "generic") -> GenericProject:
    logger.info("Loaded %s project at %s", project_type, root)
    return GenericProject(root=root, project_type=project_type)


def generic_descriptors() -> list[ProjectTypeDescriptor]:
    return [
        ProjectTypeDescriptor(
            name=name,
            loader=load_generic,
            marker_file=marker,
            root_only=root_only,
            project_class=GenericProject,
            init_args={"project_type": name},
            allow_as_new_project_choice=False,
            is_safe=True,
        )
        for name, marker, root_only in GENERIC_TYPES
    ]
