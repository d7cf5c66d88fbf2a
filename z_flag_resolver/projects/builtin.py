"""Built-in project types and the default registry."""

from __future__ import annotations

from z_flag_resolver.models.project import BuildDescriptionProject, GenericProject, KernelProject
from z_flag_resolver.projects.arduino import (
    load_arduino,
    sketch_marker,
    sketch_root,
    sketchbook_matcher,
)
from z_flag_resolver.projects.automake import MAKEFILE_AM, load_automake
from z_flag_resolver.projects.build_description import (
    PROJECT_FILE,
    automake_marker,
    load_build_description,
)
from z_flag_resolver.projects.generic import generic_descriptors
from z_flag_resolver.projects.kernel import KERNEL_MARKER, load_kernel
from z_flag_resolver.registry import Priority, ProjectTypeDescriptor, ProjectTypeRegistry


def builtin_descriptors() -> list[ProjectTypeDescriptor]:
    """Specific project types in registration order."""
    return [
        ProjectTypeDescriptor(
            name="edeproject-automake",
            loader=load_build_description,
            marker_file=automake_marker,
            root_only=False,
            project_class=BuildDescriptionProject,
            init_args={"makefile_type": "Makefile.am"},
            is_safe=False,
        ),
        ProjectTypeDescriptor(
            name="edeproject-makefile",
            loader=load_build_description,
            marker_file=PROJECT_FILE,
            root_only=False,
            project_class=BuildDescriptionProject,
            init_args={"makefile_type": "Makefile"},
            is_safe=False,
        ),
        ProjectTypeDescriptor(
            name="automake",
            loader=load_automake,
            marker_file=MAKEFILE_AM,
            root_only=False,
            project_class=BuildDescriptionProject,
            allow_as_new_project_choice=False,
            is_safe=True,
        ),
        ProjectTypeDescriptor(
            name="linux",
            loader=load_kernel,
            marker_file=KERNEL_MARKER,
            root_only=True,
            project_class=KernelProject,
            allow_as_new_project_choice=False,
            is_safe=True,
        ),
        ProjectTypeDescriptor(
            name="arduino",
            loader=load_arduino,
            marker_file=sketch_marker,
            root_only=True,
            root_dir_matcher=sketchbook_matcher(),
            root_finder=sketch_root,
            project_class=GenericProject,
            allow_as_new_project_choice=False,
            is_safe=True,
        ),
    ]


def create_default_registry() -> ProjectTypeRegistry:
    """Create a registry seeded with the built-in types and generic fallbacks."""
    registry = ProjectTypeRegistry(seed=builtin_descriptors())
    for descriptor in generic_descriptors():
        registry.register(descriptor, Priority.GENERIC)
    return registry
