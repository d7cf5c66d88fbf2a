"""Z-Flag-Resolver: include paths and macro definitions for C/C++ sources."""

__version__ = "0.1.0"

from z_flag_resolver.api import FlagResolver, ResolvedFlags
from z_flag_resolver.loader import ProjectList, ProjectLoader, TrustPolicy
from z_flag_resolver.matchers.dirmatch import ConfigDirMatcher, DirMatcher, LiteralDirMatcher
from z_flag_resolver.models.project import (
    BuildDescriptionProject,
    CppRootProject,
    GenericProject,
    KernelProject,
    Project,
    ProvidesCompilerArgs,
    Target,
)
from z_flag_resolver.models.toolchain import ToolchainFacts
from z_flag_resolver.projects.builtin import create_default_registry
from z_flag_resolver.registry import Priority, ProjectTypeDescriptor, ProjectTypeRegistry
from z_flag_resolver.resolver import ProjectFlagResolver
from z_flag_resolver.toolchain.probe import ProbeResult, ToolchainProbe
from z_flag_resolver.toolchain.setup import ToolchainCache, ToolchainKey, ToolchainSetup

__all__ = [
    "BuildDescriptionProject",
    "ConfigDirMatcher",
    "CppRootProject",
    "DirMatcher",
    "FlagResolver",
    "GenericProject",
    "KernelProject",
    "LiteralDirMatcher",
    "Priority",
    "ProbeResult",
    "Project",
    "ProjectFlagResolver",
    "ProjectList",
    "ProjectLoader",
    "ProjectTypeDescriptor",
    "ProjectTypeRegistry",
    "ProvidesCompilerArgs",
    "ResolvedFlags",
    "Target",
    "ToolchainCache",
    "ToolchainFacts",
    "ToolchainKey",
    "ToolchainProbe",
    "ToolchainSetup",
    "TrustPolicy",
    "create_default_registry",
]
