"""Unified FlagResolver facade — single entry point for resolving a file's flags.

Detection and toolchain probing degrade to fewer flags when they fail; only
the safety gate (:class:`UnsafeProjectError`) and loader contract violations
(:class:`LoaderContractError`) propagate to the caller.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from z_flag_resolver.core.config import Settings
from z_flag_resolver.exceptions import ProjectFileError
from z_flag_resolver.loader import ProjectList, ProjectLoader, TrustPolicy
from z_flag_resolver.models.project import Project
from z_flag_resolver.models.toolchain import ToolchainFacts
from z_flag_resolver.projects.builtin import create_default_registry
from z_flag_resolver.registry import ProjectTypeRegistry
from z_flag_resolver.resolver import ProjectFlagResolver
from z_flag_resolver.toolchain.setup import ToolchainSetup, language_for

logger = logging.getLogger(__name__)


@dataclass
class ResolvedFlags:
    """Flags and macros for one source file."""

    source_file: str
    language: str
    args: list[str] = field(default_factory=list)
    macros: dict[str, str] = field(default_factory=dict)
    project: Project | None = None
    toolchain: ToolchainFacts | None = None


class FlagResolver:
    """Resolve include paths and macro definitions for source files."""

    def __init__(
        self,
        settings: Settings | None = None,
        registry: ProjectTypeRegistry | None = None,
        loader: ProjectLoader | None = None,
        toolchain: ToolchainSetup | None = None,
        resolver: ProjectFlagResolver | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.registry = registry or (loader.registry if loader else create_default_registry())
        self.loader = loader or ProjectLoader(
            self.registry,
            trust=TrustPolicy(self.settings.trusted_dirs),
            projects=ProjectList(),
        )
        self.toolchain = toolchain or ToolchainSetup(settings=self.settings)
        self.resolver = resolver or ProjectFlagResolver()

    def project_for(self, source_file: str) -> Project | None:
        directory = os.path.dirname(os.path.abspath(source_file))
        try:
            return self.loader.load_for(directory)
        except ProjectFileError as e:
            logger.warning("Ignoring unreadable project file for %s: %s", source_file, e)
            return None

    def resolve(
        self,
        source_file: str,
        target: str | None = None,
        file_macros: bool = False,
    ) -> ResolvedFlags:
        """Compute the flag list for ``source_file``.

        Project flags come first, then the toolchain's default include
        directories that the project did not already name.
        """
        source_file = os.path.abspath(source_file)
        language = language_for(source_file)
        project = self.project_for(source_file)

        args = self.resolver.args_for(project, target, source_file)
        facts = self.toolchain.setup()
        for flag in facts.include_flags(language):
            if flag not in args:
                args.append(flag)

        macros = dict(facts.macros)
        if file_macros:
            macros.update(self.toolchain.macros_for_file(source_file, args))

        logger.info(
            "Resolved %d flags for %s (project: %s)",
            len(args),
            source_file,
            project.kind if project else "none",
        )
        return ResolvedFlags(
            source_file=source_file,
            language=language,
            args=args,
            macros=macros,
            project=project,
            toolchain=facts,
        )
