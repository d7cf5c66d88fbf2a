"""Project flag resolver — project-declared compiler arguments."""

from __future__ import annotations

import logging

from z_flag_resolver.models.project import Project, ProvidesCompilerArgs, Target

logger = logging.getLogger(__name__)


class ProjectFlagResolver:
    """Ask a project for the ``-I``/``-D`` flags it contributes.

    Project kinds without the :class:`ProvidesCompilerArgs` capability
    contribute nothing; the file is then parsed with system flags only.
    """

    def args_for(
        self,
        project: Project | None,
        target: Target | str | None = None,
        source_file: str | None = None,
    ) -> list[str]:
        if project is None:
            return []
        if not isinstance(project, ProvidesCompilerArgs):
            logger.debug("Project kind %s provides no compiler args", project.kind)
            return []

        if isinstance(target, str):
            target = next((t for t in project.targets if t.name == target), None)
        if target is None and source_file:
            target = project.target_for(source_file)

        args = project.compiler_args(target, source_file)
        logger.debug("%s args for %s: %s", project.kind, source_file or project.root, args)
        return args
