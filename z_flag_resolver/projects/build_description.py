"""Project.ede build descriptions.

Project.ede files are Lisp data written by an editor's project manager. The
format can carry executable forms, so these project types are registered as
unsafe and only load from trusted directories.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from z_flag_resolver.exceptions import ProjectFileError
from z_flag_resolver.models.project import BuildDescriptionProject, Target
from z_flag_resolver.projects.sexp import Symbol, plist, read_all

logger = logging.getLogger(__name__)

PROJECT_FILE = "Project.ede"

_AUTOMAKE_TYPE_RE = re.compile(r":makefile-type\s+'?Makefile\.am\b")


def automake_marker(directory: str) -> str | None:
    """Marker for Project.ede files that generate Makefile.am instead of a Makefile."""
    path = Path(directory) / PROJECT_FILE
    try:
        text = path.read_text(errors="replace")
    except OSError:
        return None
    return PROJECT_FILE if _AUTOMAKE_TYPE_RE.search(text) else None


def _pairs(value: object) -> list[tuple[str, str]]:
    """``(("CFLAGS" . "-g") ...)`` -> ``[("CFLAGS", "-g"), ...]``"""
    pairs = []
    for item in value or []:
        if isinstance(item, tuple) and len(item) == 2:
            pairs.append((str(item[0]), "" if item[1] is None else str(item[1])))
    return pairs


def _configurations(value: object) -> dict[str, list[tuple[str, str]]]:
    """``(("debug" ("CFLAGS" . "-g")) ...)`` -> ``{"debug": [("CFLAGS", "-g")]}``"""
    configs: dict[str, list[tuple[str, str]]] = {}
    for item in value or []:
        if isinstance(item, list) and item and isinstance(item[0], str):
            configs.setdefault(str(item[0]), []).extend(_pairs(item[1:]))
    return configs


def _strip_list_call(value: object) -> list[object]:
    if isinstance(value, list) and value and value[0] == Symbol("list"):
        return value[1:]
    return value if isinstance(value, list) else []


def _read_target(form: object) -> Target | None:
    if not (isinstance(form, list) and len(form) >= 2 and isinstance(form[0], Symbol)):
        return None
    slots = plist(form[2:])
    return Target(
        name=str(slots.get("name") or form[1]),
        path=str(slots.get("path") or ""),
        sources=[str(s) for s in (slots.get("source") or [])],
        configuration_variables=_configurations(slots.get("configuration-variables")),
    )


def load_build_description(
    root: str, makefile_type: str = "Makefile"
) -> BuildDescriptionProject:
    """Read ``<root>/Project.ede`` into a :class:`BuildDescriptionProject`."""
    path = Path(root) / PROJECT_FILE
    try:
        forms = read_all(path.read_text(errors="replace"))
    except OSError as e:
        raise ProjectFileError(f"Cannot read {path}: {e}") from e

    project_form = next(
        (
            f
            for f in forms
            if isinstance(f, list) and f and isinstance(f[0], Symbol)
            and f[0].startswith("ede-proj-project")
        ),
        None,
    )
    if project_form is None:
        raise ProjectFileError(f"No ede-proj-project form in {path}")

    slots = plist(project_form[2:])
    targets = []
    for form in _strip_list_call(slots.get("targets")):
        target = _read_target(form)
        if target is not None:
            targets.append(target)

    declared = slots.get("makefile-type")
    if declared is not None and str(declared) != makefile_type:
        logger.debug("%s declares makefile type %s, loading as %s", path, declared, makefile_type)

    project = BuildDescriptionProject(
        root=root,
        name=str(slots.get("name") or (project_form[1] if len(project_form) > 1 else "")),
        targets=targets,
        variables=_pairs(slots.get("variables")),
        configuration_variables=_configurations(slots.get("configuration-variables")),
        configuration=str(slots.get("configuration-default") or "debug"),
    )
    logger.info(
        "Loaded %s: %d targets, configuration %s", path, len(targets), project.configuration
    )
    return project
