"""Automake projects — flag variables scraped from Makefile.am files.

Makefile.am is plain make syntax and is never executed, so this project type
is safe to load from any directory.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from z_flag_resolver.models.project import BuildDescriptionProject, Target

logger = logging.getLogger(__name__)

MAKEFILE_AM = "Makefile.am"
CONFIGURATION = "default"

_ASSIGN_RE = re.compile(r"^([A-Za-z_@][A-Za-z0-9_@.]*)\s*([+:]?=)\s*(.*)$")
_VAR_REF_RE = re.compile(r"\$\(([A-Za-z_][A-Za-z0-9_]*)\)|\$\{([A-Za-z_][A-Za-z0-9_]*)\}|@([A-Za-z_]+)@")
_PRIMARY_RE = re.compile(r"_(PROGRAMS|LIBRARIES|LTLIBRARIES)$")

# Directory-wide flag variables
_DIR_FLAG_VARS = ("AM_CPPFLAGS", "AM_CFLAGS", "AM_CXXFLAGS", "INCLUDES", "DEFS")
_TARGET_FLAG_SUFFIXES = ("_CPPFLAGS", "_CFLAGS", "_CXXFLAGS")


def canonical_name(target: str) -> str:
    """Automake canonicalization: every non-alphanumeric character becomes '_'."""
    return re.sub(r"[^A-Za-z0-9_@]", "_", target)


def parse_makefile_am(content: str) -> dict[str, str]:
    """Parse variable assignments, honoring line continuations and ``+=``."""
    content = re.sub(r"[ \t]*\\\n[ \t]*", " ", content)
    variables: dict[str, str] = {}
    for raw in content.splitlines():
        line = raw.split("#", 1)[0].rstrip()
        if not line or line.startswith("\t"):
            continue
        m = _ASSIGN_RE.match(line)
        if not m:
            continue
        name, op, value = m.group(1), m.group(2), m.group(3).strip()
        if op == "+=" and name in variables:
            variables[name] = f"{variables[name]} {value}".strip()
        else:
            variables[name] = value
    return variables


def _expand(value: str, variables: dict[str, str], builtins: dict[str, str], depth: int = 0) -> str:
    def repl(m: re.Match) -> str:
        name = m.group(1) or m.group(2) or m.group(3)
        if name in builtins:
            return builtins[name]
        if name in variables and depth < 8:
            return _expand(variables[name], variables, builtins, depth + 1)
        return ""

    return _VAR_REF_RE.sub(repl, value)


def _load_dir(
    root: Path, directory: Path, seen: set[Path]
) -> tuple[list[tuple[str, str]], list[Target]]:
    """Parse one Makefile.am and recurse into its SUBDIRS."""
    directory = directory.resolve()
    if directory in seen:
        return [], []
    seen.add(directory)

    makefile = directory / MAKEFILE_AM
    try:
        variables = parse_makefile_am(makefile.read_text(errors="replace"))
    except OSError as e:
        logger.warning("Cannot read %s: %s", makefile, e)
        return [], []

    rel = os.path.relpath(directory, root)
    rel = "" if rel == "." else rel
    builtins = {
        "top_srcdir": str(root),
        "abs_top_srcdir": str(root),
        "top_builddir": str(root),
        "srcdir": str(directory),
        "abs_srcdir": str(directory),
        "builddir": str(directory),
    }

    dir_vars = [
        (name, _expand(variables[name], variables, builtins))
        for name in _DIR_FLAG_VARS
        if name in variables
    ]

    targets = []
    for name, value in variables.items():
        if not _PRIMARY_RE.search(name) or name.startswith("EXTRA_"):
            continue
        for target_name in _expand(value, variables, builtins).split():
            canon = canonical_name(target_name)
            flags = [
                (canon + suffix, _expand(variables[canon + suffix], variables, builtins))
                for suffix in _TARGET_FLAG_SUFFIXES
                if canon + suffix in variables
            ]
            sources = _expand(variables.get(f"{canon}_SOURCES", ""), variables, builtins).split()
            targets.append(
                Target(
                    name=target_name,
                    path=rel,
                    sources=sources,
                    # root-level directory flags already live on the project
                    configuration_variables={CONFIGURATION: (dir_vars if rel else []) + flags},
                )
            )

    for sub in _expand(variables.get("SUBDIRS", ""), variables, builtins).split():
        if sub == ".":
            continue
        sub_dir = directory / sub
        if (sub_dir / MAKEFILE_AM).is_file():
            _, sub_targets = _load_dir(root, sub_dir, seen)
            targets.extend(sub_targets)

    return dir_vars, targets


def load_automake(root: str) -> BuildDescriptionProject:
    """Build a project from ``<root>/Makefile.am`` and every SUBDIRS entry below it."""
    root_path = Path(root).resolve()
    variables, targets = _load_dir(root_path, root_path, set())
    logger.info("Loaded automake project %s: %d targets", root_path, len(targets))
    return BuildDescriptionProject(
        root=str(root_path),
        targets=targets,
        variables=variables,
        configuration=CONFIGURATION,
    )
