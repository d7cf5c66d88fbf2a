"""Arduino sketches, recognized by location inside the configured sketchbook."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from z_flag_resolver.matchers.dirmatch import ConfigDirMatcher
from z_flag_resolver.models.project import GenericProject

logger = logging.getLogger(__name__)

# Newer IDEs keep preferences in ~/.arduino15, older ones in ~/.arduino
_PREFERENCE_FILES = ("~/.arduino15/preferences.txt", "~/.arduino/preferences.txt")
SKETCHBOOK_RE = r"^sketchbook\.path=(.+)$"


def preferences_file() -> Path:
    candidates = [Path(p).expanduser() for p in _PREFERENCE_FILES]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return candidates[0]


def sketchbook_matcher() -> ConfigDirMatcher:
    return ConfigDirMatcher(preferences_file, SKETCHBOOK_RE, 1)


def sketch_marker(directory: str) -> str:
    """A sketch directory holds ``<dirname>.ino``."""
    return Path(directory.rstrip(os.sep)).name + ".ino"


def sketch_root(directory: str) -> str | None:
    """Walk up to the directory that holds its own ``<dirname>.ino``."""
    current = Path(directory).resolve()
    for candidate in (current, *current.parents):
        if (candidate / sketch_marker(str(candidate))).is_file():
            return str(candidate)
    return None


def load_arduino(root: str) -> GenericProject:
    logger.info("Loaded Arduino sketch %s", root)
    return GenericProject(root=root, project_type="arduino")
