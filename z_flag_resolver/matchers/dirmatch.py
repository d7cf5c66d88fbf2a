"""Directory matchers — cheap applicability checks that avoid loading a project type."""

from __future__ import annotations

import logging
import os
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Union

from z_flag_resolver.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# A config source is either a path or a zero-argument callable returning one.
ConfigSource = Union[str, Path, Callable[[], "str | Path | None"]]


class DirMatcher(ABC):
    """Deferred existence/identity check for a project root."""

    @abstractmethod
    def installed(self) -> bool:
        """Whether whatever backs this matcher is available at all."""
        ...

    @abstractmethod
    def matches(self, path: str) -> bool:
        """Whether ``path`` belongs to the kind of project this matcher recognizes."""
        ...


class LiteralDirMatcher(DirMatcher):
    """Matches any path containing a fixed string."""

    def __init__(self, literal: str) -> None:
        self.literal = literal

    def installed(self) -> bool:
        return True

    def matches(self, path: str) -> bool:
        return self.literal in path

    def __repr__(self) -> str:
        return f"LiteralDirMatcher({self.literal!r})"


class ConfigDirMatcher(DirMatcher):
    """Matches paths under a directory named inside an external config file.

    The first successful extraction is stashed on the instance, so the config
    file is read at most once per matcher for the lifetime of the process.
    """

    def __init__(self, source: ConfigSource, pattern: str, group: int = 1) -> None:
        self.source = source
        self.pattern = re.compile(pattern, re.MULTILINE)
        self.group = group
        self.stash: str | None = None
        self._lock = threading.Lock()

    def config_path(self) -> Path | None:
        source = self.source
        if callable(source):
            source = source()
            if source is None:
                return None
        if isinstance(source, (str, Path)):
            return Path(source).expanduser()
        raise ConfigurationError(
            f"Unknown dirmatch config source {type(self.source).__name__}: {self.source!r}"
        )

    def installed(self) -> bool:
        path = self.config_path()
        return path is not None and path.is_file()

    def matches(self, path: str) -> bool:
        if not self.installed():
            return False
        value = self._extract()
        if value is None:
            return False
        return value in path

    def _extract(self) -> str | None:
        if self.stash is not None:
            return self.stash
        with self._lock:
            if self.stash is not None:
                return self.stash
            config = self.config_path()
            try:
                content = config.read_text(errors="replace")
            except OSError as e:
                logger.warning("Cannot read dirmatch config %s: %s", config, e)
                return None
            m = self.pattern.search(content)
            if not m:
                logger.debug("Pattern %s not found in %s", self.pattern.pattern, config)
                return None
            self.stash = os.path.expanduser(m.group(self.group).strip())
            logger.debug("Dirmatch stash from %s: %s", config, self.stash)
            return self.stash

    def __repr__(self) -> str:
        return f"ConfigDirMatcher({self.source!r}, {self.pattern.pattern!r}, {self.group})"
