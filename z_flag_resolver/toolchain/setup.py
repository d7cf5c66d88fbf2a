"""Toolchain setup pipeline — probe once per toolchain, cache the facts.

The cache is process-wide and keyed by every input the pipeline reads: the
resolved C compiler, C++ compiler and preprocessor, plus the host platform.
Each key has its own lock, so concurrent callers never spawn the same probe
twice. Nothing expires; :meth:`ToolchainCache.reset` is the only invalidation.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
import threading
from pathlib import Path
from typing import Callable, NamedTuple

from z_flag_resolver.core.config import Settings
from z_flag_resolver.models.toolchain import ToolchainFacts
from z_flag_resolver.toolchain.parsing import include_directives
from z_flag_resolver.toolchain.probe import ToolchainProbe

logger = logging.getLogger(__name__)

# Headers that declare the core platform macros; refresh_macros() reads
# them back through the preprocessor.
COMPAT_HEADERS = ("bits/c++config.h", "sys/cdefs.h", "features.h")

# macOS libc headers only parse with this defined
DARWIN_MACRO = ("__i386__", "")

CXX_SUFFIXES = {".cc", ".cpp", ".cxx", ".c++", ".hh", ".hpp", ".hxx", ".h++", ".ipp", ".tcc"}


def language_for(source_file: str) -> str:
    return "c++" if Path(source_file).suffix.lower() in CXX_SUFFIXES else "c"


def _resolved(executable: str) -> str:
    return shutil.which(executable) or executable


class ToolchainKey(NamedTuple):
    """Everything a cached :class:`ToolchainFacts` depends on."""

    compiler: str
    cxx_compiler: str
    preprocessor: str
    platform: str

    @classmethod
    def for_settings(cls, settings: Settings, platform: str) -> ToolchainKey:
        return cls(
            compiler=_resolved(settings.compiler),
            cxx_compiler=_resolved(settings.cxx_compiler),
            preprocessor=_resolved(settings.preprocessor),
            platform=platform,
        )


class ToolchainCache:
    """Facts per toolchain, computed at most once per key."""

    def __init__(self) -> None:
        self._facts: dict[ToolchainKey, ToolchainFacts] = {}
        self._locks: dict[ToolchainKey, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: ToolchainKey) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def get(self, key: ToolchainKey) -> ToolchainFacts | None:
        return self._facts.get(key)

    def get_or_compute(
        self, key: ToolchainKey, compute: Callable[[ToolchainFacts], None]
    ) -> ToolchainFacts:
        with self._lock_for(key):
            facts = self._facts.get(key)
            if facts is None:
                facts = ToolchainFacts(executable=key.compiler)
                compute(facts)
                self._facts[key] = facts
            return facts

    def update(
        self, key: ToolchainKey, compute: Callable[[ToolchainFacts], None]
    ) -> ToolchainFacts:
        """Re-run ``compute`` against the cached facts (or fresh ones)."""
        with self._lock_for(key):
            facts = self._facts.setdefault(key, ToolchainFacts(executable=key.compiler))
            compute(facts)
            return facts

    def reset(self, key: ToolchainKey | None = None) -> None:
        with self._guard:
            if key is None:
                self._facts.clear()
            else:
                self._facts.pop(key, None)


_default_cache = ToolchainCache()


def default_cache() -> ToolchainCache:
    return _default_cache


class ToolchainSetup:
    """Compose probe results into :class:`ToolchainFacts` for the active compiler."""

    def __init__(
        self,
        probe: ToolchainProbe | None = None,
        cache: ToolchainCache | None = None,
        settings: Settings | None = None,
        platform: str | None = None,
    ) -> None:
        self.settings = settings or (probe.settings if probe else Settings.from_env())
        self.probe = probe or ToolchainProbe(self.settings)
        self.cache = cache if cache is not None else default_cache()
        self.platform = platform or sys.platform
        self._file_macros: dict[str, dict[str, str]] = {}
        self._file_lock = threading.Lock()

    @property
    def cache_key(self) -> ToolchainKey:
        return ToolchainKey.for_settings(self.settings, self.platform)

    def setup(self) -> ToolchainFacts:
        """Cached facts for the configured toolchain, probing on first use."""
        return self.cache.get_or_compute(self.cache_key, self._populate)

    def refresh(self) -> ToolchainFacts:
        """Probe again, then read the symbol files, appending anything new."""
        return self.cache.update(self.cache_key, self._repopulate)

    def refresh_macros(self) -> ToolchainFacts:
        """Append macros defined by the collected symbol files to the cached facts."""
        return self.cache.update(self.cache_key, self._add_symbol_file_macros)

    def _repopulate(self, facts: ToolchainFacts) -> None:
        self._populate(facts)
        self._add_symbol_file_macros(facts)

    def _add_symbol_file_macros(self, facts: ToolchainFacts) -> None:
        if not facts.symbol_files:
            return
        directives = [f'#include "{path}"' for path in facts.symbol_files]
        macros = self.probe.get_source_macros(
            directives, "c++", executable=self.settings.preprocessor
        )
        if macros is None:
            macros = self.probe.get_source_macros(
                directives, "c++", executable=self.settings.compiler
            )
        if macros is None:
            logger.warning(
                "Could not read macros from %d symbol files", len(facts.symbol_files)
            )
            return
        added = sum(facts.add_macro(name, value) for name, value in macros)
        logger.info("Added %d macros from symbol files", added)

    def _populate(self, facts: ToolchainFacts) -> None:
        compiler = self.settings.compiler
        fields = self.probe.query_fields(compiler)
        facts.options.update(fields)
        facts.version = facts.version or fields.get("version")
        facts.target = facts.target or fields.get("target") or fields.get("host")
        facts.prefix = facts.prefix or fields.get("prefix")

        self._add_macros(facts)

        c_paths = self.probe.get_include_paths("c", compiler)
        cxx_paths = self.probe.get_include_paths("c++", self.settings.cxx_compiler)
        if not c_paths and shutil.which(compiler):
            guessed = self.probe.guess_include_paths(compiler, facts.version, facts.target)
            c_paths = guessed["c"]
            cxx_paths = cxx_paths or guessed["c++"]

        for path in c_paths:
            facts.add_include_path("c", path)
        for path in cxx_paths:
            facts.add_include_path("c++", path)
            for header in COMPAT_HEADERS:
                candidate = os.path.join(path, header)
                if os.path.isfile(candidate) and os.access(candidate, os.R_OK):
                    facts.add_symbol_file(candidate)

        logger.info(
            "Toolchain %s: version=%s target=%s, %d C / %d C++ include dirs, %d macros",
            facts.executable,
            facts.version,
            facts.target,
            len(facts.include_paths.get("c", [])),
            len(facts.include_paths.get("c++", [])),
            len(facts.macros),
        )

    def _add_macros(self, facts: ToolchainFacts) -> None:
        macros = self.probe.get_macros("c++", self.settings.preprocessor)
        if macros is None:
            # some platforms ship no usable `cpp`; the compiler driver works too
            macros = self.probe.get_macros("c++", self.settings.compiler)
        if macros is None:
            logger.warning(
                "Could not query %s or %s for defines. Maybe g++ is not installed.",
                self.settings.preprocessor,
                self.settings.compiler,
            )
            macros = []
        for name, value in macros:
            facts.add_macro(name, value)
        if self.platform == "darwin":
            facts.add_macro(*DARWIN_MACRO)

    # ── per-file macros ──────────────────────────────────────────────────

    def macros_for_file(
        self, source_file: str, extra_args: list[str] | tuple[str, ...] = ()
    ) -> dict[str, str]:
        """Macros defined after the file's own ``#include`` lines, fetched once per file."""
        key = os.path.abspath(source_file)
        with self._file_lock:
            if key in self._file_macros:
                return self._file_macros[key]
            try:
                source = Path(key).read_text(errors="replace")
            except OSError as e:
                logger.warning("Cannot read %s for macro probing: %s", key, e)
                source = ""
            macros = self.probe.get_source_macros(
                include_directives(source), language_for(key), extra_args
            )
            if macros is None:
                logger.warning("Macro probe failed for %s", key)
                macros = []
            self._file_macros[key] = dict(macros)
            return self._file_macros[key]

    def forget(self, source_file: str) -> None:
        with self._file_lock:
            self._file_macros.pop(os.path.abspath(source_file), None)
