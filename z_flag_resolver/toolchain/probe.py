"""Toolchain probe — run the compiler as a subprocess and read what it reports.

Probes never raise on a failing compiler: a non-zero exit is reported as a
return code, and a compiler that could not be started at all is reported
with ``returncode=None``.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field

from z_flag_resolver.core.config import Settings
from z_flag_resolver.toolchain.parsing import (
    parse_fields,
    parse_include_block,
    parse_macro_dump,
)

logger = logging.getLogger(__name__)

PROBE_LOCALE = "C"


@dataclass
class ProbeResult:
    """Outcome of one compiler invocation."""

    executable: str
    args: list[str] = field(default_factory=list)
    returncode: int | None = None  # None: the process could not be launched
    output: str = ""  # stdout and stderr combined
    error: str | None = None

    @property
    def launched(self) -> bool:
        return self.returncode is not None

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _accessible_dir(path: str) -> bool:
    return os.path.isdir(path) and os.access(path, os.R_OK | os.X_OK)


class ToolchainProbe:
    """Query a C/C++ compiler for its search paths, macros and configuration."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings.from_env()

    def executable_for(self, language: str) -> str:
        if language == "c":
            return self.settings.compiler
        if language == "c++":
            return self.settings.cxx_compiler
        return language

    # ── subprocess boundary ──────────────────────────────────────────────

    def query(self, executable: str, *args: str, stdin: str | None = None) -> ProbeResult:
        """Run ``executable args...`` under the C locale and capture its output.

        A launch failure is retried once from the home directory, since the
        current directory may be missing or unreadable.
        """
        cmd = [executable, *args]
        try:
            proc = self._run(cmd, stdin, cwd=None)
        except subprocess.TimeoutExpired:
            return self._timed_out(executable, args)
        except OSError as e:
            home = os.path.expanduser("~")
            logger.debug("Probe %s failed to launch (%s), retrying from %s", executable, e, home)
            try:
                proc = self._run(cmd, stdin, cwd=home)
            except subprocess.TimeoutExpired:
                return self._timed_out(executable, args)
            except OSError as e2:
                logger.info("Cannot run %s: %s", executable, e2)
                return ProbeResult(executable=executable, args=list(args), error=str(e2))

        if proc.returncode != 0:
            logger.debug("Probe %s %s exited with %d", executable, " ".join(args), proc.returncode)
        return ProbeResult(
            executable=executable,
            args=list(args),
            returncode=proc.returncode,
            output=proc.stdout or "",
        )

    def _run(self, cmd: list[str], stdin: str | None, cwd: str | None) -> subprocess.CompletedProcess:
        env = dict(os.environ)
        env["LC_ALL"] = PROBE_LOCALE
        return subprocess.run(
            cmd,
            input=stdin,
            stdin=subprocess.DEVNULL if stdin is None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            env=env,
            cwd=cwd,
            timeout=self.settings.probe_timeout,
        )

    def _timed_out(self, executable: str, args: tuple[str, ...]) -> ProbeResult:
        logger.warning(
            "Probe %s timed out after %.0fs", executable, self.settings.probe_timeout
        )
        return ProbeResult(executable=executable, args=list(args), error="timeout")

    # ── probes ───────────────────────────────────────────────────────────

    def get_fields(self, version_output: str) -> dict[str, str | None]:
        return parse_fields(version_output)

    def query_fields(self, executable: str | None = None) -> dict[str, str | None]:
        """Run ``<compiler> -v`` and parse its configuration facts."""
        result = self.query(executable or self.settings.compiler, "-v")
        if not result.launched:
            return {}
        return self.get_fields(result.output)

    def get_include_paths(self, language: str, executable: str | None = None) -> list[str]:
        """Default ``#include <...>`` search directories, in search order."""
        result = self.query(
            executable or self.executable_for(language), "-v", "-E", "-x", language, os.devnull
        )
        if not result.ok:
            return []
        paths = [p for p in parse_include_block(result.output) if _accessible_dir(p)]
        logger.debug("%s include paths from %s: %s", language, result.executable, paths)
        return paths

    def get_macros(
        self, language: str, executable: str | None = None
    ) -> list[tuple[str, str]] | None:
        """Predefined macros, or None when the probe failed."""
        result = self.query(
            executable or self.executable_for(language), "-E", "-dM", "-x", language, os.devnull
        )
        if not result.ok:
            return None
        return parse_macro_dump(result.output)

    def get_source_macros(
        self,
        directives: list[str],
        language: str,
        extra_args: list[str] | tuple[str, ...] = (),
        executable: str | None = None,
    ) -> list[tuple[str, str]] | None:
        """Macros visible after preprocessing a buffer of ``#include`` directives."""
        result = self.query(
            executable or self.executable_for(language),
            *extra_args,
            "-E",
            "-dM",
            "-x",
            language,
            "-",
            stdin="\n".join(directives) + "\n",
        )
        if not result.ok:
            return None
        return parse_macro_dump(result.output)

    def guess_include_paths(
        self,
        executable: str,
        version: str | None,
        target: str | None,
    ) -> dict[str, list[str]]:
        """Best-guess include directories derived from the compiler's install root.

        Only directories that exist are returned; nothing found is not an error.
        """
        located = shutil.which(executable)
        if not located:
            return {"c": [], "c++": []}
        root = os.path.dirname(os.path.dirname(os.path.abspath(located)))
        include = os.path.join(root, "include")
        include_cxx = os.path.join(include, "c++")

        c_candidates = [include]
        cxx_candidates = [include, include_cxx]
        if version:
            cxx_candidates.append(os.path.join(include_cxx, version))
            if target:
                cxx_candidates.append(os.path.join(include_cxx, version, target))
        if os.name == "posix":
            c_candidates.insert(0, "/usr/include")
            cxx_candidates.insert(0, "/usr/include")

        def existing(candidates: list[str]) -> list[str]:
            seen: list[str] = []
            for d in candidates:
                if d not in seen and _accessible_dir(d):
                    seen.append(d)
            return seen

        guessed = {"c": existing(c_candidates), "c++": existing(cxx_candidates)}
        logger.info("Guessed include paths from %s: %s", located, guessed)
        return guessed
