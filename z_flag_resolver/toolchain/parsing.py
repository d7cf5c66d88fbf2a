"""Text scraping of compiler diagnostic output.

Every pattern that depends on the wording of GCC/Clang output lives here, so
output drift in a new toolchain release only touches this module. Parsers
skip lines they do not recognize instead of failing.
"""

from __future__ import annotations

import os
import re
import sys

# `-v -E` output brackets the system search list between these two lines
_SEARCH_START_RE = re.compile(r"^#include <\.\.\.> search starts here:\s*$", re.MULTILINE)
_SEARCH_END_RE = re.compile(r"^End of search list\.", re.MULTILINE)
# Entries are indented by exactly one space
_SEARCH_ENTRY_RE = re.compile(r"^ (\S.*?)\s*$")
_FRAMEWORK_SUFFIX = " (framework directory)"

_CONFIGURED_RE = re.compile(r"Configured with:(.*)$")
_VERSION_RE = re.compile(r"\b(?:gcc|clang)[ -][vV]ersion\s+(\S+)")
_TARGET_RE = re.compile(r"^Target:\s+(\S+)")
_THREAD_MODEL_RE = re.compile(r"^Thread model:\s+(\S+)")
_INSTALLED_DIR_RE = re.compile(r"^InstalledDir:\s+(.+?)\s*$")

# `-E -dM` output: "#define NAME VALUE", NAME may carry a parameter list
_DEFINE_RE = re.compile(r"^#define\s+([A-Za-z_]\w*(?:\([^)]*\))?)(?:\s+(.*?))?\s*$")

_INCLUDE_DIRECTIVE_RE = re.compile(r'^[ \t]*#[ \t]*include[ \t]*[<"][^>"\n]+[>"]', re.MULTILINE)
_WINDOWS_ABS_RE = re.compile(r"^(?:[A-Za-z]:[\\/]|\\\\)")


def is_native_absolute(path: str, platform: str | None = None) -> bool:
    """Whether ``path`` looks like an absolute path on the host platform."""
    platform = platform or sys.platform
    if platform.startswith(("win32", "cygwin", "msys")):
        return bool(_WINDOWS_ABS_RE.match(path))
    return path.startswith("/")


def parse_include_block(output: str, platform: str | None = None) -> list[str]:
    """Extract the ``#include <...>`` search list from verbose preprocessor output.

    Returns entries in search order; entries that are not native absolute
    paths are dropped. Existence is checked by the caller.
    """
    start = _SEARCH_START_RE.search(output)
    if not start:
        return []
    end = _SEARCH_END_RE.search(output, start.end())
    block = output[start.end() : end.start() if end else len(output)]

    paths = []
    for line in block.splitlines():
        m = _SEARCH_ENTRY_RE.match(line)
        if not m:
            continue
        entry = m.group(1)
        if entry.endswith(_FRAMEWORK_SUFFIX):
            entry = entry[: -len(_FRAMEWORK_SUFFIX)]
        if not is_native_absolute(entry, platform):
            continue
        paths.append(os.path.normpath(entry))
    return paths


def parse_configure_options(line: str) -> dict[str, str | None]:
    """``--prefix=/usr --enable-shared`` -> ``{"prefix": "/usr", "enable-shared": None}``

    A leading non-option token (the path of the configure script) is skipped.
    """
    tokens = line.split()
    if tokens and not tokens[0].startswith("-"):
        tokens = tokens[1:]
    options: dict[str, str | None] = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        key = key.lstrip("-")
        if not key:
            continue
        options[key] = value if sep else None
    return options


def parse_fields(output: str) -> dict[str, str | None]:
    """Flatten ``gcc -v`` style output into a mapping.

    Configure options become keys without their leading dashes; the
    ``version``, ``target``, ``thread_model`` and ``installed_dir`` fields
    come from their own lines and win over configure options of the same name.
    """
    options: dict[str, str | None] = {}
    scraped: dict[str, str | None] = {}
    for line in output.splitlines():
        m = _CONFIGURED_RE.search(line)
        if m:
            options.update(parse_configure_options(m.group(1)))
            continue
        m = _VERSION_RE.search(line)
        if m:
            scraped["version"] = m.group(1)
            continue
        m = _TARGET_RE.match(line)
        if m:
            scraped["target"] = m.group(1)
            continue
        m = _THREAD_MODEL_RE.match(line)
        if m:
            scraped["thread_model"] = m.group(1)
            continue
        m = _INSTALLED_DIR_RE.match(line)
        if m:
            scraped["installed_dir"] = m.group(1)
    return {**options, **scraped}


def parse_macro_dump(output: str) -> list[tuple[str, str]]:
    """Parse ``-E -dM`` output into ``(name, value)`` pairs in output order."""
    macros = []
    for line in output.splitlines():
        m = _DEFINE_RE.match(line)
        if m:
            macros.append((m.group(1), m.group(2) or ""))
    return macros


def include_directives(source: str) -> list[str]:
    """The ``#include`` lines of a source file, normalized to ``#include <x>`` form."""
    return [
        re.sub(r"^[ \t]*#[ \t]*include[ \t]*", "#include ", m.group())
        for m in _INCLUDE_DIRECTIVE_RE.finditer(source)
    ]
