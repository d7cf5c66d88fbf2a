"""Shared pytest fixtures for Z-Flag-Resolver tests."""

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from z_flag_resolver.core.config import Settings
from z_flag_resolver.toolchain.probe import ToolchainProbe
from z_flag_resolver.toolchain.setup import ToolchainCache, ToolchainSetup

GCC_VERSION_OUTPUT = """\
Using built-in specs.
COLLECT_GCC=gcc
COLLECT_LTO_WRAPPER=/usr/lib/gcc/x86_64-linux-gnu/12/lto-wrapper
OFFLOAD_TARGET_NAMES=nvptx-none:amdgcn-amdhsa
Target: x86_64-linux-gnu
Configured with: ../src/configure -v --prefix=/usr --enable-shared --host=x86_64-linux-gnu --target=x86_64-linux-gnu --with-arch-32=i686
Thread model: posix
Supported LTO compression algorithms: zlib zstd
gcc version 12.2.0 (Debian 12.2.0-14)
"""

MACRO_DUMP = """\
#define __STDC__ 1
#define __GNUC__ 12
#define __x86_64__ 1
#define __ELF__
#define __VERSION__ "12.2.0"
#define __has_include(STR) __has_include__(STR)
"""


class FakeCompiler:
    """An executable shell script that answers probes like gcc does.

    Every invocation is appended to ``log`` as ``LC_ALL=<value> <args>``.
    A ``-dM`` run reading stdin (``-`` last) also echoes the ``#define`` lines
    of every ``#include "file"`` it is fed, like a real preprocessor would.
    """

    def __init__(self, path: Path, log: Path) -> None:
        self.path = path
        self.log = log

    @property
    def calls(self) -> list[str]:
        if not self.log.exists():
            return []
        return self.log.read_text().splitlines()

    def settings(self, **overrides) -> Settings:
        values = dict(
            compiler=str(self.path),
            cxx_compiler=str(self.path),
            preprocessor=str(self.path),
            probe_timeout=10.0,
        )
        values.update(overrides)
        return Settings(**values)


def write_fake_compiler(
    bin_dir: Path,
    name: str = "fake-gcc",
    *,
    include_dirs: list[Path] | tuple[Path, ...] = (),
    macros: str = MACRO_DUMP,
    version_output: str = GCC_VERSION_OUTPUT,
    search_exit: int = 0,
) -> FakeCompiler:
    bin_dir.mkdir(parents=True, exist_ok=True)
    log = bin_dir / f"{name}.log"
    script = bin_dir / name
    entries = "\n".join(f" {d}" for d in include_dirs)
    script.write_text(
        f"""#!/bin/sh
echo "LC_ALL=$LC_ALL $*" >> "{log}"
last=""
for arg in "$@"; do last="$arg"; done
for arg in "$@"; do
  if [ "$arg" = "-dM" ]; then
    cat <<'__MACROS__'
{macros}__MACROS__
    if [ "$last" = "-" ]; then
      sed -n 's/^#include "\\(.*\\)"$/\\1/p' | while read -r header; do
        grep '^#define' "$header"
      done
    fi
    exit 0
  fi
done
if [ "$1" = "-v" ] && [ "$#" -eq 1 ]; then
  cat >&2 <<'__VERSION__'
{version_output}__VERSION__
  exit 0
fi
if [ "$1" = "-v" ]; then
  cat >&2 <<'__SEARCH__'
ignoring nonexistent directory "/nonexistent/include"
#include "..." search starts here:
#include <...> search starts here:
{entries}
End of search list.
__SEARCH__
  exit {search_exit}
fi
exit 1
"""
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return FakeCompiler(script, log)


@pytest.fixture
def system_includes(tmp_path: Path) -> list[Path]:
    dirs = [tmp_path / "sys" / "include-fixed", tmp_path / "sys" / "include"]
    for d in dirs:
        d.mkdir(parents=True)
    return dirs


@pytest.fixture
def fake_compiler(tmp_path: Path, system_includes: list[Path]) -> FakeCompiler:
    return write_fake_compiler(tmp_path / "bin", include_dirs=system_includes)


@pytest.fixture
def toolchain_setup(fake_compiler: FakeCompiler) -> ToolchainSetup:
    settings = fake_compiler.settings()
    return ToolchainSetup(
        probe=ToolchainProbe(settings),
        cache=ToolchainCache(),
        settings=settings,
        platform="linux",
    )
