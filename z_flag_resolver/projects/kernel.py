"""Linux kernel source trees."""

from __future__ import annotations

import logging
import os
import platform
import re
from pathlib import Path

from z_flag_resolver.models.project import KernelProject

logger = logging.getLogger(__name__)

KERNEL_MARKER = "scripts/ver_linux"

# uname -m -> arch/<dir>
_MACHINE_TO_ARCH: dict[str, str] = {
    "x86_64": "x86",
    "amd64": "x86",
    "i386": "x86",
    "i686": "x86",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "ppc64": "powerpc",
    "ppc64le": "powerpc",
    "riscv64": "riscv",
    "s390x": "s390",
    "mips": "mips",
    "mips64": "mips",
}

_VERSION_VAR_RE = re.compile(r"^(VERSION|PATCHLEVEL|SUBLEVEL|EXTRAVERSION)[ \t]*=[ \t]*(\S*)", re.MULTILINE)


def kernel_version(root: str) -> str | None:
    """Read ``VERSION.PATCHLEVEL.SUBLEVEL`` from the top-level Makefile."""
    try:
        text = (Path(root) / "Makefile").read_text(errors="replace")
    except OSError:
        return None
    fields = dict(_VERSION_VAR_RE.findall(text))
    if not fields.get("VERSION"):
        return None
    version = ".".join(
        fields[k] for k in ("VERSION", "PATCHLEVEL", "SUBLEVEL") if fields.get(k)
    )
    return version + fields.get("EXTRAVERSION", "")


def detect_arch(root: str) -> str:
    """Architecture from $ARCH, else the host machine, else x86."""
    arch = os.environ.get("ARCH")
    if not arch:
        arch = _MACHINE_TO_ARCH.get(platform.machine().lower(), "x86")
    if not (Path(root) / "arch" / arch).is_dir():
        logger.debug("arch/%s not found under %s", arch, root)
    return arch


def kernel_include_paths(root: str, build_dir: str, arch: str) -> list[str]:
    """Standard kernel include directories; generated headers live in the build dir."""
    return [
        os.path.join(root, "arch", arch, "include"),
        os.path.join(build_dir, "arch", arch, "include", "generated"),
        os.path.join(root, "include"),
        os.path.join(root, "arch", arch, "include", "uapi"),
        os.path.join(build_dir, "arch", arch, "include", "generated", "uapi"),
        os.path.join(root, "include", "uapi"),
        os.path.join(build_dir, "include", "generated", "uapi"),
    ]


def load_kernel(root: str, arch: str | None = None, build_dir: str | None = None) -> KernelProject:
    root = os.path.abspath(root)
    arch = arch or detect_arch(root)
    build_dir = os.path.abspath(build_dir or os.environ.get("KBUILD_OUTPUT") or root)
    version = kernel_version(root)
    logger.info("Loaded kernel tree %s (version %s, arch %s, build %s)", root, version, arch, build_dir)
    return KernelProject(
        root=root,
        name=f"linux-{version}" if version else "linux",
        include_paths=kernel_include_paths(root, build_dir, arch),
        build_dir=build_dir,
        arch=arch,
    )
