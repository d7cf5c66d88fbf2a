"""Environment-driven settings.

Reads from environment variables:
    ZFLAGS_COMPILER       — C compiler used for probing (default: gcc)
    ZFLAGS_CXX            — C++ compiler used for C++ include paths (default: c++)
    ZFLAGS_CPP            — preprocessor used for macro dumps (default: cpp)
    ZFLAGS_TRUSTED_DIRS   — os.pathsep-separated directories allowed to load unsafe project types
    ZFLAGS_PROBE_TIMEOUT  — seconds before a hung compiler probe is abandoned (default: 30)
    ZFLAGS_LOG_LEVEL      — log level (default: INFO)
    ZFLAGS_LOG_FORMAT     — console | json (default: console)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def _env_paths(key: str) -> list[str]:
    raw = os.environ.get(key, "")
    return [p for p in raw.split(os.pathsep) if p]


@dataclass
class Settings:
    """Resolved runtime settings."""

    compiler: str = "gcc"
    cxx_compiler: str = "c++"
    preprocessor: str = "cpp"
    trusted_dirs: list[str] = field(default_factory=list)
    probe_timeout: float = 30.0
    log_level: str = "INFO"
    log_format: str = "console"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            compiler=os.environ.get("ZFLAGS_COMPILER", "gcc"),
            cxx_compiler=os.environ.get("ZFLAGS_CXX", "c++"),
            preprocessor=os.environ.get("ZFLAGS_CPP", "cpp"),
            trusted_dirs=_env_paths("ZFLAGS_TRUSTED_DIRS"),
            probe_timeout=_env_float("ZFLAGS_PROBE_TIMEOUT", 30.0),
            log_level=os.environ.get("ZFLAGS_LOG_LEVEL", "INFO").upper(),
            log_format=os.environ.get("ZFLAGS_LOG_FORMAT", "console").lower(),
        )
