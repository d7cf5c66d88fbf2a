"""Data models for toolchain probe results."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ToolchainFacts:
    """Facts recovered by probing one compiler executable.

    ``include_paths`` and ``symbol_files`` are ordered and duplicate-free;
    ``macros`` keeps the first value seen for each name.
    """

    executable: str
    version: str | None = None
    target: str | None = None  # e.g. "x86_64-linux-gnu"
    prefix: str | None = None
    options: dict[str, str | None] = field(default_factory=dict)  # {"--with-arch": "x86-64", ...}
    include_paths: dict[str, list[str]] = field(default_factory=dict)  # {"c": [...], "c++": [...]}
    macros: dict[str, str] = field(default_factory=dict)
    symbol_files: list[str] = field(default_factory=list)

    def add_include_path(self, language: str, path: str) -> bool:
        paths = self.include_paths.setdefault(language, [])
        if path in paths:
            return False
        paths.append(path)
        return True

    def add_macro(self, name: str, value: str) -> bool:
        if name in self.macros:
            return False
        self.macros[name] = value
        return True

    def add_symbol_file(self, path: str) -> bool:
        if path in self.symbol_files:
            return False
        self.symbol_files.append(path)
        return True

    def include_flags(self, language: str) -> list[str]:
        return [f"-I{p}" for p in self.include_paths.get(language, [])]
