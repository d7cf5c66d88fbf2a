"""Tests for ProjectTypeRegistry ordering, replacement and detection."""

from __future__ import annotations

import random
from pathlib import Path
from unittest.mock import Mock

import pytest

from z_flag_resolver.exceptions import ConfigurationError, RegistryNotInitializedError
from z_flag_resolver.matchers.dirmatch import LiteralDirMatcher
from z_flag_resolver.registry import (
    Priority,
    ProjectTypeDescriptor,
    ProjectTypeRegistry,
    as_directory,
)


def _desc(name: str, marker: str = "marker", **kwargs) -> ProjectTypeDescriptor:
    return ProjectTypeDescriptor(name=name, loader=Mock(), marker_file=marker, **kwargs)


def _names(registry: ProjectTypeRegistry) -> list[str]:
    return [d.name for d in registry.descriptors()]


class TestRegistration:
    def test_default_before_first_generic(self):
        registry = ProjectTypeRegistry(seed=[_desc("a")])
        registry.register(_desc("fallback"), Priority.GENERIC)
        registry.register(_desc("b"))
        assert _names(registry) == ["a", "b", "fallback"]

    def test_unique_prepended(self):
        registry = ProjectTypeRegistry(seed=[_desc("a"), _desc("b")])
        registry.register(_desc("special"), Priority.UNIQUE)
        assert _names(registry)[0] == "special"

    def test_generic_appended_and_flagged(self):
        registry = ProjectTypeRegistry(seed=[_desc("a")])
        registry.register(_desc("g1"), "generic")
        registry.register(_desc("g2"), Priority.GENERIC)
        assert _names(registry) == ["a", "g1", "g2"]
        assert registry.get("g1").is_generic
        assert not registry.get("a").is_generic

    def test_unseeded_default_raises(self):
        registry = ProjectTypeRegistry()
        with pytest.raises(RegistryNotInitializedError, match="late"):
            registry.register(_desc("late"))
        assert registry.descriptors() == []

    def test_unseeded_unique_and_generic_allowed(self):
        registry = ProjectTypeRegistry()
        registry.register(_desc("u"), Priority.UNIQUE)
        registry.register(_desc("g"), Priority.GENERIC)
        assert _names(registry) == ["u", "g"]
        assert not registry.seeded

    def test_empty_seed_still_seeds(self):
        registry = ProjectTypeRegistry(seed=[])
        registry.register(_desc("a"))
        assert _names(registry) == ["a"]

    def test_replace_same_name_in_place(self):
        registry = ProjectTypeRegistry(seed=[_desc("a"), _desc("b"), _desc("c")])
        replacement = _desc("b", marker="other")
        registry.register(replacement, Priority.UNIQUE)
        assert _names(registry) == ["a", "b", "c"]
        assert registry.get("b") is replacement

    def test_replacement_keeps_generic_tier(self):
        registry = ProjectTypeRegistry(seed=[_desc("a")])
        registry.register(_desc("g"), Priority.GENERIC)
        registry.register(_desc("g", marker="other"))
        registry.register(_desc("b"))
        assert _names(registry) == ["a", "b", "g"]
        assert registry.get("g").is_generic

    @pytest.mark.parametrize("seed", range(5))
    def test_tiers_hold_for_any_registration_order(self, seed):
        rng = random.Random(seed)
        registry = ProjectTypeRegistry(seed=[])
        tiers: dict[str, Priority] = {}
        for i in range(30):
            priority = rng.choice(list(Priority))
            name = f"{priority.value}-{i}"
            tiers[name] = priority
            registry.register(_desc(name), priority)

        rank = {Priority.UNIQUE: 0, Priority.DEFAULT: 1, Priority.GENERIC: 2}
        order = [rank[tiers[name]] for name in _names(registry)]
        assert order == sorted(order)

        uniques = [n for n in _names(registry) if tiers[n] is Priority.UNIQUE]
        registered_uniques = [n for n in tiers if tiers[n] is Priority.UNIQUE]
        assert uniques == list(reversed(registered_uniques))

    def test_get_and_new_project_choices(self):
        registry = ProjectTypeRegistry(
            seed=[_desc("a"), _desc("hidden", allow_as_new_project_choice=False)]
        )
        assert registry.get("missing") is None
        assert registry.new_project_choices() == ["a"]


class TestDescriptor:
    def test_requires_marker_or_matcher(self):
        with pytest.raises(ConfigurationError):
            ProjectTypeDescriptor(name="bad", loader=Mock())

    def test_rejects_unsupported_marker(self):
        with pytest.raises(ConfigurationError, match="unsupported marker"):
            ProjectTypeDescriptor(name="bad", loader=Mock(), marker_file=42)

    def test_rejects_non_callable_loader(self):
        with pytest.raises(ConfigurationError, match="loader"):
            ProjectTypeDescriptor(name="bad", loader="load_me", marker_file="x")

    def test_callable_marker(self, tmp_path: Path):
        (tmp_path / "special.cfg").write_text("")
        desc = _desc("dyn", marker=lambda d: "special.cfg")
        assert desc.detect_in(str(tmp_path))

    def test_callable_marker_returning_none(self, tmp_path: Path):
        desc = _desc("dyn", marker=lambda d: None)
        assert not desc.detect_in(str(tmp_path))

    def test_matcher_checked_before_marker(self, tmp_path: Path):
        marker = Mock(return_value="never-there")
        desc = ProjectTypeDescriptor(
            name="matched",
            loader=Mock(),
            marker_file=marker,
            root_dir_matcher=LiteralDirMatcher(tmp_path.name),
        )
        assert desc.detect_in(str(tmp_path))
        marker.assert_not_called()

    def test_as_directory(self, tmp_path: Path):
        assert as_directory(str(tmp_path)).endswith("/")
        assert as_directory(str(tmp_path) + "/") == as_directory(str(tmp_path))


class TestDetection:
    def test_first_match_in_order_wins(self, tmp_path: Path):
        (tmp_path / "Makefile.am").write_text("SUBDIRS = src\n")
        (tmp_path / "Makefile").write_text("all:\n")
        registry = ProjectTypeRegistry(seed=[_desc("make", "Makefile"), _desc("automake", "Makefile.am")])
        registry.register(_desc("am-override", "Makefile.am"), Priority.UNIQUE)
        assert registry.detect(str(tmp_path)).name == "am-override"

    def test_specific_type_beats_generic_fallback(self, tmp_path: Path):
        (tmp_path / "Makefile.am").write_text("")
        (tmp_path / "Makefile").write_text("")
        registry = ProjectTypeRegistry(seed=[_desc("make", "Makefile.in"), _desc("automake", "Makefile.am")])
        registry.register(_desc("genericFallback", "Makefile"), Priority.GENERIC)

        assert registry.detect(str(tmp_path)).name == "automake"
        empty = tmp_path / "empty"
        empty.mkdir()
        assert registry.detect(str(empty)) is None

    def test_generic_used_when_nothing_specific(self, tmp_path: Path):
        (tmp_path / "Makefile").write_text("")
        registry = ProjectTypeRegistry(seed=[_desc("automake", "Makefile.am")])
        registry.register(_desc("genericFallback", "Makefile"), Priority.GENERIC)
        assert registry.detect(str(tmp_path)).name == "genericFallback"

    def test_same_marker_first_registered_default_wins(self, tmp_path: Path):
        (tmp_path / "Project.ede").write_text("")
        registry = ProjectTypeRegistry(seed=[_desc("ede-automake", "Project.ede"), _desc("ede-make", "Project.ede")])
        assert registry.detect(str(tmp_path)).name == "ede-automake"


class TestDetectOwner:
    def _registry(self) -> ProjectTypeRegistry:
        registry = ProjectTypeRegistry(
            seed=[
                _desc("automake", "Makefile.am", root_only=False),
                _desc("linux", "scripts/ver_linux", root_only=True),
            ]
        )
        registry.register(_desc("generic-makefile", "Makefile", root_only=False), Priority.GENERIC)
        return registry

    def _kernel_tree(self, tmp_path: Path) -> Path:
        (tmp_path / "scripts").mkdir()
        (tmp_path / "scripts" / "ver_linux").write_text("")
        (tmp_path / "Makefile").write_text("VERSION = 6\n")
        net = tmp_path / "drivers" / "net"
        net.mkdir(parents=True)
        (net / "Makefile").write_text("obj-y += foo.o\n")
        return net

    def test_root_only_ancestor_beats_local_generic(self, tmp_path: Path):
        net = self._kernel_tree(tmp_path)
        descriptor, root = self._registry().detect_owner(str(net))
        assert descriptor.name == "linux"
        assert root == str(tmp_path)

    def test_root_only_ancestor_when_nothing_local(self, tmp_path: Path):
        net = self._kernel_tree(tmp_path)
        (net / "Makefile").unlink()
        descriptor, root = self._registry().detect_owner(str(net))
        assert descriptor.name == "linux"
        assert root == str(tmp_path)

    def test_local_specific_type_wins(self, tmp_path: Path):
        net = self._kernel_tree(tmp_path)
        (net / "Makefile.am").write_text("")
        descriptor, root = self._registry().detect_owner(str(net))
        assert descriptor.name == "automake"
        assert root == str(net)

    def test_generic_fallback_without_rooted_ancestor(self, tmp_path: Path):
        (tmp_path / "Makefile").write_text("")
        descriptor, root = self._registry().detect_owner(str(tmp_path))
        assert descriptor.name == "generic-makefile"

    def test_nothing(self, tmp_path: Path):
        assert self._registry().detect_owner(str(tmp_path)) is None


class TestFindRoot:
    def test_walks_up_while_parent_matches(self, tmp_path: Path):
        sub = tmp_path / "src" / "lib"
        sub.mkdir(parents=True)
        for d in (tmp_path, tmp_path / "src", sub):
            (d / "Makefile.am").write_text("")
        desc = _desc("automake", "Makefile.am", root_only=False)
        registry = ProjectTypeRegistry(seed=[desc])
        assert registry.find_root(desc, str(sub)) == str(tmp_path)

    def test_stops_at_gap(self, tmp_path: Path):
        sub = tmp_path / "src" / "lib"
        sub.mkdir(parents=True)
        (tmp_path / "Makefile.am").write_text("")
        (sub / "Makefile.am").write_text("")
        desc = _desc("automake", "Makefile.am", root_only=False)
        assert ProjectTypeRegistry(seed=[desc]).find_root(desc, str(sub)) == str(sub)

    def test_root_only_stays_put(self, tmp_path: Path):
        sub = tmp_path / "sub"
        sub.mkdir()
        (tmp_path / ".git").mkdir()
        (sub / ".git").mkdir()
        desc = _desc("git", ".git", root_only=True)
        assert ProjectTypeRegistry(seed=[desc]).find_root(desc, str(sub)) == str(sub)

    def test_root_finder_preferred(self, tmp_path: Path):
        desc = _desc("custom", root_finder=lambda d: str(tmp_path))
        sub = tmp_path / "deep" / "er"
        sub.mkdir(parents=True)
        assert ProjectTypeRegistry(seed=[desc]).find_root(desc, str(sub)) == str(tmp_path)
