# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the generational file cache."""

from __future__ import annotations

from pathlib import Path

from compilehost.cache.file_cache import FileCache, is_declaration_file

# ###############
# Helpers
# ###############


class _Parser:
    """Records parse calls and returns a fresh handle per call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def __call__(self, file_name: str, text: str) -> object:
        self.calls.append((file_name, text))
        return object()


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _cache(tmp_path: Path, **kwargs: object) -> tuple[FileCache, _Parser]:
    parser = _Parser()
    return FileCache(parser, current_directory=tmp_path, **kwargs), parser


# ###############
# add_file
# ###############


class TestAddFile:
    def test_record_fields(self, tmp_path: Path) -> None:
        _write(tmp_path / "src" / "a.ts", "const a = 1;")
        cache, parser = _cache(tmp_path)

        handle = cache.add_file("src/a.ts", is_root=True)

        record = cache.get(tmp_path / "src" / "a.ts")
        assert record is not None
        assert record.canonical_path == str(tmp_path / "src" / "a.ts")
        assert record.relative_path == str(Path("src") / "a.ts")
        assert record.contents == "const a = 1;"
        assert record.parsed is handle
        assert record.is_root
        assert not record.is_dependency
        assert parser.calls == [(str(Path("src") / "a.ts"), "const a = 1;")]

    def test_same_contents_reuse_the_handle(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.ts", "x")
        cache, _ = _cache(tmp_path)
        first = cache.add_file("a.ts")
        assert cache.add_file("a.ts") is first
        assert cache.parse_count == 1

    def test_changed_contents_are_parsed_again(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.ts", "x")
        cache, _ = _cache(tmp_path)
        first = cache.add_file("a.ts")
        _write(tmp_path / "a.ts", "y")
        assert cache.add_file("a.ts") is not first
        assert cache.get("a.ts").contents == "y"
        assert cache.parse_count == 2

    def test_re_adding_updates_the_root_flag(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.ts", "x")
        cache, _ = _cache(tmp_path)
        cache.add_file("a.ts", is_root=True)
        cache.add_file("a.ts", is_root=False)
        assert cache.root_paths() == set()

    def test_unreadable_file_returns_none(self, tmp_path: Path) -> None:
        (tmp_path / "dir.ts").mkdir()
        cache, parser = _cache(tmp_path)
        assert cache.add_file("missing.ts") is None
        assert cache.add_file("dir.ts") is None
        assert "missing.ts" not in cache
        assert parser.calls == []

    def test_listener_is_notified_for_cached_and_fresh_files(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.ts", "x")
        seen: list[tuple[str, str]] = []
        cache, _ = _cache(tmp_path, on_file=lambda canonical, relative: seen.append((canonical, relative)))

        cache.add_file("a.ts")
        cache.add_file(tmp_path / "a.ts")
        cache.add_file("missing.ts")

        assert seen == [(str(tmp_path / "a.ts"), "a.ts")] * 2


# ###############
# Generations
# ###############


class TestGenerations:
    def test_reset_clears_the_current_generation(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.ts", "x")
        cache, _ = _cache(tmp_path)
        cache.add_file("a.ts", is_root=True)
        cache.reset()
        assert len(cache) == 0
        assert cache.root_paths() == set()

    def test_previous_generation_handle_is_migrated(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.ts", "x")
        cache, _ = _cache(tmp_path)
        first = cache.add_file("a.ts")
        cache.reset()
        assert cache.add_file("a.ts") is first
        assert cache.parse_count == 1

    def test_previous_generation_with_changed_contents_is_discarded(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.ts", "x")
        cache, _ = _cache(tmp_path)
        cache.add_file("a.ts")
        cache.reset()
        _write(tmp_path / "a.ts", "y")
        cache.add_file("a.ts")
        _write(tmp_path / "a.ts", "x")
        cache.add_file("a.ts")
        assert cache.parse_count == 3

    def test_line_ending_change_is_parsed_afresh(self, tmp_path: Path) -> None:
        path = tmp_path / "a.py"
        path.write_bytes(b"x = 1\n")
        cache, _ = _cache(tmp_path)
        cache.add_file("a.py")
        cache.reset()

        path.write_bytes(b"x = 1\r\n")
        cache.add_file("a.py")

        assert cache.get("a.py").contents == "x = 1\r\n"
        assert cache.parse_count == 2

    def test_file_absent_from_a_generation_is_forgotten(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.ts", "x")
        cache, _ = _cache(tmp_path)
        cache.add_file("a.ts")
        cache.reset()
        cache.reset()
        cache.add_file("a.ts")
        assert cache.parse_count == 2


# ###############
# Views
# ###############


class TestViews:
    def test_root_and_dependency_paths(self, tmp_path: Path) -> None:
        root = _write(tmp_path / "main.ts", "x")
        helper = _write(tmp_path / "helper.ts", "x")
        dep = _write(tmp_path / "node_modules" / "lib" / "index.ts", "x")
        site = _write(tmp_path / "venv" / "site-packages" / "pkg" / "mod.py", "x")
        decl = _write(tmp_path / "node_modules" / "lib" / "index.d.ts", "x")
        cache, _ = _cache(tmp_path)
        cache.add_file(root, is_root=True)
        for path in (helper, dep, site, decl):
            cache.add_file(path)

        assert cache.root_paths() == {str(root)}
        assert cache.dependency_paths() == {str(dep), str(site)}

    def test_custom_dependency_dirs(self, tmp_path: Path) -> None:
        vendored = _write(tmp_path / "vendor" / "lib.ts", "x")
        cache, _ = _cache(tmp_path, dependency_dirs=("vendor",))
        cache.add_file(vendored)
        assert cache.dependency_paths() == {str(vendored)}

    def test_no_dependency_dirs(self, tmp_path: Path) -> None:
        dep = _write(tmp_path / "node_modules" / "lib.ts", "x")
        cache, _ = _cache(tmp_path, dependency_dirs=())
        cache.add_file(dep)
        assert cache.dependency_paths() == set()


def test_is_declaration_file() -> None:
    assert is_declaration_file("lib/index.d.ts")
    assert is_declaration_file("pkg/mod.PYI")
    assert not is_declaration_file("lib/index.ts")
    assert not is_declaration_file("pkg/mod.py")
