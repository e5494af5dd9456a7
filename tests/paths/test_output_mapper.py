# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for source/output path mapping."""

from pathlib import Path

import pytest

from compilehost.paths.output_mapper import OutputPathMapper, replace_extension

# ###############
# Mapping
# ###############


def test_to_output_mirrors_layout_under_out_dir(tmp_path: Path) -> None:
    mapper = OutputPathMapper(tmp_path / "src", tmp_path / "dist")
    assert mapper.to_output(str(tmp_path / "src" / "lib" / "a.ts")) == str(tmp_path / "dist" / "lib" / "a.ts")


def test_to_source_is_the_inverse_mapping(tmp_path: Path) -> None:
    mapper = OutputPathMapper(tmp_path / "src", tmp_path / "dist")
    assert mapper.to_source(str(tmp_path / "dist" / "lib" / "a.js")) == str(tmp_path / "src" / "lib" / "a.js")


def test_out_dir_defaults_to_root(tmp_path: Path) -> None:
    mapper = OutputPathMapper(tmp_path)
    source = str(tmp_path / "a.ts")
    assert mapper.out_dir == mapper.root_dir
    assert mapper.to_output(source) == source


@pytest.mark.parametrize(
    "relative",
    [
        "a.ts",
        "deep/nested/dir/b.tsx",
        "with space/c.py",
        "../outside/d.ts",
    ],
)
def test_round_trip(tmp_path: Path, relative: str) -> None:
    mapper = OutputPathMapper(tmp_path / "root", tmp_path / "out" / "js")
    source = str((tmp_path / "root" / relative).resolve())
    assert mapper.to_source(mapper.to_output(source)) == source


def test_nested_out_dir_inside_root_round_trips(tmp_path: Path) -> None:
    mapper = OutputPathMapper(tmp_path, tmp_path / "build")
    source = str(tmp_path / "pkg" / "mod.py")
    assert mapper.to_output(source) == str(tmp_path / "build" / "pkg" / "mod.py")
    assert mapper.to_source(mapper.to_output(source)) == source


# ###############
# Extensions
# ###############


@pytest.mark.parametrize(
    ("path", "extension", "expected"),
    [
        ("a/b.ts", ".js", "a/b.js"),
        ("a/b.tsx", ".jsx", "a/b.jsx"),
        ("a/b.d.ts", ".js", "a/b.d.js"),
        ("a/b", ".js", "a/b.js"),
        ("a.b/c.py", ".pyc", "a.b/c.pyc"),
    ],
)
def test_replace_extension(path: str, extension: str, expected: str) -> None:
    assert replace_extension(path, extension) == expected
