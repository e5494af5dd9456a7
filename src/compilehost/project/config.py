# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Project configuration model and YAML loader."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from compilehost.cache.file_cache import DEFAULT_DEPENDENCY_DIRS
from compilehost.compiler.service import CompilerOptions

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".compilehost.yaml"


class ProjectConfigError(Exception):
    """Raised when a project configuration file is invalid or cannot be loaded."""


class ProjectConfig(BaseModel):
    """The parsed configuration of a project.

    Directory fields are absolute once loaded through
    :func:`load_project_config`; relative values are resolved against the
    directory containing the configuration file.

    Attributes:
        root_dir: Logical source root.
        out_dir: Directory compiled artifacts are written to.
        base_dir: Directory source map paths are made relative to.
        entries: Entry files of the build.
        dependency_dirs: Directory names marking third-party dependencies.
        compiler: Options passed to the compile service.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    root_dir: str = Field(default=".", alias="root-dir")
    out_dir: str = Field(default="build", alias="out-dir")
    base_dir: str = Field(default=".", alias="base-dir")
    entries: list[str] = Field(default_factory=list)
    dependency_dirs: list[str] = Field(alias="dependency-dirs", default_factory=lambda: list(DEFAULT_DEPENDENCY_DIRS))
    compiler: CompilerOptions = Field(default_factory=CompilerOptions)

    def compiler_options(self) -> CompilerOptions:
        """Compiler options with the project's root and output directories applied."""
        return self.compiler.model_copy(update={"root_dir": self.root_dir, "out_dir": self.out_dir})


def load_project_config(path: Path) -> ProjectConfig:
    """Load and validate a project configuration file.

    An empty file yields the default configuration.

    Args:
        path: Path to the ``.compilehost.yaml`` file.

    Returns:
        A validated ProjectConfig with absolute directories and entries.

    Raises:
        ProjectConfigError: If the file cannot be read, contains invalid YAML,
            or does not conform to the expected schema.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ProjectConfigError(f"Project config file not found: {path}") from None
    except OSError as exc:
        raise ProjectConfigError(f"Cannot read project config file '{path}': {exc}") from exc

    config = parse_project_config(raw, source_label=str(path))
    return _resolve_paths(config, path.parent.resolve())


def parse_project_config(text: str, source_label: str = "<string>") -> ProjectConfig:
    """Parse project config YAML text without resolving any paths.

    Raises:
        ProjectConfigError: If the YAML is invalid or does not match the schema.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ProjectConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ProjectConfigError(f"{source_label}: project config must be a YAML mapping")

    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise ProjectConfigError(f"Invalid project config {source_label}: {exc}") from exc


def dump_project_config(config: ProjectConfig) -> str:
    """Serialize *config* to YAML using the hyphenated field names."""
    data = config.model_dump(by_alias=True, exclude_none=True)
    return yaml.dump(data, default_flow_style=False, sort_keys=False)


# ################
# Implementation
# ################


def _resolve_paths(config: ProjectConfig, directory: Path) -> ProjectConfig:
    return config.model_copy(
        update={
            "root_dir": str(directory / config.root_dir),
            "out_dir": str(directory / config.out_dir),
            "base_dir": str(directory / config.base_dir),
            "entries": [str(directory / entry) for entry in config.entries],
        }
    )
