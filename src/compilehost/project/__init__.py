# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Project configuration for compilehost."""

from compilehost.project.config import (
    CONFIG_FILE_NAME,
    ProjectConfig,
    ProjectConfigError,
    dump_project_config,
    load_project_config,
    parse_project_config,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "ProjectConfig",
    "ProjectConfigError",
    "dump_project_config",
    "load_project_config",
    "parse_project_config",
]
