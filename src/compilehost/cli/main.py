# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the compilehost command-line interface."""

import argparse
import logging
import sys
from pathlib import Path

from compilehost.compiler.diagnostics import CompileError, DiagnosticCategory
from compilehost.compiler.host import Host, NoOutputError
from compilehost.compiler.python_service import PythonCompileService
from compilehost.project.config import (
    CONFIG_FILE_NAME,
    ProjectConfig,
    ProjectConfigError,
    dump_project_config,
    load_project_config,
)

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the compilehost CLI."""
    parser = argparse.ArgumentParser(
        prog="compilehost",
        description="compilehost: incremental compile host for Python sources",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log cache, compile and emit activity",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    init_parser = subparsers.add_parser(
        "init",
        help="Create a project configuration file",
        description=f"Write a default {CONFIG_FILE_NAME} into a directory.",
    )
    init_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory to initialize (default: current directory)",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Compile the configured entries and report diagnostics",
        description="Compile the configured entry files without writing any output.",
    )
    check_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help=f"Directory containing {CONFIG_FILE_NAME} (default: current directory)",
    )

    build_parser = subparsers.add_parser(
        "build",
        help="Compile the configured entries and write their output",
        description="Compile the configured entry files and write the artifacts to the output directory.",
    )
    build_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help=f"Directory containing {CONFIG_FILE_NAME} (default: current directory)",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "init":
        return _cmd_init(args)
    if args.command == "check":
        return _cmd_compile(args, write=False)
    if args.command == "build":
        return _cmd_compile(args, write=True)
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    """Handle the init subcommand."""
    directory = Path(args.directory).resolve()

    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return 1

    config_file = directory / CONFIG_FILE_NAME
    if config_file.exists():
        print(f"Error: project config already exists at '{config_file}'.", file=sys.stderr)
        return 1

    config = ProjectConfig(entries=sorted(str(p.relative_to(directory)) for p in directory.glob("*.py")))
    config_file.write_text(
        "# compilehost project configuration\n" + dump_project_config(config),
        encoding="utf-8",
    )
    print(f"Initialized compilehost project at '{config_file}'.")
    return 0


def _cmd_compile(args: argparse.Namespace, *, write: bool) -> int:
    """Handle the check and build subcommands."""
    directory = Path(args.directory).resolve()
    config_file = directory / CONFIG_FILE_NAME

    if not config_file.exists():
        print(
            f"Error: no {CONFIG_FILE_NAME} found in '{directory}'. Run 'compilehost init' to create one.",
            file=sys.stderr,
        )
        return 1

    try:
        config = load_project_config(config_file)
    except ProjectConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not config.entries:
        print("Error: no entry files configured.", file=sys.stderr)
        return 1

    host = Host(
        PythonCompileService(),
        config.compiler_options(),
        current_directory=directory,
        base_dir=config.base_dir,
        dependency_dirs=config.dependency_dirs,
    )

    errors: list[Exception] = []
    host.on_error(errors.append)

    missing = [entry for entry in config.entries if host.add_file(entry) is None]
    for entry in missing:
        print(f"Error: cannot read entry file '{entry}'.", file=sys.stderr)

    host.compile()

    written = 0
    if write and not host.has_error:
        for entry in config.entries:
            if entry in missing:
                continue
            try:
                data = host.retrieve_output(entry)
            except NoOutputError as exc:
                errors.append(exc)
                continue
            target = Path(host.output_key(entry))
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(data, bytes):
                target.write_bytes(data)
            else:
                target.write_text(data, encoding="utf-8")
            written += 1

    for error in errors:
        print(str(error), file=sys.stderr)

    failed = bool(missing) or host.has_error or any(_is_failure(error) for error in errors)
    if failed:
        print(f"Failed: {sum(_is_failure(e) for e in errors)} error(s).", file=sys.stderr)
        return 1

    if write:
        print(f"Compiled {written} file(s) into '{host.options.out_dir}'.")
    else:
        print(f"No errors in {len(config.entries)} file(s).")
    return 0


def _is_failure(error: Exception) -> bool:
    """Warnings and messages are reported but do not fail the command."""
    if isinstance(error, CompileError):
        return error.category == DiagnosticCategory.ERROR
    return True
