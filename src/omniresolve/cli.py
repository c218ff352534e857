"""
Command-line interface for omniresolve.

This module provides the `omniresolve` CLI tool used by the plugin build to
resolve optional capabilities before compiling.
"""

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from omniresolve import __version__, config
from omniresolve.capability_tables import list_available_tables, load_table_spec
from omniresolve.errors import ResolveError
from omniresolve.output import log_error, set_output_file, set_output_stream, set_verbose
from omniresolve.platforms import PlatformId
from omniresolve.report import render_summary
from omniresolve.resolver import ResolveParams, resolve

EXIT_INVALID_INPUT = 2


@dataclass
class ResolveArgs:
    """Arguments for the resolve command."""

    plugin_dir: Path
    thirdparty_dir: Optional[Path] = None
    project_dir: Optional[Path] = None
    platform: Optional[str] = None
    table: Optional[str] = None
    stage: bool = True
    json_output: Optional[str] = None
    verbose: bool = False


def resolve_command(args: ResolveArgs) -> int:
    """Resolve capabilities for a plugin build.

    Examples:
        omniresolve resolve --platform Win64 --thirdparty-dir /UE/Engine/Source/ThirdParty
        omniresolve resolve --no-stage --json -          # print ResolvedConfig JSON
        omniresolve resolve --table ./my_table.json      # custom capability table
    """
    set_verbose(args.verbose)

    try:
        table = load_table_spec(args.table or config.get_table_spec())
        platform = PlatformId.from_string(args.platform) if args.platform else config.get_platform()

        if not args.plugin_dir.is_dir():
            raise ResolveError(f"Plugin directory does not exist: {args.plugin_dir}")

        # JSON on stdout must stay parseable, so diagnostics move to stderr
        if args.json_output == "-":
            set_output_stream(sys.stderr)

        result = resolve(
            ResolveParams(
                table=table,
                platform=platform,
                plugin_dir=args.plugin_dir,
                thirdparty_dir=args.thirdparty_dir or config.get_thirdparty_dir(),
                project_dir=args.project_dir or config.get_project_dir(),
                stage=args.stage,
            )
        )
    except ResolveError as e:
        log_error(str(e))
        return EXIT_INVALID_INPUT
    finally:
        set_output_stream(None)

    if args.json_output:
        payload = json.dumps(result.config.to_dict(), indent=2)
        if args.json_output == "-":
            sys.stdout.write(payload + "\n")
        else:
            try:
                Path(args.json_output).write_text(payload + "\n", encoding="utf-8")
            except OSError as e:
                log_error(f"Cannot write JSON output {args.json_output}: {e}")
                return EXIT_INVALID_INPUT
    else:
        render_summary(table, result)

    return 0


def tables_command() -> int:
    """List packaged capability tables."""
    for name in list_available_tables():
        print(name)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="omniresolve",
        description="Resolve optional plugin capabilities (OpenEXR, NVENC) and stage runtime libraries",
    )
    parser.add_argument("--version", action="version", version=f"omniresolve {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Detect capabilities and print the resolved build configuration",
    )
    resolve_parser.add_argument(
        "--plugin-dir",
        type=Path,
        default=None,
        help="Plugin root directory (default: $OMNIRESOLVE_PLUGIN_DIR or current directory)",
    )
    resolve_parser.add_argument(
        "--thirdparty-dir",
        type=Path,
        default=None,
        help="Engine third-party source directory (default: $OMNIRESOLVE_THIRDPARTY_DIR)",
    )
    resolve_parser.add_argument(
        "--project-dir",
        type=Path,
        default=None,
        help="Project directory whose Binaries/<Platform> must exist before linking",
    )
    resolve_parser.add_argument(
        "-p",
        "--platform",
        default=None,
        help="Target platform, e.g. Win64 (default: $OMNIRESOLVE_PLATFORM or host platform)",
    )
    resolve_parser.add_argument(
        "-t",
        "--table",
        default=None,
        help="Capability table name or path to a table JSON file (default: omnicapture)",
    )
    resolve_parser.add_argument(
        "--no-stage",
        action="store_true",
        help="Do not copy runtime libraries or create output directories",
    )
    resolve_parser.add_argument(
        "--json",
        dest="json_output",
        nargs="?",
        const="-",
        default=None,
        metavar="FILE",
        help="Write the resolved configuration as JSON to FILE (or stdout if omitted)",
    )
    resolve_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write diagnostics to this file",
    )
    resolve_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    subparsers.add_parser("tables", help="List packaged capability tables")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    if parsed_args.command == "tables":
        sys.exit(tables_command())

    args = ResolveArgs(
        plugin_dir=parsed_args.plugin_dir or config.get_plugin_dir(),
        thirdparty_dir=parsed_args.thirdparty_dir,
        project_dir=parsed_args.project_dir,
        platform=parsed_args.platform,
        table=parsed_args.table,
        stage=not parsed_args.no_stage,
        json_output=parsed_args.json_output,
        verbose=parsed_args.verbose,
    )

    if parsed_args.log_file is None:
        sys.exit(resolve_command(args))

    try:
        with open(parsed_args.log_file, "w", encoding="utf-8") as log_file:
            set_output_file(log_file)
            code = resolve_command(args)
    except OSError as e:
        log_error(f"Cannot write log file {parsed_args.log_file}: {e}")
        code = EXIT_INVALID_INPUT
    finally:
        set_output_file(None)
    sys.exit(code)


if __name__ == "__main__":
    main()
