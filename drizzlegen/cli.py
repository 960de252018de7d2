# File: drizzlegen/cli.py
"""
drizzlegen - Command-Line Interface
=====================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Generate ./drizzle/schema.ts from a DMMF options document
    python -m drizzlegen -i options.json

    # Use the schema source for @db.* native types, write to a given file
    python -m drizzlegen -i options.yaml -s schema.prisma -o ./src/db/schema.ts

    # Render to stdout only
    python -m drizzlegen -i options.json --dry-run --print

Exit codes:
    0  success
    2  generation error
    3  export error
    4  input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from drizzlegen.errors import GeneratorError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("drizzlegen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root drizzlegen logger based on verbosity level.

    Args:
        verbosity: -1 = silent, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.CRITICAL + 1

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("drizzlegen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from drizzlegen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="drizzlegen",
        description=(
            "drizzlegen: Drizzle ORM schema generator.\n\n"
            "Translates a Prisma DMMF document (JSON/YAML) into a Drizzle "
            "TypeScript schema for PostgreSQL, MySQL or SQLite."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -i options.json\n"
            "  %(prog)s -i options.yaml -s schema.prisma -o ./src/db\n"
            "  %(prog)s -i options.json --provider sqlite --dry-run --print\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"drizzlegen v{__version__}",
    )

    # --- Inputs ---
    parser.add_argument(
        "-i", "--input",
        type=str,
        required=True,
        metavar="PATH",
        help="Generator options / DMMF document (JSON or YAML).",
    )
    parser.add_argument(
        "-s", "--schema",
        type=str,
        default=None,
        metavar="PATH",
        help="Schema source file, used to look up @db.* native types.",
    )

    # --- Output ---
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="PATH",
        help="Output directory, or a file path ending with '.ts'.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--provider",
        type=str,
        default=None,
        metavar="NAME",
        help="Override the datasource provider (postgresql, mysql, sqlite).",
    )
    config_group.add_argument(
        "--strict-types",
        action="store_true",
        default=None,
        help="Fail on fields whose type has no column mapping instead of dropping them.",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Render the schema but don't write it to disk.",
    )
    mode_group.add_argument(
        "--print",
        dest="print_schema",
        action="store_true",
        default=False,
        help="Print the rendered schema to stdout.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all log output.",
    )

    return parser


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Build a config override dictionary from CLI arguments."""
    overrides: Dict[str, Any] = {
        "output": args.output,
        "provider": args.provider,
        "strict_types": args.strict_types,
        "dry_run": args.dry_run,
    }
    return {k: v for k, v in overrides.items() if v is not None}


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _run_generation(
    input_path: Path,
    schema_path: Optional[Path],
    args: argparse.Namespace,
) -> int:
    """
    Run the full generation pipeline.

    Returns the appropriate exit code.
    """
    from drizzlegen.generator import DrizzleGenerator, GenerationReport

    generator: DrizzleGenerator = DrizzleGenerator()

    try:
        report: GenerationReport = generator.generate_from_file(
            input_path,
            schema_path=schema_path,
            config_overrides=_build_config_overrides(args),
        )
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load input: %s", exc)
        return EXIT_INPUT_ERROR
    except GeneratorError as exc:
        logger.error("Generation failed: %s", exc)
        return EXIT_GENERATION_ERROR

    if args.print_schema:
        print(report.schema_text)
    else:
        print(report.summary())

    if report.export_errors:
        return EXIT_EXPORT_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    _setup_logging(-1 if args.quiet else args.verbose)

    input_path: Path = Path(args.input).resolve()
    if not input_path.is_file():
        logger.error("Input file not found: %s", input_path)
        sys.exit(EXIT_INPUT_ERROR)

    schema_path: Optional[Path] = Path(args.schema).resolve() if args.schema else None

    logger.info("Input:   %s", input_path)
    logger.info("Schema:  %s", schema_path or "-")
    logger.info("Output:  %s", args.output or "(from options)")

    exit_code: int = _run_generation(input_path, schema_path, args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("drizzlegen.cli loaded.")
