"""Main CLI entry point for the html2html command-line tool.

Commands:
    convert  Normalize markup files, optionally stripping elements
    check    Report whether files nest their tags properly
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from html2html import __version__
from html2html.api.converter import ConversionResult, Converter, convert_file
from html2html.shared import (
    ConfigError,
    ConversionError,
    ConverterConfig,
    DiagnosticSeverity,
    configure_logging,
    get_logger,
)
from html2html.tools.profiling import ConversionProfiler

PRESETS = ("strict", "lenient", "sanitizing")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="html2html",
        description="Normalize hand-written HTML into well-formed markup"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Convert command
    convert_parser = subparsers.add_parser("convert", help="Convert markup files")
    convert_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Markup files to convert"
    )
    convert_parser.add_argument(
        "--lenient", "-l",
        action="store_true",
        help="Repair mismatched and missing end tags instead of failing"
    )
    convert_parser.add_argument(
        "--preset",
        choices=PRESETS,
        help="Configuration preset (ignored when --config is given)"
    )
    convert_parser.add_argument(
        "--strip", "-s",
        action="append",
        default=[],
        metavar="TAG",
        help="Drop elements with this tag name and their content (repeatable)"
    )
    output_group = convert_parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file for a single input (default: stdout)"
    )
    output_group.add_argument(
        "--output-dir", "-d",
        type=Path,
        help="Output directory, one file per input"
    )
    convert_parser.add_argument(
        "--suffix",
        default="",
        help="Suffix added to output file names in --output-dir"
    )
    convert_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON)"
    )
    convert_parser.add_argument(
        "--profile",
        action="store_true",
        help="Report timing and memory use on stderr"
    )

    # Check command
    check_parser = subparsers.add_parser("check", help="Check tag nesting of markup files")
    check_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Markup files to check"
    )
    check_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def load_config(args: argparse.Namespace) -> ConverterConfig:
    """Build the converter configuration from command-line options.

    Raises:
        ConfigError: If the configuration file cannot be loaded
    """
    if args.config:
        config = ConverterConfig.from_file(args.config)
    elif args.preset:
        config = ConverterConfig.preset(args.preset)
    else:
        config = ConverterConfig()

    if args.lenient:
        config = config.override(tree__strict_end_tags=False)
    if args.strip:
        config = config.override(
            tree__vacuum_tags=tuple(config.tree.vacuum_tags) + tuple(args.strip)
        )
    return config


def _error_messages(result: ConversionResult) -> List[str]:
    return [
        d.message for d in result.diagnostics
        if d.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
    ]


def _convert_path(
    converter: Converter, path: Path, profiler: Optional[ConversionProfiler]
) -> ConversionResult:
    if profiler is None or not path.is_file():
        return convert_file(path, converter=converter)
    try:
        output, session = profiler.profile_conversion(converter, path, str(path))
    except (ConversionError, OSError):
        # Run again unprofiled so the failure is reported as diagnostics
        return convert_file(path, converter=converter)
    return ConversionResult(
        output=output,
        metrics=profiler.metrics_for(session, output),
        source_path=str(path),
    )


def _output_path(args: argparse.Namespace, path: Path) -> Optional[Path]:
    if args.output_dir:
        return args.output_dir / f"{path.stem}{args.suffix}{path.suffix}"
    return args.output


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle convert command."""
    logger = get_logger(__name__, None, "cli")

    if args.output and len(args.paths) > 1:
        print("--output accepts a single input, use --output-dir", file=sys.stderr)
        return 1

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    converter = Converter(config)
    profiler = ConversionProfiler() if args.profile else None
    failures = 0

    for path in args.paths:
        result = _convert_path(converter, path, profiler)
        if not result.success:
            failures += 1
            for message in _error_messages(result):
                print(f"{path}: {message}", file=sys.stderr)
            continue

        output_path = _output_path(args, path)
        if output_path is None:
            sys.stdout.write(result.output)
        else:
            try:
                output_path.parent.mkdir(parents=True, exist_ok=True)
                output_path.write_text(result.output, encoding="utf-8")
            except OSError as e:
                print(f"Error writing output: {e}", file=sys.stderr)
                failures += 1
                continue
            logger.info(
                "Converted file",
                extra={"file_path": str(path), "output_path": str(output_path)}
            )

        if profiler is not None:
            metrics = result.metrics
            print(
                f"{path}: {metrics.processing_time_ms:.1f}ms, "
                f"{metrics.tokens_consumed} tokens, {metrics.nodes_built} nodes, "
                f"{metrics.memory_used_bytes} bytes",
                file=sys.stderr
            )

    return 0 if failures == 0 else 1


def check_file(converter: Converter, path: Path) -> Dict[str, Any]:
    """Check one file and describe the outcome as a dictionary."""
    result = convert_file(path, converter=converter)
    entry: Dict[str, Any] = {"file": str(path), "well_formed": result.success}
    errors = _error_messages(result)
    if errors:
        entry["error"] = errors[0]
    return entry


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    converter = Converter(ConverterConfig.strict_preset())
    results = [check_file(converter, path) for path in args.paths]

    if args.format == "json":
        print(json.dumps(results, indent=2))
    else:
        ok_count = sum(1 for r in results if r["well_formed"])
        print(f"Checked {len(results)} files, {ok_count} well-formed")
        print("-" * 50)
        for result in results:
            status = "✓" if result["well_formed"] else "✗"
            print(f"{status} {result['file']}")
            if "error" in result:
                print(f"   Error: {result['error']}")

    return 0 if all(r["well_formed"] for r in results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        if args.command == "convert":
            return cmd_convert(args)
        if args.command == "check":
            return cmd_check(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
