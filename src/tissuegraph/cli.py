"""
Command-line interface for tissuegraph.

Provides commands for parsing a labeled raster and writing a default config.
"""

import argparse
import sys

from tissuegraph.config import load_config, save_default_config
from tissuegraph.tracer import configure_tracer, get_tracer


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="tissuegraph: Reconstruct vertex/bond/cell graphs from labeled tissue rasters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse a labeled raster")
    parse_parser.add_argument(
        "--input", "-i",
        required=True,
        help="Labeled raster (.npy or image)",
    )
    parse_parser.add_argument(
        "--markers", "-m",
        default=None,
        help="Raster marking dividing cells",
    )
    parse_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    parse_parser.add_argument(
        "--report", "-r",
        default=None,
        help="Path to write the JSON report",
    )
    parse_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with an error status when consistency errors are found",
    )
    parse_parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    parse_parser.add_argument(
        "--trace-level",
        default="INFO",
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    parse_parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    parse_parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="tissuegraph_config.yaml",
        help="Output path for config file",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "parse":
        return handle_parse(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def handle_parse(args):
    """Handle the parse command."""
    config = load_config(args.config)

    # Command-line flags win over the config file
    tracing = config.tracing
    configure_tracer(
        enabled=args.trace or tracing.enabled,
        level=args.trace_level if args.trace else tracing.level,
        file_path=args.trace_file or tracing.file_path,
        json_output=args.trace_json or tracing.json_output,
    )

    tracer = get_tracer()

    try:
        from tissuegraph.pipeline import parse_tissue
        from tissuegraph.validate.report import save_report_json, summary_text

        with tracer.span("cli_parse", module="cli"):
            result = parse_tissue(args.input, config=config, markers=args.markers)

        if not result.ok:
            error = result.error
            print(f"\nTracing failed ({error.kind}): {error}", file=sys.stderr)
            return 1

        print()
        print(summary_text(result.graph, result.report))

        if args.report:
            save_report_json(result.graph, result.report, args.report)
            print(f"\nReport saved to: {args.report}")

        if args.strict and result.report.has_errors:
            print("\n[!] Consistency errors detected.", file=sys.stderr)
            return 1

        return 0

    except (OSError, ValueError) as e:
        tracer.event(f"Parse failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1

    finally:
        get_tracer().config.close()


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
