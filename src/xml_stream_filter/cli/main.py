"""Main CLI entry point for the xml-stream-filter command-line tool.

Provides fragment selection from XML files and a dump of the raw event
stream for inspecting what a filter will be asked about.
"""

import argparse
import itertools
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from xml_stream_filter import __version__
from xml_stream_filter.api import FragmentBuilder
from xml_stream_filter.events import ExpatEventSource
from xml_stream_filter.filters import (
    DefaultFragmentFilter,
    ElementNameFilter,
    FragmentFilter,
    WhitespaceTextFilter,
)
from xml_stream_filter.shared import (
    ConfigValidationError,
    FragmentBuildError,
    FragmentBuilderConfig,
    configure_logging,
    get_logger,
)

PRESETS = {
    "default": FragmentBuilderConfig.default,
    "deep_scan": FragmentBuilderConfig.deep_scan,
    "large_documents": FragmentBuilderConfig.large_documents,
    "strict": FragmentBuilderConfig.strict,
}


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.builder_config = FragmentBuilderConfig.default()
        self.output_format = "json"
        self.loaded_from: Optional[Path] = None

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file may name a ``preset``, give a full ``config`` object in the
        ``FragmentBuilderConfig.to_dict()`` layout, and set ``output_format``.

        Raises:
            ConfigValidationError: If the file cannot be read or is invalid
        """
        config = cls()
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigValidationError(
                f"Could not load config file {config_path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Config file must contain a JSON object")

        if "preset" in data:
            preset = data["preset"]
            if preset not in PRESETS:
                raise ConfigValidationError(
                    f"Unknown preset: {preset}",
                    field_name="preset",
                    suggestions=sorted(PRESETS),
                )
            config.builder_config = PRESETS[preset]()
        if "config" in data:
            config.builder_config = FragmentBuilderConfig.from_dict(data["config"])

        config.output_format = data.get("output_format", config.output_format)
        config.loaded_from = config_path
        return config


class FragmentSelector:
    """Runs a fragment build per file and collects reportable results."""

    def __init__(self, config: CLIConfig, fragment_filter: FragmentFilter):
        self.config = config
        self.builder = FragmentBuilder(fragment_filter, config.builder_config)
        self.logger = get_logger(__name__, self.builder.correlation_id, "cli_selector")

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Build fragments from one file and return a result record."""
        if not file_path.is_file():
            return {"file": str(file_path), "success": False,
                    "error": "File not found"}

        try:
            result = self.builder.build(file_path)
        except FragmentBuildError as e:
            self.logger.warning(
                "Fragment build failed", extra={"file": str(file_path)}
            )
            return {
                "file": str(file_path),
                "success": False,
                "error": str(e),
                "error_type": type(e).__name__,
            }
        except OSError as e:
            return {"file": str(file_path), "success": False, "error": str(e)}

        record = result.to_dict()
        record["file"] = str(file_path)
        record["success"] = True
        return record

    def process_files(self, paths: List[Path]) -> List[Dict[str, Any]]:
        """Process each file in order."""
        return [self.process_single_file(path) for path in paths]


def build_filter(args: argparse.Namespace) -> FragmentFilter:
    """Create the filter described by the command-line options."""
    fragment_filter: FragmentFilter
    if args.element:
        fragment_filter = ElementNameFilter(
            args.element,
            namespace_uri=args.namespace,
            depth=args.depth,
            include_top_level_content=args.keep_top_level,
        )
    else:
        fragment_filter = DefaultFragmentFilter()

    if args.strip_whitespace:
        fragment_filter = WhitespaceTextFilter(fragment_filter)
    return fragment_filter


def non_negative_int(value: str) -> int:
    """Parse a count option that must not be negative."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-stream-filter",
        description="Select and prune XML content from a streaming parse"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Select command
    select_parser = subparsers.add_parser(
        "select", help="Build filtered fragments from XML files"
    )
    select_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files to read"
    )
    select_parser.add_argument(
        "--element", "-e",
        action="append",
        help="Element local name to select (repeatable); default keeps everything"
    )
    select_parser.add_argument(
        "--namespace", "-n",
        help="Only select elements in this namespace URI"
    )
    select_parser.add_argument(
        "--depth",
        type=int,
        help="Only select elements at this depth (root element is 0)"
    )
    select_parser.add_argument(
        "--deep",
        action="store_true",
        help="Look for matching elements inside rejected elements"
    )
    select_parser.add_argument(
        "--keep-top-level",
        action="store_true",
        help="Keep comments and processing instructions outside selected elements"
    )
    select_parser.add_argument(
        "--strip-whitespace",
        action="store_true",
        help="Drop whitespace-only text"
    )
    select_parser.add_argument(
        "--max-depth",
        type=int,
        help="Fail on documents nested deeper than this"
    )
    select_parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Configuration preset"
    )
    select_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    select_parser.add_argument(
        "--format", "-f",
        choices=["json", "summary"],
        help="Output format (default: json)"
    )
    select_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Events command
    events_parser = subparsers.add_parser(
        "events", help="Print the event stream of an XML file as JSON lines"
    )
    events_parser.add_argument("path", type=Path, help="XML file to read")
    events_parser.add_argument(
        "--limit",
        type=non_negative_int,
        help="Stop after this many events"
    )
    events_parser.add_argument(
        "--expand-entities",
        action="store_true",
        help="Expand internal entities instead of reporting references"
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


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format selection results for output."""
    if format_type == "summary":
        if not results:
            return "No files processed."

        lines = []
        successful = sum(1 for r in results if r.get("success", False))
        lines.append(f"Processed {len(results)} files, {successful} successful")
        lines.append("-" * 60)

        for result in results:
            if result.get("success", False):
                summary = result["summary"]
                metrics = summary["metrics"]
                lines.append(f"OK   {result['file']}")
                lines.append(
                    f"     Fragments: {summary['fragment_count']}, "
                    f"Elements: {summary['element_count']}, "
                    f"Events: {metrics['events_processed']}, "
                    f"Time: {metrics['processing_time_ms']:.1f}ms"
                )
            else:
                lines.append(f"FAIL {result['file']}")
                lines.append(f"     Error: {result.get('error', '')}")
        return "\n".join(lines)

    return json.dumps(results, indent=2)


def cmd_select(args: argparse.Namespace) -> int:
    """Handle select command."""
    config = CLIConfig()
    try:
        if args.config:
            config = CLIConfig.from_file(args.config)
        elif args.preset:
            config.builder_config = PRESETS[args.preset]()

        overrides: Dict[str, Any] = {}
        if args.deep:
            overrides["builder__scan_rejected_subtrees"] = True
        if args.max_depth is not None:
            overrides["builder__max_depth"] = args.max_depth
        if overrides:
            config.builder_config = config.builder_config.override(**overrides)

        fragment_filter = build_filter(args)
    except (ConfigValidationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if config.loaded_from is not None and not (args.verbose or args.quiet):
        configure_logging(config.builder_config.global_.logging_level)

    selector = FragmentSelector(config, fragment_filter)
    results = selector.process_files(args.paths)

    formatted_output = format_results(results, args.format or config.output_format)
    if args.output:
        try:
            args.output.write_text(formatted_output, encoding="utf-8")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(formatted_output)

    successful = sum(1 for r in results if r.get("success", False))
    return 0 if results and successful == len(results) else 1


def cmd_events(args: argparse.Namespace) -> int:
    """Handle events command."""
    if not args.path.is_file():
        print(f"File not found: {args.path}", file=sys.stderr)
        return 1

    config = FragmentBuilderConfig().override(
        source__expand_entities=args.expand_entities
    )
    source = ExpatEventSource(args.path, config.source)
    try:
        for event in itertools.islice(source, args.limit):
            print(json.dumps(event.to_dict()))
    except FragmentBuildError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")

    try:
        if args.command == "select":
            return cmd_select(args)
        if args.command == "events":
            return cmd_events(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
