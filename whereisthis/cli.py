import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from pydantic import ValidationError

from whereisthis import __version__
from whereisthis.detect import detect, match_with_tier
from whereisthis.engine import linkify_html
from whereisthis.models import EngineSettings


def configure_logging(level: str = "WARNING", json_logs: bool = False):
    """All logs go to stderr so stdout stays clean for results."""
    logging.basicConfig(stream=sys.stderr, level=getattr(logging, level), force=True)

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _load_settings(path: Optional[Path]) -> EngineSettings:
    if path is None:
        return EngineSettings()
    if not path.exists():
        print(f"Error: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return EngineSettings.model_validate(json.load(f))
    except (json.JSONDecodeError, ValidationError) as e:
        print(f"Error: Invalid config {path}: {e}", file=sys.stderr)
        sys.exit(1)


def handle_detect(args):
    text = args.text if args.text is not None else sys.stdin.read()
    result = detect(text.strip())
    output = result.model_dump()
    if args.explain:
        hit = match_with_tier(text.strip())
        output["tier"] = hit.tier if hit else None
        output["rule"] = hit.rule if hit else None
        output["raw"] = hit.raw if hit else None
    print(json.dumps(output, ensure_ascii=False, indent=2))
    if not result.valid:
        sys.exit(1)


def handle_linkify(args):
    if not args.input.exists():
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        sys.exit(1)

    settings = _load_settings(args.config)
    with open(args.input, "r", encoding="utf-8") as f:
        markup = f.read()

    try:
        html, stats = linkify_html(markup, settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(html)
        print(f"✅ Saved to {args.output}", file=sys.stderr)
    else:
        print(html)

    print(
        f"Stats: {stats.links_created} links, {stats.leaves_visited} text nodes scanned, "
        f"{stats.replacements_aborted} aborted, {stats.failures} failures.",
        file=sys.stderr,
    )


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(prog="whereisthis", description="Whereisthis: Korean address linker")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for stderr output (default: WARNING)",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Subcommands")

    p_detect = subparsers.add_parser("detect", help="Check whether a text contains an address")
    p_detect.add_argument("text", nargs="?", help="Text to check (default: stdin)")
    p_detect.add_argument("--explain", action="store_true", help="Also report the tier and rule that fired")
    p_detect.set_defaults(func=handle_detect)

    p_linkify = subparsers.add_parser("linkify", help="Turn addresses in an HTML file into map links")
    p_linkify.add_argument("input", type=Path, help="Input HTML file")
    p_linkify.add_argument("-o", "--output", type=Path, help="Output HTML file (default: stdout)")
    p_linkify.add_argument("--config", type=Path, help="JSON file with engine settings")
    p_linkify.set_defaults(func=handle_linkify)

    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.json_logs)
    args.func(args)


if __name__ == "__main__":
    main()
