"""CLI entry point: python -m pagemeta URL [options]"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from pagemeta.config import ExtractorConfig, load_config
from pagemeta.errors import ErrorKind, MetadataError
from pagemeta.parser import MetadataParser

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagemeta",
        description=(
            "Fetch a web page and print everything machine-readable about it:\n"
            "title, description, image, logo, author, date, publisher, favicon,\n"
            "language, feeds and every Open Graph / Twitter Card / meta tag."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("url", metavar="URL",
                        help="Absolute http(s) URL of the page to describe")
    parser.add_argument("--json", action="store_true", default=False,
                        help="Print the result as JSON instead of a table")
    parser.add_argument("--timeout", type=float, default=None, metavar="SECONDS",
                        help="Network timeout (default: 10)")
    parser.add_argument("--user-agent", default=None, metavar="UA",
                        help="Override the browser User-Agent header")
    parser.add_argument("--min-image-size", type=int, default=None, metavar="PX",
                        help="Minimum <img> width/height used as page image (default: 200)")
    parser.add_argument("--config", default=None, metavar="PROFILE",
                        help="YAML profile with default and per-domain settings")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: WARNING)")
    return parser


def _build_config(args: argparse.Namespace) -> ExtractorConfig:
    config = load_config(args.config, url=args.url) if args.config else ExtractorConfig()
    return config.replace(
        timeout=args.timeout,
        user_agent=args.user_agent,
        min_image_size=args.min_image_size,
    )


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "\n".join(str(v) for v in value)
    return str(value)


def _print_table(data: dict[str, Any]) -> None:
    from rich import box
    from rich.console import Console
    from rich.table import Table

    console = Console()
    tbl = Table(
        title=f"[bold cyan]{data.get('url', '')}[/bold cyan]",
        box=box.SIMPLE_HEAVY,
        show_lines=False,
    )
    tbl.add_column("Field", style="green", no_wrap=True)
    tbl.add_column("Value", style="white", overflow="fold")
    for key, value in data.items():
        if key in ("url", "extractedAt"):
            continue
        tbl.add_row(key, _format_value(value))
    console.print(tbl)
    console.print(f"  [dim]Extracted at {data.get('extractedAt', '-')}[/dim]")


def _print_error(message: str) -> None:
    print(json.dumps({"error": message}), file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _build_config(args)
    except (OSError, ValueError) as exc:
        _print_error(f"Invalid configuration: {exc}")
        return 2

    try:
        result = MetadataParser(config).fetch(args.url)
    except MetadataError as exc:
        _print_error(str(exc))
        return 2 if exc.kind is ErrorKind.INVALID_INPUT else 1

    data = result.to_dict()
    if args.json:
        print(json.dumps(data, indent=2, ensure_ascii=False))
    else:
        _print_table(data)
    return 0


if __name__ == "__main__":
    sys.exit(main())
