"""Command-line interface for linkgrab."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .core import LinkCollector
from .exceptions import LinkGrabError
from .logging_config import setup_logging
from .models.config import LinkGrabConfig
from .models.events import CollectionEvent, EventType
from .presentation import LinkListView, render_json, render_table, render_text


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="linkgrab",
        description="Collect, filter and group every link on a web page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Collect links with default settings
  linkgrab https://example.com

  # Render with a browser to include script-built frames
  linkgrab https://spa-site.com --js

  # Plain list of every link mentioning github
  linkgrab https://example.com --filter github --format text

  # Block a domain and show what it hides
  linkgrab https://example.com --block ads.example.net --show-blocked
        """,
    )

    parser.add_argument(
        "url",
        help="URL of the page to collect links from",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        metavar="FILE",
        help="YAML configuration file",
    )

    # Collection settings
    collect_group = parser.add_argument_group("collection settings")
    collect_group.add_argument(
        "--js",
        "--javascript",
        action="store_true",
        dest="javascript",
        help="Render the page with a browser (requires Playwright)",
    )
    collect_group.add_argument(
        "--no-frames",
        action="store_true",
        help="Only collect links from the top-level document",
    )
    collect_group.add_argument(
        "--no-scripts",
        action="store_true",
        help="Do not fetch same-origin external scripts",
    )
    collect_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Seconds to wait for all frames before using partial results (default: 3)",
    )
    collect_group.add_argument(
        "--script-timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Seconds allowed per external script fetch (default: 3)",
    )
    collect_group.add_argument(
        "--block",
        nargs="+",
        metavar="DOMAIN",
        help="Additional domains to flag as blocked",
    )

    # Display settings
    display_group = parser.add_argument_group("display settings")
    display_group.add_argument(
        "--show-duplicates",
        action="store_true",
        help="Show links already listed earlier",
    )
    display_group.add_argument(
        "--show-blocked",
        action="store_true",
        help="Show links on blocked domains",
    )
    display_group.add_argument(
        "--hide-same-origin",
        action="store_true",
        help="Hide links with the page's own origin",
    )
    display_group.add_argument(
        "--no-group",
        action="store_true",
        help="Keep collection order instead of grouping by domain",
    )
    display_group.add_argument(
        "--filter",
        type=str,
        default=None,
        metavar="TEXT",
        help="Only show links whose URL contains TEXT",
    )
    display_group.add_argument(
        "--format",
        "-f",
        choices=["table", "text", "json"],
        default="table",
        help="Output format (default: table)",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    output_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress progress output",
    )

    return parser


def build_config(args: argparse.Namespace) -> LinkGrabConfig:
    """
    Merge the optional config file with command-line overrides.

    Raises:
        ValidationError: If the merged configuration is invalid
        OSError: If the config file cannot be read
    """
    base = LinkGrabConfig.from_yaml_file(args.config) if args.config else LinkGrabConfig()
    data = base.model_dump()

    if args.javascript:
        data["browser"] = True

    extraction = data["extraction"]
    if args.no_frames:
        extraction["include_frames"] = False
    if args.no_scripts:
        extraction["fetch_external_scripts"] = False
    if args.script_timeout is not None:
        extraction["script_timeout"] = args.script_timeout

    if args.timeout is not None:
        data["aggregation"]["frame_timeout"] = args.timeout

    if args.block:
        data["settings"]["blocked_domains"] = list(data["settings"]["blocked_domains"]) + args.block

    display = data["display"]
    if args.show_duplicates:
        display["hide_duplicates"] = False
    if args.show_blocked:
        display["hide_blocked_domains"] = False
    if args.hide_same_origin:
        display["hide_same_origin"] = True
    if args.no_group:
        display["group_by_domain"] = False
    if args.filter is not None:
        display["filter_text"] = args.filter

    if args.verbose:
        data["log_level"] = "DEBUG"
    elif args.quiet:
        data["log_level"] = "ERROR"

    return LinkGrabConfig.model_validate(data)


def run_collector(args: argparse.Namespace) -> int:
    """Run one collection with given arguments and print the result."""
    console = Console()
    err_console = Console(stderr=True)

    try:
        config = build_config(args)
    except (ValidationError, OSError, ValueError) as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    setup_logging(config.log_level, str(config.log_file) if config.log_file else None)
    show_progress = not args.quiet and args.format == "table"

    async def run() -> int:
        try:
            if not show_progress:
                async with LinkCollector(config) as collector:
                    result = await collector.collect(args.url)
            else:
                console.print(f"[bold blue]linkgrab[/bold blue] v{__version__}")
                console.print(f"Target: {args.url}")
                console.print()

                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    console=console,
                    transient=True,
                ) as progress:
                    task = progress.add_task("Starting...", total=None)

                    def on_event(event: CollectionEvent) -> None:
                        if event.type == EventType.STARTED:
                            progress.update(task, description=f"[cyan]{event.message}")
                        elif event.type == EventType.FRAMES_DISCOVERED:
                            progress.update(task, description=f"[cyan]Found {event.total} frames")
                        elif event.type == EventType.FRAME_REPORTED:
                            progress.update(
                                task,
                                description=f"[cyan]Frame {event.current}/{event.total}: {event.link_count} links",
                            )
                        elif event.type == EventType.FRAME_FAILED and args.verbose:
                            console.print(f"[yellow]Frame skipped:[/yellow] {event.error}")
                        elif event.type == EventType.COLLECTION_TIMED_OUT:
                            console.print(
                                f"[yellow]Timed out waiting for frames:[/yellow] "
                                f"{event.current}/{event.total} reported"
                            )

                    async with LinkCollector(config, emit=on_event) as collector:
                        result = await collector.collect(args.url)

                stats = collector.stats
                console.print(
                    f"Frames: {stats.frames_received}/{stats.frames_expected}  "
                    f"Links: {stats.links_unique} unique of {stats.links_reported}  "
                    f"Duration: {stats.duration_seconds:.1f}s"
                )
                console.print()

        except LinkGrabError as e:
            err_console.print(f"[red]Error:[/red] {e}")
            return 1
        except Exception as e:
            err_console.print(f"[red]Error:[/red] {e}")
            if args.verbose:
                import traceback

                traceback.print_exc()
            return 1

        view = LinkListView(result, collector.settings, config.display)
        if args.format == "json":
            print(render_json(view))
        elif args.format == "text":
            text = render_text(view)
            if text:
                print(text)
        else:
            render_table(console, view)
        view.close()
        return 0

    return asyncio.run(run())


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_collector(args)


if __name__ == "__main__":
    sys.exit(main())
