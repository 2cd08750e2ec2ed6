#!/usr/bin/env python3
"""CLI for searching popular YouTube videos.

Usage:
    # Search through the YouTube Data API
    python -m cli.search api "python tutorial" --max-results 10 --min-views 100000 --type video

    # Scrape the search results page with a real browser
    python -m cli.search browser "lofi hip hop" --max-results 60 --type shorts

    # Export the results (a directory gets a timestamped file name)
    python -m cli.search api "python tutorial" --export results.csv

    # Probe the configured proxies before a run
    python -m cli.search browser "lofi hip hop" --check-proxies
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rich.console import Console
from rich.table import Table

from models.errors import TrendScoutError
from models.video import SearchParams, SearchResult, VideoType
from services.browser_scraper import BrowserScraperService
from services.exporter import EXPORT_FORMATS, export_filename, export_videos
from services.proxy_rotator import check_proxy
from services.session_store import SessionStore
from services.video_metrics import daily_growth, format_number, per_subscriber
from services.youtube_api_service import create_youtube_api_service
from utils.config import load_config, setup_logging, validate_config
from utils.logging import setup_logging as setup_structured_logging


console = Console()


def build_params(args: argparse.Namespace) -> SearchParams:
    """Create SearchParams from parsed arguments."""
    return SearchParams(
        keyword=args.keyword,
        max_results=args.max_results,
        published_after=args.published_after,
        language=args.language,
        min_view_count=args.min_views,
        min_view_count_shorts=args.min_views_shorts,
        video_type=VideoType(args.type),
        filter_popular=args.popular,
    )


async def run_search(mode: str, params: SearchParams, config: dict) -> SearchResult:
    """Run one search through the selected engine."""
    if mode == "api":
        service = create_youtube_api_service(config)
        result = await service.search(params)
        console.print(f"[dim]Approximate API quota used: {service.quota_used}[/dim]")
        return result

    store = SessionStore(config["session_file"])
    async with BrowserScraperService.from_config(config, session_store=store) as scraper:
        return await scraper.search(params)


async def check_proxies(proxy_list: list[str]) -> int:
    """Probe every configured proxy and print its status.

    Returns:
        Number of proxies that answered
    """
    results = await asyncio.gather(*(check_proxy(url) for url in proxy_list))
    for url, healthy in zip(proxy_list, results):
        if healthy:
            console.print(f"[green]✓ {url}[/green]")
        else:
            console.print(f"[red]✗ {url}[/red]")
    return sum(results)


def show_results(result: SearchResult) -> None:
    """Display results as a table."""
    table = Table(title=f"{result.total_results} videos")
    table.add_column("Title", style="cyan", max_width=50)
    table.add_column("Channel")
    table.add_column("Views", justify="right", style="green")
    table.add_column("Likes", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Type")
    table.add_column("Views/Day", justify="right")
    table.add_column("Views/Sub", justify="right")
    table.add_column("Published")

    for video in result.videos:
        growth = daily_growth(video)
        ratios = per_subscriber(video)
        table.add_row(
            video.title,
            video.channel_title,
            f"{video.view_count:,}",
            f"{video.like_count:,}",
            video.duration,
            "Shorts" if video.is_shorts else "Video",
            format_number(growth.views_per_day) if growth else "n/a",
            format_number(ratios.views_per_sub) if ratios else "n/a",
            video.published_at,
        )

    console.print(table)
    if result.filter_stats is not None and result.filter_stats.total_filtered:
        console.print(f"[dim]{result.filter_stats}[/dim]")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Find popular YouTube videos via the Data API or a browser scraper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("mode", choices=["api", "browser"], help="Acquisition path")
    parser.add_argument("keyword", type=str, help="Search keyword")
    parser.add_argument(
        "--max-results",
        type=int,
        default=50,
        help="Maximum results (API is capped at 50, default: 50)",
    )
    parser.add_argument(
        "--published-after",
        type=str,
        help="Only videos published after this ISO 8601 timestamp",
    )
    parser.add_argument("--language", type=str, help="Language code (e.g., 'en')")
    parser.add_argument("--min-views", type=int, help="Minimum view count for regular videos")
    parser.add_argument("--min-views-shorts", type=int, help="Minimum view count for Shorts")
    parser.add_argument(
        "--type",
        choices=[t.value for t in VideoType],
        default=VideoType.ALL.value,
        help="Video type filter (default: all)",
    )
    parser.add_argument(
        "--popular",
        action="store_true",
        help="Keep only videos with an engagement rate above 1%%",
    )
    parser.add_argument(
        "--export",
        type=Path,
        help="Write results to a .json or .csv file, or into a directory",
    )
    parser.add_argument(
        "--format",
        choices=list(EXPORT_FORMATS),
        help="Export format (default: taken from the --export suffix, else json)",
    )
    parser.add_argument(
        "--check-proxies",
        action="store_true",
        help="Probe the configured proxies before searching",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit structured JSON logs instead of console output",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    config = load_config()
    log_level = "DEBUG" if args.verbose else config["log_level"]
    if args.json_logs:
        setup_structured_logging(log_level, json_output=True)
    else:
        setup_logging(log_level)

    errors = validate_config(config, mode=args.mode)
    if errors:
        for error in errors:
            console.print(f"[red]Error: {error}[/red]")
        console.print("[dim]Set the missing values in your .env file[/dim]")
        sys.exit(1)

    if args.check_proxies:
        if not config["proxy_list"]:
            console.print("[yellow]⚠ No proxies configured (PROXY_LIST is empty)[/yellow]")
        elif asyncio.run(check_proxies(config["proxy_list"])) == 0:
            console.print("[red]✗ No configured proxy is reachable[/red]")
            sys.exit(1)

    try:
        params = build_params(args)
        result = asyncio.run(run_search(args.mode, params, config))
    except (TrendScoutError, ValueError) as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    show_results(result)

    if args.export:
        if not result.videos:
            console.print("[yellow]⚠ Nothing to export[/yellow]")
            return

        export_path = args.export
        fmt = args.format or export_path.suffix.lstrip(".").lower() or "json"
        if export_path.is_dir():
            export_path = export_path / export_filename(fmt)
        try:
            export_path.write_bytes(export_videos(result.videos, fmt))
        except ValueError as e:
            console.print(f"[red]✗ {e}[/red]")
            sys.exit(1)
        console.print(f"[green]✓ Exported {len(result.videos)} videos to {export_path}[/green]")


if __name__ == "__main__":
    main()
