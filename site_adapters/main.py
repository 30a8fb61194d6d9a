#!/usr/bin/env python3
"""
Site adapters - command line entry point

Runs a single CMS or Leverade query with the configured backends and prints
the result as JSON. Handy to check what a page would receive.
"""
import argparse
import asyncio
import dataclasses
import json
import sys
from typing import Any, Optional, Sequence

import structlog

from site_adapters.adapters.cms import CMSError
from site_adapters.adapters.leverade import LeveradeError
from site_adapters.adapters.observability import setup_logging
from site_adapters.config import init_config
from site_adapters.factory import Services, create_services

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Query the CMS and Leverade adapters")
    parser.add_argument("--locale", help="Request locale (defaults to DEFAULT_LOCALE)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    news = subparsers.add_parser("news", help="List published news")
    news.add_argument("--limit", type=int, default=10)
    news.add_argument("--page", type=int, default=1)
    news.add_argument("--category", type=int, dest="category_id")
    news.add_argument("--with-image-only", action="store_true")

    news_item = subparsers.add_parser("news-item", help="Show one news entry")
    news_item.add_argument("news_id")

    events = subparsers.add_parser("events", help="List calendar events")
    events.add_argument("--limit", type=int, default=10)
    events.add_argument("--page", type=int, default=1)
    events.add_argument("--category", type=int, dest="category_id")
    events.add_argument("--month", help="Month as yyyy-MM")
    events.add_argument("--upcoming", action="store_true")

    team = subparsers.add_parser("team", help="Show a national team roster")
    team.add_argument("team_slug")

    for name, argument, help_text in [
        ("tournament", "tournament_id", "Show a full tournament"),
        ("standings", "group_id", "Show the standings of a group"),
        ("upcoming-matches", "season_id", "List the upcoming matches of a season"),
        ("match", "match_id", "Show one match"),
        ("teams", "tournament_id", "List the teams of a tournament"),
    ]:
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(argument)

    return parser


async def run_command(services: Services, args: argparse.Namespace) -> Any:
    """Dispatch the parsed command to the matching client method."""
    if args.command == "news":
        return await services.cms.get_news(
            limit=args.limit,
            page=args.page,
            category_id=args.category_id,
            with_image_only=args.with_image_only,
        )
    if args.command == "news-item":
        return await services.cms.get_one_news(args.news_id)
    if args.command == "events":
        return await services.cms.get_events(
            limit=args.limit,
            page=args.page,
            category_id=args.category_id,
            month=args.month,
            upcoming=args.upcoming,
        )
    if args.command == "team":
        return await services.cms.get_team(args.team_slug)
    if args.command == "tournament":
        return await services.leverade.get_full_tournament(args.tournament_id)
    if args.command == "standings":
        return await services.leverade.get_standings(args.group_id)
    if args.command == "upcoming-matches":
        return await services.leverade.get_upcoming_matches(args.season_id)
    if args.command == "match":
        return await services.leverade.get_match(args.match_id)
    if args.command == "teams":
        return await services.leverade.get_teams(args.tournament_id)
    raise ValueError(f"Unknown command: {args.command}")


def to_json(result: Any) -> str:
    if dataclasses.is_dataclass(result):
        result = dataclasses.asdict(result)
    return json.dumps(result, indent=2, default=str, ensure_ascii=False)


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    # Load configuration
    config = init_config()

    # Set up logging
    setup_logging(config.log_level, config.log_format)

    async with create_services(config, args.locale) as services:
        try:
            result = await run_command(services, args)
        except (CMSError, LeveradeError) as e:
            logger.error("Query failed", command=args.command, error=str(e))
            return 1

    print(to_json(result))
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
