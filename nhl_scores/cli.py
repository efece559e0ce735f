"""Command-line entry point for running pipeline operations by hand.

Usage:
    nhl-scores init-db
    nhl-scores ingest [--backfill 2015]
    nhl-scores refresh 2024020001
    nhl-scores goals 2024020001
    nhl-scores team-stats TOR
    nhl-scores sync-teams
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence

from .db import init_db
from .errors import PipelineError
from .logging import logger
from .pipeline import ScoresPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nhl-scores", description="NHL scores ingestion pipeline")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create the teams and games tables")

    ingest = commands.add_parser("ingest", help="Ingest today's schedule or backfill seasons")
    ingest.add_argument(
        "--backfill",
        type=int,
        metavar="YEAR",
        help="Backfill every season from YEAR through the current one",
    )

    refresh = commands.add_parser("refresh", help="Refresh the live score of one game")
    refresh.add_argument("game_id")

    goals = commands.add_parser("goals", help="Extract the goals of one game")
    goals.add_argument("game_id")

    stats = commands.add_parser("team-stats", help="Show cached statistics for a team")
    stats.add_argument("abbreviation")

    commands.add_parser("sync-teams", help="Register teams missing from the store")
    return parser


def run_command(args: argparse.Namespace, pipeline: ScoresPipeline) -> dict:
    if args.command == "ingest":
        result = pipeline.ingest(backfill_from_year=args.backfill)
    elif args.command == "refresh":
        result = pipeline.refresh_game(args.game_id)
    elif args.command == "goals":
        result = pipeline.extract_goals(args.game_id)
    elif args.command == "team-stats":
        result = pipeline.get_team_stats(args.abbreviation)
    elif args.command == "sync-teams":
        result = pipeline.sync_teams()
    else:
        raise ValueError(f"Unknown command: {args.command}")
    return result.model_dump(mode="json")


def main(argv: Sequence[str] | None = None, pipeline: ScoresPipeline | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "init-db":
        init_db()
        print(json.dumps({"initialized": True}))
        return 0

    owned = pipeline is None
    pipeline = pipeline or ScoresPipeline()
    try:
        output = run_command(args, pipeline)
    except PipelineError as exc:
        logger.error("cli_command_failed", command=args.command, error=str(exc), error_type=type(exc).__name__)
        print(json.dumps({"error": type(exc).__name__, "message": str(exc)}), file=sys.stderr)
        return 1
    finally:
        if owned:
            pipeline.close()

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
