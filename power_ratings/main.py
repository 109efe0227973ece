"""Main CLI interface for market-adjusted power ratings."""

import argparse
import json
import logging
import sys

from .config import ClosingLineSource, load_config
from .data.loader import DataLoader
from .data.overrides import OverrideTable
from .engine.projection import format_rating, format_spread
from .engine.service import PowerRatingsService
from .engine.store import InMemoryRatingStore, SqliteRatingStore
from .exceptions import DataRequirementError, IntegrityViolationError, PowerRatingsError


def build_service(args) -> PowerRatingsService:
    config = load_config(args.config)
    if args.season is not None:
        config.season = args.season
    if getattr(args, "hca", None) is not None:
        config.hca = args.hca
    if getattr(args, "source", None):
        config.closing_source = ClosingLineSource.parse(args.source)
    store = SqliteRatingStore(args.db) if args.db else InMemoryRatingStore()
    overrides = OverrideTable.load(args.overrides) if args.overrides else OverrideTable()
    return PowerRatingsService(store, config, overrides)


def init_ratings(args):
    """Seed a season from a roster snapshot."""
    service = build_service(args)
    loader = DataLoader(cache_dir=args.cache_dir)
    print(f"Loading roster from {args.roster}...")
    try:
        rows = loader.load_roster(args.roster)
    except (OSError, DataRequirementError) as e:
        print(f"Error loading roster: {e}")
        return 1

    try:
        count = service.initialize_ratings(rows, reset=args.reset)
    except PowerRatingsError as e:
        print(f"Error: {e}")
        return 1
    print(f"✓ Initialized {count} teams for season {service.config.season}")
    return 0


def process_games(args):
    """Apply a batch of finished games to the ratings."""
    service = build_service(args)
    loader = DataLoader(cache_dir=args.cache_dir, strict_validation=not args.allow_invalid_payloads)
    try:
        games = loader.load_games(args.games)
        odds = loader.load_odds_games(args.odds) if args.odds else None
    except (OSError, DataRequirementError) as e:
        print(f"Error loading games: {e}")
        return 1

    print(f"Processing {len(games)} games (source: {service.config.closing_source.value})...")
    try:
        result = service.process_games(games, odds_games=odds, limit=args.limit)
    except IntegrityViolationError as e:
        print(f"Integrity violation, batch stopped: {e}")
        return 2

    summary = result.summary()
    print(f"\n{'='*60}")
    print(f"Processed: {summary['processed']}  Skipped: {summary['skipped']}  Failed: {summary['failed']}")
    for reason, count in summary["by_reason"].items():
        print(f"   - {reason}: {count}")
    if summary["unresolved_names"]:
        print("\nUnresolved names (consider adding overrides):")
        for name in summary["unresolved_names"]:
            print(f"   - {name}")

    if args.output:
        DataLoader.save_json(result.to_dict(), args.output)
        print(f"\nReport written to {args.output}")
    return 0 if not result.failed else 3


def project_game(args):
    service = build_service(args)
    result = service.project(args.home, args.away, hca=args.hca, is_neutral_site=args.neutral)
    if result is None:
        print(f"Could not resolve '{args.home}' and/or '{args.away}'")
        return 1
    site = "neutral" if result.is_neutral_site else f"HCA {result.hca_applied:g}"
    print(f"{result.away_team} ({format_rating(result.away_rating)}) at {result.home_team} ({format_rating(result.home_rating)})")
    print(f"Projected spread: {result.home_team} {format_spread(result.projected_spread)} ({site})")
    return 0


def show_rating(args):
    service = build_service(args)
    team = service.get_team(args.team)
    if team is None:
        print(f"Team not found: {args.team}")
        return 1
    print(f"{team.canonical_name}: {format_rating(team.rating)} "
          f"(initial {format_rating(team.initial_rating)}, {team.games_processed} games)")
    return 0


def show_history(args):
    service = build_service(args)
    team = None
    if args.team:
        found = service.get_team(args.team)
        if found is None:
            print(f"Team not found: {args.team}")
            return 1
        team = found.canonical_name

    if args.csv:
        df = service.history_frame(service.config.season)
        if team:
            df = df[(df["home_team"] == team) | (df["away_team"] == team)]
        df.to_csv(args.csv, index=False)
        print(f"✓ Wrote {len(df)} adjustments to {args.csv}")
        return 0

    for adj in service.get_adjustment_history(service.config.season, team=team):
        print(
            f"{adj.date.date()}  {adj.away_team} at {adj.home_team}: "
            f"proj {format_spread(adj.projected_spread)} close {format_spread(adj.closing_spread)} "
            f"adj {adj.adjustment:+.2f}"
        )
    return 0


def show_snapshot(args):
    service = build_service(args)
    snapshot = service.snapshot()
    if args.output:
        DataLoader.save_json(snapshot.to_dict(), args.output)
        print(f"✓ Snapshot written to {args.output}")
        return 0

    print(f"Season {snapshot.season} ratings ({snapshot.games_processed} games processed)")
    for rank, team in enumerate(snapshot.ratings[: args.top], start=1):
        print(f"{rank:>4}. {team.canonical_name:<30} {format_rating(team.rating):>8}  ({team.net_change:+.2f})")
    return 0


def verify_ledger(args):
    service = build_service(args)
    try:
        checked = service.verify_ledger()
    except IntegrityViolationError as e:
        print(f"✗ Ledger verification failed: {e}")
        return 2
    print(f"✓ Ledger consistent ({checked} adjustments)")
    return 0


def resolve_names(args):
    service = build_service(args)
    resolver = service.processor.resolver_for(service.config.season)
    for result in resolver.resolve_batch(args.names):
        target = result.canonical_name or "-"
        print(f"{result.raw_name!r:<35} -> {target} [{result.method}]")
    return 0


def manage_overrides(args):
    if not args.overrides:
        print("Error: --overrides FILE is required")
        return 1
    table = OverrideTable.load(args.overrides)

    if args.action == "list":
        for entry in table.entries():
            print(json.dumps(entry.to_dict()))
        return 0
    if args.action == "add":
        table.upsert(args.source_name, args.canonical_name, notes=args.notes)
        table.save()
        print(f"✓ {args.source_name} -> {args.canonical_name}")
        return 0
    if args.action == "remove":
        if not table.delete(args.source_name):
            print(f"No override for {args.source_name}")
            return 1
        table.save()
        print(f"✓ Removed {args.source_name}")
        return 0
    return 1


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Market-adjusted power ratings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--db", default="data/ratings.sqlite", help="SQLite database path (empty for in-memory)")
    parser.add_argument("--config", default=None, help="Optional JSON config file")
    parser.add_argument("--overrides", default=None, help="Override table JSON file")
    parser.add_argument("--season", type=int, default=None, help="Season (default from config)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    init_parser = subparsers.add_parser("init", help="Seed a season from a roster snapshot")
    init_parser.add_argument("--roster", "-r", required=True, help="Roster JSON path or URL")
    init_parser.add_argument("--reset", action="store_true", help="Replace an already-initialized season")
    init_parser.add_argument("--cache-dir", default=None, help="Cache directory for remote payloads")

    process_parser = subparsers.add_parser("process", help="Process finished games")
    process_parser.add_argument("--games", "-g", required=True, help="Games JSON path or URL")
    process_parser.add_argument("--odds", default=None, help="Odds JSON path or URL for games without a closing spread")
    process_parser.add_argument(
        "--source",
        choices=[s.value for s in ClosingLineSource],
        default=None,
        help="Closing line policy (default from config)",
    )
    process_parser.add_argument("--limit", type=int, default=None, help="Stop after N adjustments")
    process_parser.add_argument("--output", "-o", default=None, help="Write the batch report JSON here")
    process_parser.add_argument("--cache-dir", default=None, help="Cache directory for remote payloads")
    process_parser.add_argument(
        "--allow-invalid-payloads",
        action="store_true",
        help="Log schema problems instead of failing",
    )

    project_parser = subparsers.add_parser("project", help="Project a spread from current ratings")
    project_parser.add_argument("home", help="Home team")
    project_parser.add_argument("away", help="Away team")
    project_parser.add_argument("--hca", type=float, default=None, help="Home-court advantage override")
    project_parser.add_argument("--neutral", action="store_true", help="Neutral site")

    rating_parser = subparsers.add_parser("rating", help="Show one team's rating")
    rating_parser.add_argument("team", help="Team name (any feed spelling)")

    history_parser = subparsers.add_parser("history", help="Show the adjustment ledger")
    history_parser.add_argument("--team", default=None, help="Only games involving this team")
    history_parser.add_argument("--csv", default=None, help="Export to CSV instead of printing")

    snapshot_parser = subparsers.add_parser("snapshot", help="Ratings table for the season")
    snapshot_parser.add_argument("--top", type=int, default=25, help="Rows to print")
    snapshot_parser.add_argument("--output", "-o", default=None, help="Write snapshot JSON here")

    subparsers.add_parser("verify", help="Replay the ledger and compare with current ratings")

    resolve_parser = subparsers.add_parser("resolve", help="Show how team names resolve against the roster")
    resolve_parser.add_argument("names", nargs="+", help="Team names")

    overrides_parser = subparsers.add_parser("overrides", help="Manage name overrides")
    override_actions = overrides_parser.add_subparsers(dest="action")
    override_actions.add_parser("list", help="List overrides")
    add_parser = override_actions.add_parser("add", help="Add or update an override")
    add_parser.add_argument("source_name", help="Feed spelling")
    add_parser.add_argument("canonical_name", help="Roster name")
    add_parser.add_argument("--notes", default=None)
    remove_parser = override_actions.add_parser("remove", help="Delete an override")
    remove_parser.add_argument("source_name", help="Feed spelling")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "init":
        return init_ratings(args)
    elif args.command == "process":
        return process_games(args)
    elif args.command == "project":
        return project_game(args)
    elif args.command == "rating":
        return show_rating(args)
    elif args.command == "history":
        return show_history(args)
    elif args.command == "snapshot":
        return show_snapshot(args)
    elif args.command == "verify":
        return verify_ledger(args)
    elif args.command == "resolve":
        return resolve_names(args)
    elif args.command == "overrides" and args.action:
        return manage_overrides(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
