#!/usr/bin/env python3
"""
Import Tradovate CSV(s) (Fills, Orders or Performance exports) into the
saved trade history.

Usage examples:
  # single file
  python import_tradovate_csv.py --input "/path/to/Fills.csv"

  # directory (process all .csv), into a specific database, starting over
  python import_tradovate_csv.py --input "/path/to/csv_dir" --db "sqlite:///./journal.db" --replace

  # see what would be imported without saving
  python import_tradovate_csv.py --input "/path/to/*.csv" --dry-run
"""
import argparse
import glob
import logging
import os
import sys

from sqlalchemy.orm import sessionmaker

from app.db import DATABASE_URL, Base, make_engine
from app.services.metrics import (
    calculate_kpis,
    format_currency,
    format_percent,
    format_profit_factor,
)
from app.services.snapshot_store import clear_trade_data, import_into_store, load_trade_data
from app.services.trade_import import reconstruct_trades
from app.services.trade_store import merge_trades
import app.models  # noqa: F401

logger = logging.getLogger(__name__)


def gather_input_paths(input_arg):
    # If input is a directory, find *.csv inside
    if os.path.isdir(input_arg):
        pattern = os.path.join(input_arg, "*.csv")
        return sorted(glob.glob(pattern))
    # If glob pattern or single file
    paths = sorted(glob.glob(input_arg))
    return [p for p in paths if os.path.isfile(p)]


def read_csv_file(path):
    with open(path, encoding="utf-8", errors="replace", newline="") as f:
        return f.read()


def process_file(db, path, dry_run=False, preview=()):
    """
    Reconstruct one file and merge it into the store (or into `preview`,
    the trades a real run would already hold, on a dry run).
    Returns the merge result, or None if the file was rejected.
    """
    name = os.path.basename(path)
    outcome = reconstruct_trades(read_csv_file(path))

    if not outcome.ok:
        logger.warning("%s: %s (%s)", name, outcome.message, outcome.status.value)
        return None

    if dry_run:
        result = merge_trades(preview, outcome.trades)
    else:
        result = import_into_store(db, outcome.trades, name)

    print(
        f"{name}: {outcome.csv_format.value}, {len(outcome.trades)} trade(s), "
        f"{result.added} added, {result.skipped} skipped"
    )
    return result


def print_summary(trades):
    kpis = calculate_kpis(trades)
    print()
    print(f"Trades:        {kpis.total_trades}")
    print(f"Win rate:      {format_percent(kpis.win_rate)}")
    print(f"Total P/L:     {format_currency(kpis.total_pnl)}")
    print(f"Commission:    {format_currency(kpis.total_commission)}")
    print(f"Net P/L:       {format_currency(kpis.net_pnl)}")
    print(f"Profit factor: {format_profit_factor(kpis.profit_factor)}")


def main(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument("--input", "-i", required=True, help="File path, glob, or directory containing CSV(s)")
    p.add_argument("--db", "-d", required=False, default=None, help="SQLAlchemy URL (overrides DATABASE_URL env var)")
    p.add_argument("--replace", action="store_true", help="Drop the saved trades before importing")
    p.add_argument("--dry-run", action="store_true", help="Reconstruct and report without saving anything")
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    paths = gather_input_paths(args.input)
    if not paths:
        print("No CSV files found for input:", args.input)
        return 1

    engine = make_engine(args.db or DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(bind=engine, autoflush=False, future=True)()

    try:
        if args.replace and not args.dry_run:
            clear_trade_data(db)

        merged = []
        if args.dry_run and not args.replace:
            snapshot = load_trade_data(db)
            merged = list(snapshot.trades) if snapshot else []

        failures = 0
        for path in paths:
            result = process_file(db, path, dry_run=args.dry_run, preview=merged)
            if result is None:
                failures += 1
                continue
            merged = result.merged
    finally:
        db.close()
        engine.dispose()

    if merged:
        print_summary(merged)
    return 1 if failures == len(paths) else 0


if __name__ == "__main__":
    sys.exit(main())
