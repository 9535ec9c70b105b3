#!/usr/bin/env python3
"""
eFiscal Notas CLI — workbook import, categorization, store status and API server.

USAGE:
  python -m efiscal.cli ingest notas.xlsx                   # Import a workbook into the store
  python -m efiscal.cli ingest notas.xlsx --dry-run         # Parse only, report what would be imported

  python -m efiscal.cli categorize                          # Categorize all untreated notas
  python -m efiscal.cli status                              # Counts per category

  python -m efiscal.cli serve                               # Start API server
  python -m efiscal.cli serve --port 8000
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from efiscal.config import NOTAS_FILE
from efiscal.data.store import NotaStore
from efiscal.errors import EFiscalError


def _banner(title: str) -> None:
    print("\n" + "=" * 70)
    print(f"  EFISCAL NOTAS — {title}")
    print("=" * 70)


def cmd_ingest(args):
    """Import (or dry-run parse) a workbook."""
    _banner("WORKBOOK IMPORT")
    path = Path(args.file).expanduser()
    if not path.exists():
        print(f"  File not found: {path}")
        return 1

    buffer = path.read_bytes()
    try:
        if args.dry_run:
            from efiscal.data.ingest import parse_workbook
            result = parse_workbook(buffer)
            print(f"\n  Dry run: {result.valid_count:,} notas would be checked against the store")
            for d in result.dropped[:10]:
                missing = f" ({', '.join(d.missing_fields)})" if d.missing_fields else ""
                print(f"    row {d.row_number}: {d.reason}{missing}")
            return 0

        from efiscal.operations import import_workbook
        store = NotaStore(args.store).load()
        outcome = import_workbook(store, buffer)
    except EFiscalError as exc:
        print(f"\n  Import failed: {exc.message}")
        return 1

    print(f"\n  Processed:  {outcome.processed:,}")
    print(f"  New:        {outcome.new:,}")
    print(f"  Duplicates: {outcome.duplicates:,}")
    print(f"  Dropped:    {outcome.dropped:,}")
    print(f"\n  Store: {store.path}\n")
    return 0


def cmd_categorize(args):
    """Categorize the untreated backlog."""
    _banner("CATEGORIZATION")
    from efiscal.operations import categorize_pending

    store = NotaStore(args.store).load()
    run = categorize_pending(store)
    if not run.summary.processed:
        print("\n  No untreated notas found\n")
        return 0

    s = run.summary
    print(f"\n  {'Processed':<14}{s.processed:>8,}")
    print(f"  {'Standard':<14}{s.standard:>8,}")
    print(f"  {'Quality':<14}{s.quality:>8,}")
    print(f"  {'Return':<14}{s.returned:>8,}")
    print(f"  {'Unidentified':<14}{s.unidentified:>8,}")
    print(f"  {'Reorganized':<14}{s.reorganized:>8,}")
    print(f"\n  {run.updated:,} notas updated in {run.elapsed_ms:,} ms\n")
    return 0


def cmd_status(args):
    """Show store counts."""
    _banner("STATUS")
    store = NotaStore(args.store).load()
    print(f"\n  Notas:      {store.row_count():,}")
    print(f"  Untreated:  {store.untreated_count():,}\n")
    for category, n in store.category_counts().items():
        print(f"  {category:<14}{n:>8,}")
    print()
    return 0


def cmd_serve(args):
    """Start the API server."""
    import uvicorn
    print(f"\nStarting eFiscal Notas API on port {args.port}...")
    uvicorn.run("efiscal.main:app", host=args.host, port=args.port, reload=args.reload,
                timeout_keep_alive=65)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="eFiscal Notas — invoice spreadsheet ingestion and categorization",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--store", default=str(NOTAS_FILE), help=f"Notas CSV (default {NOTAS_FILE})")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # ingest subcommand
    ingest_parser = subparsers.add_parser("ingest", help="Import a .xlsx workbook")
    ingest_parser.add_argument("file", help="Path to the workbook")
    ingest_parser.add_argument("--dry-run", action="store_true", help="Parse only; don't touch the store")
    ingest_parser.set_defaults(func=cmd_ingest)

    # categorize subcommand
    categorize_parser = subparsers.add_parser("categorize", help="Categorize untreated notas")
    categorize_parser.set_defaults(func=cmd_categorize)

    # status subcommand
    status_parser = subparsers.add_parser("status", help="Show store counts")
    status_parser.set_defaults(func=cmd_status)

    # serve subcommand
    serve_parser = subparsers.add_parser("serve", help="Start API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address (default 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")), help="Port (default 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
