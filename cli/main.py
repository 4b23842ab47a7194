#!/usr/bin/env python3
"""
Kustoc CLI - database administration and the API server.
"""

import json
import sys

from kustoc import config, db, ids, schema_engine
from kustoc.observability import configure_logging


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def _print_results(results: dict):
    for key in ("tables_created", "columns_added", "indexes_created", "migrations_applied", "errors"):
        values = results.get(key) or []
        if values:
            print(f"  {key}: {len(values)}")
            for value in values:
                print(f"    - {value}")
    print(f"  schema_version: {results.get('schema_version')}")


def cmd_init(args):
    """Create or converge the database. --fresh drops every table first."""
    print_header("Kustoc - Init")
    print(f"  DB: {db.get_db_path()}")
    if "--fresh" in args:
        print("  Dropping all tables (--fresh)")
        with db.get_connection() as conn:
            results = schema_engine.create_fresh(conn)
    else:
        results = db.run_startup_migrations()
    _print_results(results)
    return 1 if results.get("errors") else 0


def cmd_migrate(args):
    """Apply pending schema changes and data migrations."""
    print_header("Kustoc - Migrate")
    results = db.run_startup_migrations()
    _print_results(results)
    return 1 if results.get("errors") else 0


def cmd_serve(args):
    """Run the API server."""
    from api.server import main as serve

    serve()
    return 0


def cmd_counters(args):
    """Show ID counters. `counters sync` raises them to the highest stored IDs."""
    db.ensure_migrations()
    with db.get_connection() as conn:
        if args and args[0] == "sync":
            raised = ids.sync_counters(conn)
            print(f"Counters raised: {raised or 'none'}")
        counters = ids.list_counters(conn)

    print_header("ID counters")
    if not counters:
        print("  (none)")
        return 0
    print_table(["Prefix", "Counter", "Next ID"], [[p, n, ids.format_id(p, n + 1)] for p, n in counters.items()])
    return 0


def cmd_db_info(args):
    """Print DB path, size, schema version and row counts."""
    info = db.get_db_info()
    if "--json" in args:
        print(json.dumps(info, indent=2))
        return 0

    print_header("Kustoc - DB info")
    print(f"  Path:           {info['resolved_db_path']}")
    print(f"  Exists:         {info['exists']}")
    print(f"  Size:           {info['file_size']}")
    print(f"  SQLite:         {info['sqlite_version']}")
    print(f"  user_version:   {info['user_version']} (target {info['target_schema_version']})")
    if info["tables"]:
        print()
        print_table(["Table", "Rows"], [[t, "-" if n is None else n] for t, n in info["tables"].items()])
    return 0


def cmd_help(args):
    """Show help."""
    print_header("Kustoc CLI")
    print("""
COMMANDS:

  init [--fresh]     Create or converge the database (--fresh drops all tables)
  migrate            Apply pending schema changes and data migrations
  serve              Run the API server (KUSTOC_HOST, KUSTOC_PORT)
  counters [sync]    Show ID counters; `sync` raises them to the stored maximum
  db-info [--json]   Show DB path, schema version and row counts
  help               Show this help

ENVIRONMENT:
  KUSTOC_HOME        Base directory (default ~/.kustoc)
  KUSTOC_DB          Database file (default $KUSTOC_HOME/data/kustoc.db)
  KUSTOC_API_TOKEN   Shared API token; unset disables auth
""")
    return 0


COMMANDS = {
    "init": cmd_init,
    "migrate": cmd_migrate,
    "serve": cmd_serve,
    "counters": cmd_counters,
    "db-info": cmd_db_info,
    "help": cmd_help,
    "h": cmd_help,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else argv
    configure_logging(config.LOG_LEVEL, config.LOG_JSON)

    if not argv:
        return cmd_help([])

    cmd = argv[0]
    args = argv[1:]

    if cmd in COMMANDS:
        return COMMANDS[cmd](args)

    print(f"Unknown command: {cmd}")
    print("Run 'help' for available commands.")
    return 2


if __name__ == "__main__":
    sys.exit(main())
