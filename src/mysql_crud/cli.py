"""Command line entry point.

Useful for checking connectivity and what the schema catalog sees::

    mysql-crud --config config.yml tables
    mysql-crud --config config.yml describe user
    mysql-crud --config config.yml query "SELECT * FROM user WHERE id = ?" 3
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from typing import Sequence

from .config import load_config
from .crud import Crud
from .errors import ArgumentError, ConfigError, ExecutionError
from .logging_utils import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and query a MySQL database")
    parser.add_argument("--config", required=True, help="Path to the YAML config file")
    parser.add_argument(
        "--log-level", default=None, help="Override observability.log_level from the config"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("tables", help="List tables known to the schema catalog")

    describe = commands.add_parser("describe", help="Show the columns of a table")
    describe.add_argument("table")

    query = commands.add_parser("query", help="Run a SELECT statement with ? placeholders")
    query.add_argument("sql")
    query.add_argument("args", nargs="*")
    return parser


def run(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 2
    configure_logging(args.log_level or config.observability.log_level)

    crud = Crud.from_config(config)
    try:
        if args.command == "tables":
            crud.warm_catalog()
            output = sorted(crud.catalog.tables())
        elif args.command == "describe":
            schema = crud.columns_of(args.table)
            if not schema:
                print(f"unknown table: {args.table}", file=sys.stderr)
                return 1
            output = [
                {**asdict(column), "kind": column.kind} for column in schema.columns.values()
            ]
        else:
            output = crud.query(args.sql, *args.args).maps()
    except (ArgumentError, ExecutionError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        crud.close()

    print(json.dumps(output, indent=2, default=str))
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
