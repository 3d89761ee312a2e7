#!/usr/bin/env python3
"""Create the freelancer dashboard database, or add missing tables to an existing one."""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH, configure_logging
from core.database import create_schema, get_connection


def init_database(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    try:
        create_schema(conn)
    finally:
        conn.close()


def main():
    parser = argparse.ArgumentParser(description="Initialise the SQLite database")
    parser.add_argument(
        "--db", type=Path, default=DB_PATH, help=f"Database file (default: {DB_PATH})"
    )
    args = parser.parse_args()

    configure_logging()
    init_database(args.db)
    print(f"Schema ready in {args.db}")


if __name__ == "__main__":
    main()
