"""
Loads question banks into the configured store.

Usage:
    python scripts/seed_questions.py data/seed_questions.json
    python scripts/seed_questions.py banks.json --db data/olympiad.db --force
"""

import argparse
import sys

from olympiad.config import EngineConfig
from olympiad.quiz.adapters.db_manager import DatabaseManager
from olympiad.quiz.adapters.seeder import DataSeeder
from olympiad.quiz.adapters.sqlite_repository import SQLiteQuizRepository


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("seed_file")
    parser.add_argument("--db", default=EngineConfig.DB_PATH)
    parser.add_argument(
        "--force", action="store_true", help="load even if the store has questions"
    )
    args = parser.parse_args(argv)

    db_manager = DatabaseManager(args.db)
    try:
        seeder = DataSeeder(SQLiteQuizRepository(db_manager))
        seeded = seeder.load(args.seed_file) if args.force else seeder.seed_if_empty(
            args.seed_file
        )
    finally:
        db_manager.close()

    if not seeded:
        print("Nothing seeded (store not empty or file missing). Use --force to load.")
        return 1
    for language, count in seeded.items():
        print(f"{language.value}: {count} questions")
    return 0


if __name__ == "__main__":
    sys.exit(main())
