import argparse

from sqlalchemy import inspect

from app.db.base import Base
from app.db.session import engine

# Import models so SQLAlchemy metadata includes all mapped tables.
from app.db.models import item, review  # noqa: F401


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Drop the ReviewHub tables defined by SQLAlchemy models."
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Skip interactive confirmation prompt.",
    )
    parser.add_argument(
        "--recreate",
        action="store_true",
        help="Recreate empty tables after dropping them.",
    )
    args = parser.parse_args()

    if not args.yes:
        confirm = input(
            "This will DROP the items and reviews tables for the current DATABASE_URL. Type 'drop' to continue: "
        ).strip()
        if confirm.lower() != "drop":
            print("Aborted. No changes made.")
            return

    with engine.begin() as conn:
        existing = set(inspect(conn).get_table_names())
        table_names = [table.name for table in Base.metadata.sorted_tables if table.name in existing]
        Base.metadata.drop_all(bind=conn)

    if not table_names:
        print("No tables found.")
    else:
        print(f"Dropped {len(table_names)} table(s): {', '.join(table_names)}.")

    if args.recreate:
        Base.metadata.create_all(bind=engine)
        print("Recreated ORM tables.")


if __name__ == "__main__":
    main()
