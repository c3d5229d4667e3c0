"""Create the schema (crm mirror, drive file records, reservations, upload jobs)."""
import sys

from database import engine, Base
import models  # noqa: F401  registers the tables on Base.metadata
from seed_db import seed_data


def init_db(seed: bool = True):
    Base.metadata.create_all(bind=engine)
    print(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")
    if seed:
        seed_data()


if __name__ == "__main__":
    init_db(seed="--no-seed" not in sys.argv)
