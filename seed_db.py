from database import SessionLocal, engine
import models


def seed_data():
    """Seed a few CRM records for local development against SQLite."""
    if "sqlite" not in str(engine.url):
        print("Skipping seed: not a SQLite database.")
        return

    db = SessionLocal()
    try:
        print("Seeding mock CRM records...")
        records = [
            models.CrmRecord(id="ACC-001", object_type="Account", name="Acme Corporation"),
            models.CrmRecord(id="OPP-001", object_type="Opportunity", name="Acme - Renewal 2026"),
            models.CrmRecord(id="CASE-001", object_type="Case", name="Invoice dispute"),
            models.CrmRecord(id="005000000000001", object_type="User", name="Integration User"),
        ]
        for record in records:
            db.merge(record)
        db.commit()
        print(f"Seeded {len(records)} CRM records.")
    finally:
        db.close()


if __name__ == "__main__":
    seed_data()
