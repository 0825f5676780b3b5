# scripts/setup/init_db.py
"""
Initialize database: creates all tables and seeds the default hourly rates.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from partim.database import SessionLocal, create_tables, engine
from partim.config import settings
from partim.services.rate_service import list_rates, seed_default_rates
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError


def main():
    print("🗄️  PARTIM DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except SQLAlchemyError as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"✅ {len(tables)} tables ready:")
    for t in tables:
        print(f"   ✓ {t}")

    db = SessionLocal()
    try:
        seeded = seed_default_rates(db)
        print(f"\n💰 Hourly rates ({seeded} seeded):")
        for rate in list_rates(db):
            print(f"   {rate.vehicle_type:<10} {rate.hourly_rate:g}/h")
    finally:
        db.close()

    print("\n🎉 Database ready! You can now start the backend:")
    print("   uvicorn partim.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
