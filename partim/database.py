# partim/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL (SQLite works for local runs and tests).
All models are auto-imported here so create_tables() creates every table in one call.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from partim.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # SQLite connections are shared across FastAPI's threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,          # Auto-reconnect if DB connection drops
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 10,             # Surfaces as StorageError instead of hanging
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=False,                  # Set True to log all SQL queries (debug only)
    **_engine_options(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from partim.models.ticket import Ticket                       # noqa
    from partim.models.parking_slot import ParkingSlot            # noqa
    from partim.models.parking_rate import ParkingRate            # noqa
    from partim.models.monthly_pass import MonthlyPass            # noqa
    from partim.models.vehicle_history import VehicleHistory      # noqa
    from partim.models.shift import Shift                         # noqa
    from partim.models.ticket_settlement import TicketSettlement  # noqa

    Base.metadata.create_all(bind=bind or engine)
