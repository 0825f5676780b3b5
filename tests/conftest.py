# tests/conftest.py
"""
Shared fixtures. Each test gets its own SQLite file so conditional updates,
unique indexes and multi-session races behave like a real database.
"""

import os
import sys
import tempfile

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before partim.config is imported anywhere
_TMP_DIR = tempfile.mkdtemp(prefix="partim-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'partim.db')}"
os.environ["LOG_DIR"] = _TMP_DIR
os.environ.pop("API_KEY", None)

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from partim.database import create_tables

NOW = datetime(2026, 3, 14, 9, 0, 0)


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    create_tables(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
