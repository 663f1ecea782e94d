"""
Pytest configuration and shared fixtures.
This file ensures the project root is in sys.path for imports and points the
application at an in-memory SQLite database before anything imports it.
"""

import os
import sys
from pathlib import Path

# Add project root to sys.path so we can import domain, services, etc.
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "testing"
os.environ["OPENAI_API_KEY"] = ""
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest

from domain.models import Base, engine, SessionLocal
from services import ai_service


@pytest.fixture(scope="function")
def db_session():
    """
    Fresh schema and session for each test.

    The in-memory database shares a single connection, so services that open
    their own SessionLocal() see the same data as this session.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(autouse=True)
def no_openai(monkeypatch):
    """OpenAI is never reached from tests."""
    monkeypatch.setattr(ai_service, "get_openai_client", lambda: None)
