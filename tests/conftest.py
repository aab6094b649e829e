"""Pytest configuration and fixtures."""

import logging
from datetime import date

import pytest
import structlog

from clinica.db import init_db, make_engine, make_session_factory
from clinica.seed import ensure_seeded
from clinica.services import ClinicStore
from clinica.storage import MemoryCollectionBackend, SqlCollectionBackend

SEED_DAY = date(2026, 1, 14)


@pytest.fixture(autouse=True)
def _restore_logging():
    """The CLI configures logging on the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def session_factory():
    """In-memory SQLite database with the collections table."""
    engine = make_engine("sqlite:///:memory:", echo=False)
    init_db(engine)
    try:
        yield make_session_factory(engine)
    finally:
        engine.dispose()


@pytest.fixture
def sql_backend(session_factory):
    return SqlCollectionBackend(session_factory)


@pytest.fixture
def backend():
    return MemoryCollectionBackend()


@pytest.fixture
def store(backend):
    """Store seeded with the fixture dataset (all appointments on SEED_DAY)."""
    ensure_seeded(backend, SEED_DAY)
    return ClinicStore(backend)
