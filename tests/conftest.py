"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fightwatch.db.models import Base, Organization


@pytest.fixture
def test_engine():
    """
    Create a test database engine.

    Uses SQLite in-memory for fast tests that don't need
    PostgreSQL-specific features. One engine per test, since the services
    under test commit.

    pysqlite's own transaction handling breaks SAVEPOINT, so transactions
    are begun explicitly instead.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    """A session for a test; closed afterwards, the engine is discarded."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def organization(db_session):
    """The UFC organization every sync anchors to."""
    org = Organization(
        name="Ultimate Fighting Championship",
        short_name="UFC",
        website="https://www.ufc.com",
        active=True,
    )
    db_session.add(org)
    db_session.commit()
    return org
