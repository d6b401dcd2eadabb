"""
Query Filters Test Configuration

Provides pytest fixtures for an in-memory SQLite database, filtered session
factories and the demo API client.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from query_filters.execution import install_query_filters
from query_filters.models import Base, build_schema
from query_filters.registrar import GlobalFilterRegistrar
from query_filters.schema import SchemaBuilder


@pytest.fixture(scope="session")
def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_connection(db_engine):
    """
    Connection wrapped in a transaction that is rolled back after each test.
    Every session a test opens is bound to it, so they all see the same rows.
    """
    connection = db_engine.connect()
    transaction = connection.begin()

    yield connection

    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def session_factory(db_connection):
    """Open sessions on the test connection, optionally with a schema's filters installed"""
    sessions = []

    def make_session(schema=None) -> Session:
        factory = sessionmaker(bind=db_connection)
        if schema is not None:
            install_query_filters(factory, schema)
        session = factory()
        sessions.append(session)
        return session

    yield make_session

    for session in sessions:
        session.close()


@pytest.fixture(scope="session")
def demo_schema():
    """Manual user_name filter plus the global removed-row filter"""
    return build_schema()


@pytest.fixture(scope="session")
def removed_only_schema():
    """Only the global removed-row filter"""
    builder = SchemaBuilder.from_registry(Base.registry)
    GlobalFilterRegistrar().apply(builder)
    return builder.finalize()


@pytest.fixture(scope="function")
def db_session(session_factory, demo_schema) -> Session:
    return session_factory(demo_schema)


@pytest.fixture(scope="function")
def raw_session(session_factory) -> Session:
    """Session without any query filters, for arranging test data"""
    return session_factory()


@pytest.fixture(scope="function")
def client(db_session):
    """Demo API client using the filtered test session"""
    from query_filters.main import app, get_db

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
