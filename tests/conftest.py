"""Shared test fixtures."""

import pytest

from clean_village.database.connection import DatabaseConnection
from clean_village.database.models import Actor
from clean_village.database.schema import initialize_database
from clean_village.database.repository import Repository


@pytest.fixture
def db_path(tmp_path):
    """Provide a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def db(db_path):
    """Provide an initialized database connection."""
    conn = DatabaseConnection(db_path)
    initialize_database(conn)
    return conn


@pytest.fixture
def repo(db):
    """Provide a repository with an initialized database."""
    return Repository(db)


@pytest.fixture
def boss():
    return Actor(id="u1", name="Boss Lee", role="BOSS", username="boss")


@pytest.fixture
def staff():
    return Actor(id="u3", name="Staff Kao", role="STAFF", username="staff")
