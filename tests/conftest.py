"""
Pytest configuration and shared fixtures.
"""

import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.database import create_schema, get_connection, insert_client, insert_project
from models.invoices import Client, LineItem
from models.timesheets import Project, TimesheetEntry


@pytest.fixture
def conn(tmp_path):
    """Initialized SQLite database in a temp directory."""
    connection = get_connection(tmp_path / "test.db")
    create_schema(connection)
    yield connection
    connection.close()


@pytest.fixture
def sample_client():
    return Client(id="client-1", name="Muster GmbH", email="billing@muster.de")


@pytest.fixture
def sample_project(sample_client):
    return Project(
        id="project-1",
        name="Website Relaunch",
        hourly_rate=Decimal("85"),
        client_id=sample_client.id,
        client_name=sample_client.name,
        estimated_hours=Decimal("40"),
    )


@pytest.fixture
def seeded_conn(conn, sample_client, sample_project):
    """Database with one client and one project."""
    insert_client(conn, sample_client)
    insert_project(conn, sample_project)
    return conn


@pytest.fixture
def sample_items():
    """Line items for testing."""
    return [
        LineItem(description="Development", quantity=Decimal("10"), rate=Decimal("85"), amount=Decimal("850.00")),
        LineItem(description="Consulting", quantity=Decimal("2.5"), rate=Decimal("99.99"), amount=Decimal("249.98")),
    ]


@pytest.fixture
def make_entry(sample_project):
    """Factory for time entries on the sample project."""
    counter = iter(range(1, 10_000))

    def _make(day: date, hours, project: Project | None = sample_project) -> TimesheetEntry:
        return TimesheetEntry(
            id=f"entry-{next(counter)}",
            date=day,
            hours=Decimal(str(hours)),
            project_id=project.id if project else "none",
            project=project,
        )

    return _make
