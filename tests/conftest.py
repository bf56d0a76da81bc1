# Rev 0.2.0

"""Pytest fixtures for phasetrack (Rev 0.2.0)"""
from __future__ import annotations
import pytest
from pathlib import Path
from phasetrack.repositories.db import Database
from phasetrack.services.tracker_service import TrackerService


@pytest.fixture()
def db(tmp_path: Path):
    database = Database(path=tmp_path / "test.db")
    try:
        database.run_migrations()
        yield database
    finally:
        database.close()


@pytest.fixture()
def db_conn(db: Database):
    return db.conn


@pytest.fixture()
def service(db: Database) -> TrackerService:
    return TrackerService(db)


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
