"""Shared pytest fixtures: in-memory databases and CSV files."""

from pathlib import Path

import pytest
from sqlmodel import SQLModel, create_engine

from sqlmodel_importer import ImportLog
from tests.fixtures.models import Customer, Tag


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with the import log and test tables."""
    engine = create_engine("sqlite://")
    SQLModel.metadata.create_all(
        engine, tables=[ImportLog.__table__, Customer.__table__, Tag.__table__]
    )
    yield engine
    engine.dispose()


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a file under tmp_path and return its path."""

    def _write(content: str, name: str = "data.csv") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
