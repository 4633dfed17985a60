"""
Fixture record source.

Static JSON snapshots of every collection, used when Snowflake is not
configured or is failing. In production these tables live in Snowflake.
"""

import json
from pathlib import Path
from typing import Any

MOCK_DIR = Path(__file__).parent / "mock"

# Collection name -> fixture file
FIXTURE_FILES = {
    "employees": "employees.json",
    "leaves": "leaves.json",
    "time_logs": "time_logs.json",
    "payroll": "payroll.json",
    "candidates": "candidates.json",
    "performance": "performance.json",
    "trainings": "trainings.json",
    "benefits": "benefits.json",
    "assets": "assets.json",
    "asset_assignments": "asset_assignments.json",
    "maintenance_logs": "maintenance_logs.json",
}


def fixture_path(kind: str, fixture_dir: str | Path | None = None) -> Path:
    """Location of the fixture file for a collection."""
    base = Path(fixture_dir) if fixture_dir else MOCK_DIR
    return base / FIXTURE_FILES[kind]


def load_fixture(kind: str, fixture_dir: str | Path | None = None) -> list[dict[str, Any]]:
    """
    Read the raw rows of one collection.

    Raises:
        KeyError: unknown collection
        OSError: file missing or unreadable
        ValueError: file is not a JSON array
    """
    with open(fixture_path(kind, fixture_dir), encoding="utf-8") as f:
        rows = json.load(f)

    if not isinstance(rows, list):
        raise ValueError(f"Fixture for {kind} is not a JSON array")
    return rows
