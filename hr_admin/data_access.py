"""
Data access layer.

Every ``list_*`` call walks the same fallback chain and never raises:

1. Snowflake (skipped in mock mode), behind the circuit breaker
2. the collection's fixture JSON file
3. an empty list

Rows from either source are validated into the typed record models; a
source whose rows do not validate counts as a failed source.
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as SchemaError

from hr_admin.config import settings
from hr_admin.data.fixtures import load_fixture
from hr_admin.errors import SourceUnavailableError
from hr_admin.observability import trace_span
from hr_admin.schemas import (
    Asset,
    AssetAssignment,
    Benefits,
    Candidate,
    Employee,
    Leave,
    MaintenanceLog,
    Payroll,
    Performance,
    TimeLog,
    Training,
)
from hr_admin.snowflake_client import SnowflakeClient, snowflake_client

logger = logging.getLogger(__name__)

# Collection name -> record model
RECORD_TYPES: dict[str, type[BaseModel]] = {
    "employees": Employee,
    "leaves": Leave,
    "time_logs": TimeLog,
    "payroll": Payroll,
    "candidates": Candidate,
    "performance": Performance,
    "trainings": Training,
    "benefits": Benefits,
    "assets": Asset,
    "asset_assignments": AssetAssignment,
    "maintenance_logs": MaintenanceLog,
}

_ADAPTERS = {kind: TypeAdapter(list[model]) for kind, model in RECORD_TYPES.items()}


class DataAccessLayer:
    """Typed, failure-tolerant access to every record collection."""

    def __init__(
        self,
        primary: SnowflakeClient | None = None,
        fixture_dir: str | Path | None = None,
    ):
        self.primary = primary
        self.fixture_dir = fixture_dir

    def list_records(self, kind: str) -> list[Any]:
        """Return the full collection ``kind``; possibly empty, never an error."""
        with trace_span("data_access.list", kind=kind):
            if self.primary is not None and not self.primary.use_mock:
                try:
                    return self._from_primary(kind)
                except Exception as e:
                    failure = SourceUnavailableError(f"Primary source failed for {kind}: {e}")
                    logger.error(str(failure))
                    logger.warning(f"Falling back to fixture data for {kind}")
            else:
                logger.info(f"Using fixture data for {kind}")

            try:
                return self._from_fixtures(kind)
            except (OSError, ValueError, SchemaError) as e:
                logger.error(f"Fixture source failed for {kind}: {e}")
                return []

    def _from_primary(self, kind: str) -> list[Any]:
        rows = self.primary.fetch_table(kind)
        return _ADAPTERS[kind].validate_python(rows)

    def _from_fixtures(self, kind: str) -> list[Any]:
        rows = load_fixture(kind, self.fixture_dir)
        return _ADAPTERS[kind].validate_python(rows)

    def list_employees(self) -> list[Employee]:
        return self.list_records("employees")

    def list_leaves(self) -> list[Leave]:
        return self.list_records("leaves")

    def list_time_logs(self) -> list[TimeLog]:
        return self.list_records("time_logs")

    def list_payroll(self) -> list[Payroll]:
        return self.list_records("payroll")

    def list_candidates(self) -> list[Candidate]:
        return self.list_records("candidates")

    def list_performance(self) -> list[Performance]:
        return self.list_records("performance")

    def list_trainings(self) -> list[Training]:
        return self.list_records("trainings")

    def list_benefits(self) -> list[Benefits]:
        return self.list_records("benefits")

    def list_assets(self) -> list[Asset]:
        return self.list_records("assets")

    def list_asset_assignments(self) -> list[AssetAssignment]:
        return self.list_records("asset_assignments")

    def list_maintenance_logs(self) -> list[MaintenanceLog]:
        return self.list_records("maintenance_logs")


# Global data access instance
data_access = DataAccessLayer(primary=snowflake_client, fixture_dir=settings.fixture_dir)
