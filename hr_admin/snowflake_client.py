"""
Snowflake client with circuit breaker protection.
Primary source for every HR record collection.
"""

import json
import logging
import math
from contextlib import contextmanager
from typing import Any

from snowflake.snowpark import Session
from snowflake.snowpark.exceptions import SnowparkSQLException

from hr_admin.circuit_breaker import CircuitBreaker
from hr_admin.config import settings
from hr_admin.errors import SourceUnavailableError

logger = logging.getLogger(__name__)

# Collection name -> Snowflake table
TABLES = {
    "employees": "employees",
    "leaves": "leaves",
    "time_logs": "time_logs",
    "payroll": "payroll",
    "candidates": "candidates",
    "performance": "performance_reviews",
    "trainings": "trainings",
    "benefits": "employee_benefits",
    "assets": "assets",
    "asset_assignments": "asset_assignments",
    "maintenance_logs": "maintenance_logs",
}

# VARIANT / ARRAY columns come back from to_pandas() as JSON text
NESTED_COLUMNS = {
    "allowances",
    "deductions",
    "goals",
    "participants",
    "benefits",
    "skills",
    "assigned_to",
    "parts_used",
}


def _normalize_row(row: dict[str, Any]) -> dict[str, Any]:
    """Lower-case Snowflake column names, decode nested JSON, map NaN to None."""
    normalized = {}
    for column, value in row.items():
        key = column.lower()
        if isinstance(value, float) and math.isnan(value):
            value = None
        elif key in NESTED_COLUMNS and isinstance(value, str):
            value = json.loads(value)
        normalized[key] = value
    return normalized


class SnowflakeClient:
    """
    Snowflake client with circuit breaker pattern.
    In mock mode no session is opened and callers use fixtures instead.
    """

    def __init__(self, use_mock: bool = True):
        """
        Args:
            use_mock: If True, never open a Snowflake session.
                      Used in development and tests.
        """
        self.use_mock = use_mock
        self.session: Session | None = None

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.circuit_breaker_failure_threshold,
            timeout=settings.circuit_breaker_timeout,
            name="SnowflakeCircuitBreaker",
        )

        if not use_mock:
            self._initialize_session()

    def _initialize_session(self):
        """Open the Snowpark session from configured credentials."""
        try:
            connection_params = {
                "account": settings.snowflake_account,
                "user": settings.snowflake_user,
                "password": settings.snowflake_password,
                "warehouse": settings.snowflake_warehouse,
                "database": settings.snowflake_database,
                "schema": settings.snowflake_schema,
            }

            self.session = Session.builder.configs(connection_params).create()
            logger.info("Snowflake session initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize Snowflake session: {e}")
            logger.warning("Falling back to fixture data")
            self.use_mock = True

    @contextmanager
    def get_session(self):
        """Context manager yielding the live session, or None in mock mode."""
        if self.use_mock or self.session is None:
            yield None
        else:
            try:
                yield self.session
            except Exception as e:
                logger.error(f"Snowflake session error: {e}")
                raise

    def fetch_table(self, kind: str) -> list[dict[str, Any]]:
        """
        Read every row of a collection through the circuit breaker.

        Raises:
            SourceUnavailableError: mock mode, open circuit or query failure
        """
        if self.use_mock:
            raise SourceUnavailableError("Snowflake is not configured")

        return self.circuit_breaker.call(self._query_table, TABLES[kind])

    def _query_table(self, table: str) -> list[dict[str, Any]]:
        """Full-table read via the DataFrame API; no SQL text is built."""
        with self.get_session() as session:
            if session is None:
                raise SourceUnavailableError("Snowflake session not available")

            try:
                frame = session.table(table).sort("ID").to_pandas()
            except SnowparkSQLException as e:
                logger.error(f"Snowflake error reading {table}: {e}")
                raise

            rows = [_normalize_row(row) for row in frame.to_dict(orient="records")]
            logger.info(f"Read {len(rows)} rows from {table} via Snowpark")
            return rows

    def get_circuit_breaker_state(self) -> dict:
        """Get circuit breaker state for monitoring."""
        return self.circuit_breaker.get_state()

    def close(self):
        """Close Snowflake session."""
        if self.session:
            self.session.close()
            logger.info("Snowflake session closed")


# Global Snowflake client instance
snowflake_client = SnowflakeClient(use_mock=not bool(settings.snowflake_account))
