"""
Asset assignment and maintenance workflows.

Assignment (Asset.status):

    Available -> Assigned -> Available          (assign / return_asset)

Maintenance (MaintenanceLog.status):

    Scheduled -> In Progress -> Completed
    Scheduled | In Progress -> Cancelled
    Scheduled | In Progress -> Failed

Scheduling leaves the asset alone. Entering In Progress moves the asset to
Under Maintenance; if it was Assigned, its Active assignment is suspended
(status Under Maintenance) and ``assigned_to`` cleared. When the last
in-progress job ends the suspended assignment is reactivated and the asset
goes back to Assigned, otherwise to Available.

Every action locks the asset, so concurrent assign calls on one asset are
serialized and only the first can see it Available.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from hr_admin.config import settings
from hr_admin.errors import InvalidStateError, ValidationError
from hr_admin.observability import trace_span
from hr_admin.schemas import (
    Asset,
    AssetAssignment,
    AssetCondition,
    AssetStatus,
    AssignedTo,
    AssignmentOutcome,
    AssignmentStatus,
    Employee,
    EmployeeStatus,
    MaintenanceLog,
    MaintenanceOutcome,
    MaintenanceStatus,
    MaintenanceType,
    Priority,
)
from hr_admin.store import RecordStore
from hr_admin.utils.dates import parse_date

logger = logging.getLogger(__name__)

OPEN_MAINTENANCE = {MaintenanceStatus.SCHEDULED, MaintenanceStatus.IN_PROGRESS}


@dataclass(frozen=True)
class EmployeeTarget:
    employee_id: int


@dataclass(frozen=True)
class DepartmentTarget:
    department: str


AssignmentTarget = EmployeeTarget | DepartmentTarget


def _enum(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field}: {value!r}. Expected one of: {allowed}") from e


def _amount(value, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid {field}: {value!r}") from e
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field} must be a non-negative amount")
    return amount


class AssetWorkflow:
    """Assignment and maintenance actions against a record store."""

    def __init__(self, store: RecordStore):
        self.store = store

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assign(
        self,
        asset_id: int,
        target: AssignmentTarget,
        assigned_date: date | str,
        reviewer_id: int,
        notes: str | None = None,
        expected_return_date: date | str | None = None,
    ) -> AssignmentOutcome:
        """
        Hand an Available asset to an employee or a department.

        Raises:
            ValidationError: bad dates or unknown department
            NotFoundError: unknown asset, employee or reviewer
            InvalidStateError: asset not Available, or employee not Active
        """
        with trace_span("asset.assign", asset=asset_id, reviewer=reviewer_id):
            assigned_on = parse_date(assigned_date, "assigned_date")
            expected_return = parse_date(
                expected_return_date, "expected_return_date", required=False
            )
            if expected_return is not None and expected_return < assigned_on:
                raise ValidationError("Expected return date must not precede the assignment date")

            reviewer: Employee = self.store.require("employees", reviewer_id)
            holder = self._resolve_target(target, assigned_on)

            with self.store.locked(("assets", asset_id)):
                asset: Asset = self.store.require("assets", asset_id)
                if asset.status != AssetStatus.AVAILABLE:
                    raise InvalidStateError(
                        f"Asset {asset.asset_code} is {asset.status.value}; "
                        "only Available assets can be assigned"
                    )

                assignment = AssetAssignment(
                    id=self.store.next_id("asset_assignments"),
                    asset_id=asset.id,
                    asset_code=asset.asset_code,
                    asset_name=asset.name,
                    employee_id=holder.employee_id,
                    employee_name=holder.employee_name,
                    department=holder.department,
                    assigned_date=assigned_on,
                    assigned_by=reviewer.id,
                    assigned_by_name=reviewer.name,
                    status=AssignmentStatus.ACTIVE,
                    notes=notes or "",
                    expected_return_date=expected_return,
                )
                updated = asset.model_copy(
                    update={"status": AssetStatus.ASSIGNED, "assigned_to": holder}
                )
                self.store.commit(("assets", updated), ("asset_assignments", assignment))

            logger.info(
                f"Asset {asset.asset_code} assigned to "
                f"{holder.employee_name or holder.department} by {reviewer.id}"
            )
            return AssignmentOutcome(asset=updated, assignment=assignment)

    def _resolve_target(self, target: AssignmentTarget, assigned_on: date) -> AssignedTo:
        if isinstance(target, EmployeeTarget):
            employee: Employee = self.store.require("employees", target.employee_id)
            if employee.status != EmployeeStatus.ACTIVE:
                raise InvalidStateError(
                    f"Employee {employee.id} is {employee.status.value}; "
                    "assets can only be assigned to Active employees"
                )
            return AssignedTo(
                employee_id=employee.id,
                employee_name=employee.name,
                department=employee.department,
                assigned_date=assigned_on,
            )

        if isinstance(target, DepartmentTarget):
            department = (target.department or "").strip()
            known = {e.department for e in self.store.all("employees")}
            if department not in known:
                raise ValidationError(f"Unknown department: {target.department!r}")
            return AssignedTo(department=department, assigned_date=assigned_on)

        raise ValidationError("Assignment target must be an employee or a department")

    def return_asset(
        self,
        assignment_id: int,
        return_date: date | str,
        condition: AssetCondition | str,
        notes: str | None = None,
    ) -> AssignmentOutcome:
        """
        Close an Active assignment and make the asset Available again.

        Raises:
            ValidationError: bad date or condition
            NotFoundError: unknown assignment
            InvalidStateError: assignment not Active
        """
        with trace_span("asset.return", assignment=assignment_id):
            returned_on = parse_date(return_date, "return_date")
            condition = _enum(AssetCondition, condition, "condition")

            asset_id = self.store.require("asset_assignments", assignment_id).asset_id

            with self.store.locked(("assets", asset_id)):
                assignment: AssetAssignment = self.store.require(
                    "asset_assignments", assignment_id
                )
                if assignment.status != AssignmentStatus.ACTIVE:
                    raise InvalidStateError(
                        f"Assignment {assignment_id} is {assignment.status.value}; "
                        "only Active assignments can be returned"
                    )
                if returned_on < assignment.assigned_date:
                    raise ValidationError("Return date must not precede the assignment date")

                asset: Asset = self.store.require("assets", asset_id)

                closed = assignment.model_copy(
                    update={
                        "status": AssignmentStatus.RETURNED,
                        "return_date": returned_on,
                        "return_condition": condition,
                        "return_notes": notes,
                    }
                )
                updated = asset.model_copy(
                    update={
                        "status": AssetStatus.AVAILABLE,
                        "assigned_to": None,
                        "condition": condition,
                    }
                )
                self.store.commit(("assets", updated), ("asset_assignments", closed))

            logger.info(f"Asset {asset.asset_code} returned in {condition.value} condition")
            return AssignmentOutcome(asset=updated, assignment=closed)

    def active_assignment(self, asset_id: int) -> AssetAssignment | None:
        return next(
            (
                a
                for a in self.store.all("asset_assignments")
                if a.asset_id == asset_id and a.status == AssignmentStatus.ACTIVE
            ),
            None,
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def schedule_maintenance(
        self,
        asset_id: int,
        maintenance_type: MaintenanceType | str,
        description: str,
        scheduled_date: date | str,
        priority: Priority | str,
        technician: str | None = None,
        estimated_cost=None,
        notes: str | None = None,
        parts_used: list[str] | str | None = None,
    ) -> MaintenanceOutcome:
        """
        Create a Scheduled maintenance log. The asset status is not changed.

        Raises:
            ValidationError: missing description/date, bad type, priority or cost
            NotFoundError: unknown asset
            InvalidStateError: asset is Disposed
        """
        with trace_span("maintenance.schedule", asset=asset_id):
            description = (description or "").strip()
            if not description:
                raise ValidationError("Maintenance description is required")
            scheduled_on = parse_date(scheduled_date, "scheduled_date")
            maintenance_type = _enum(MaintenanceType, maintenance_type, "maintenance_type")
            priority = _enum(Priority, priority, "priority")
            cost = _amount(estimated_cost, "estimated_cost") if estimated_cost else Decimal("0")

            if isinstance(parts_used, str):
                parts_used = [part.strip() for part in parts_used.split(",")]
            parts = [part for part in (parts_used or []) if part]

            with self.store.locked(("assets", asset_id)):
                asset: Asset = self.store.require("assets", asset_id)
                if asset.status == AssetStatus.DISPOSED:
                    raise InvalidStateError(f"Asset {asset.asset_code} is Disposed")

                log = MaintenanceLog(
                    id=self.store.next_id("maintenance_logs"),
                    asset_id=asset.id,
                    asset_code=asset.asset_code,
                    asset_name=asset.name,
                    maintenance_type=maintenance_type,
                    description=description,
                    scheduled_date=scheduled_on,
                    completed_date=None,
                    technician=(technician or "").strip() or settings.default_technician,
                    cost=cost,
                    status=MaintenanceStatus.SCHEDULED,
                    notes=notes or "",
                    parts_used=parts,
                    priority=priority,
                )
                self.store.commit(("maintenance_logs", log))

            logger.info(
                f"Maintenance {log.id} scheduled for {asset.asset_code} on {scheduled_on} "
                f"({maintenance_type.value}, {priority.value})"
            )
            return MaintenanceOutcome(maintenance_log=log, asset=asset)

    def start_maintenance(self, log_id: int) -> MaintenanceOutcome:
        """
        Scheduled -> In Progress; the asset goes Under Maintenance.

        Raises:
            NotFoundError: unknown log
            InvalidStateError: log not Scheduled, or asset Disposed
        """
        with trace_span("maintenance.start", log=log_id):
            asset_id = self.store.require("maintenance_logs", log_id).asset_id

            with self.store.locked(("assets", asset_id)):
                log = self._require_log(log_id, {MaintenanceStatus.SCHEDULED}, "started")
                asset: Asset = self.store.require("assets", asset_id)
                if asset.status == AssetStatus.DISPOSED:
                    raise InvalidStateError(f"Asset {asset.asset_code} is Disposed")

                started = log.model_copy(update={"status": MaintenanceStatus.IN_PROGRESS})
                changes = [("maintenance_logs", started)]

                if asset.status == AssetStatus.ASSIGNED:
                    holding = self.active_assignment(asset.id)
                    if holding is not None:
                        changes.append(
                            (
                                "asset_assignments",
                                holding.model_copy(
                                    update={"status": AssignmentStatus.UNDER_MAINTENANCE}
                                ),
                            )
                        )
                updated = asset.model_copy(
                    update={"status": AssetStatus.UNDER_MAINTENANCE, "assigned_to": None}
                )
                changes.append(("assets", updated))
                self.store.commit(*changes)

            logger.info(f"Maintenance {log_id} started; {asset.asset_code} under maintenance")
            return MaintenanceOutcome(maintenance_log=started, asset=updated)

    def complete_maintenance(
        self,
        log_id: int,
        completed_date: date | str,
        cost,
        downtime_hours: float | None = None,
        next_maintenance_date: date | str | None = None,
    ) -> MaintenanceOutcome:
        """
        Scheduled/In Progress -> Completed.

        Records the maintenance dates on the asset and releases it from
        Under Maintenance.

        Raises:
            ValidationError: bad date, cost or downtime
            NotFoundError: unknown log
            InvalidStateError: log already closed
        """
        with trace_span("maintenance.complete", log=log_id):
            completed_on = parse_date(completed_date, "completed_date")
            next_due = parse_date(next_maintenance_date, "next_maintenance_date", required=False)
            cost = _amount(cost, "cost")
            if downtime_hours is not None and (
                not math.isfinite(downtime_hours) or downtime_hours < 0
            ):
                raise ValidationError("downtime_hours must be a finite, non-negative number")

            asset_id = self.store.require("maintenance_logs", log_id).asset_id

            with self.store.locked(("assets", asset_id)):
                log = self._require_log(log_id, OPEN_MAINTENANCE, "completed")
                asset: Asset = self.store.require("assets", asset_id)

                done = log.model_copy(
                    update={
                        "status": MaintenanceStatus.COMPLETED,
                        "completed_date": completed_on,
                        "cost": cost,
                        "downtime_hours": downtime_hours,
                        "next_maintenance": next_due,
                    }
                )
                serviced = {"last_maintenance": completed_on}
                if next_due is not None:
                    serviced["next_maintenance"] = next_due
                updated, changes = self._release(asset.model_copy(update=serviced), log_id)
                self.store.commit(("maintenance_logs", done), *changes)

            logger.info(f"Maintenance {log_id} completed on {completed_on}, cost={cost}")
            return MaintenanceOutcome(maintenance_log=done, asset=updated)

    def cancel_maintenance(self, log_id: int, reason: str | None = None) -> MaintenanceOutcome:
        """
        Scheduled/In Progress -> Cancelled, releasing the asset if it was in progress.

        Raises:
            NotFoundError: unknown log
            InvalidStateError: log already closed
        """
        with trace_span("maintenance.cancel", log=log_id):
            asset_id = self.store.require("maintenance_logs", log_id).asset_id

            with self.store.locked(("assets", asset_id)):
                log = self._require_log(log_id, OPEN_MAINTENANCE, "cancelled")
                asset: Asset = self.store.require("assets", asset_id)

                cancelled = log.model_copy(
                    update={"status": MaintenanceStatus.CANCELLED, "notes": reason or log.notes}
                )
                updated, changes = self._release(asset, log_id)
                self.store.commit(("maintenance_logs", cancelled), *changes)

            logger.info(f"Maintenance {log_id} cancelled")
            return MaintenanceOutcome(maintenance_log=cancelled, asset=updated)

    def fail_maintenance(self, log_id: int, notes: str | None = None) -> MaintenanceOutcome:
        """
        Scheduled/In Progress -> Failed, releasing the asset if it was in progress.

        Raises:
            NotFoundError: unknown log
            InvalidStateError: log already closed
        """
        with trace_span("maintenance.fail", log=log_id):
            asset_id = self.store.require("maintenance_logs", log_id).asset_id

            with self.store.locked(("assets", asset_id)):
                log = self._require_log(log_id, OPEN_MAINTENANCE, "failed")
                asset: Asset = self.store.require("assets", asset_id)

                failed = log.model_copy(
                    update={"status": MaintenanceStatus.FAILED, "notes": notes or log.notes}
                )
                updated, changes = self._release(asset, log_id)
                self.store.commit(("maintenance_logs", failed), *changes)

            logger.warning(f"Maintenance {log_id} failed on {asset.asset_code}")
            return MaintenanceOutcome(maintenance_log=failed, asset=updated)

    def _require_log(self, log_id: int, allowed: set, action: str) -> MaintenanceLog:
        log: MaintenanceLog = self.store.require("maintenance_logs", log_id)
        if log.status not in allowed:
            raise InvalidStateError(
                f"Maintenance {log_id} is {log.status.value} and cannot be {action}"
            )
        return log

    def _release(self, asset: Asset, closing_log_id: int) -> tuple[Asset, list]:
        """
        End Under Maintenance once no other job on the asset is in progress.

        Returns the asset to write and every record change to commit with it.
        """
        if asset.status != AssetStatus.UNDER_MAINTENANCE:
            return asset, [("assets", asset)]

        still_running = any(
            log.asset_id == asset.id
            and log.id != closing_log_id
            and log.status == MaintenanceStatus.IN_PROGRESS
            for log in self.store.all("maintenance_logs")
        )
        if still_running:
            return asset, [("assets", asset)]

        suspended = next(
            (
                a
                for a in self.store.all("asset_assignments")
                if a.asset_id == asset.id and a.status == AssignmentStatus.UNDER_MAINTENANCE
            ),
            None,
        )
        if suspended is None:
            released = asset.model_copy(update={"status": AssetStatus.AVAILABLE})
            return released, [("assets", released)]

        resumed = suspended.model_copy(update={"status": AssignmentStatus.ACTIVE})
        released = asset.model_copy(
            update={
                "status": AssetStatus.ASSIGNED,
                "assigned_to": AssignedTo(
                    employee_id=suspended.employee_id,
                    employee_name=suspended.employee_name,
                    department=suspended.department,
                    assigned_date=suspended.assigned_date,
                ),
            }
        )
        return released, [("assets", released), ("asset_assignments", resumed)]
