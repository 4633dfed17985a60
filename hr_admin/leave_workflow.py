"""
Leave approval workflow.

    Pending -> Approved
    Pending -> Rejected

Approved and Rejected are terminal. The workflow only touches the Leave
record; leave balances are not tracked.
"""

import logging
from collections.abc import Callable
from datetime import date

from hr_admin.config import settings
from hr_admin.errors import InvalidStateError, ValidationError
from hr_admin.observability import trace_span
from hr_admin.schemas import Employee, Leave, LeaveStatus, LeaveType
from hr_admin.store import RecordStore
from hr_admin.utils.dates import parse_date

logger = logging.getLogger(__name__)


def inclusive_days(start: date, end: date) -> int:
    """Calendar days from ``start`` to ``end``, both included."""
    return (end - start).days + 1


class LeaveWorkflow:
    """Submit, approve and reject leave requests against a record store."""

    def __init__(self, store: RecordStore, clock: Callable[[], date] = date.today):
        self.store = store
        self.clock = clock

    def submit(
        self,
        employee_id: int,
        leave_type: LeaveType | str,
        start_date: date | str,
        end_date: date | str,
        reason: str,
    ) -> Leave:
        """
        Create a Pending leave request.

        Raises:
            ValidationError: bad leave type, dates out of order, reason too short
            NotFoundError: unknown employee
        """
        with trace_span("leave.submit", employee=employee_id):
            try:
                leave_type = LeaveType(leave_type)
            except ValueError as e:
                raise ValidationError(f"Unknown leave type: {leave_type}") from e

            start = parse_date(start_date, "start_date")
            end = parse_date(end_date, "end_date")
            if end < start:
                raise ValidationError("End date must be after or equal to start date")

            reason = (reason or "").strip()
            if len(reason) < settings.min_leave_reason_length:
                raise ValidationError(
                    "Please provide a detailed reason "
                    f"(minimum {settings.min_leave_reason_length} characters)"
                )

            employee: Employee = self.store.require("employees", employee_id)

            leave = Leave(
                id=self.store.next_id("leaves"),
                employee_id=employee.id,
                employee_name=employee.name,
                type=leave_type,
                start_date=start,
                end_date=end,
                days=inclusive_days(start, end),
                reason=reason,
                status=LeaveStatus.PENDING,
                applied_date=self.clock(),
            )
            self.store.commit(("leaves", leave))

            logger.info(
                f"Leave {leave.id} submitted: employee={employee.id}, "
                f"type={leave_type.value}, days={leave.days}"
            )
            return leave

    def approve(self, leave_id: int, reviewer_id: int) -> Leave:
        """
        Pending -> Approved.

        Raises:
            NotFoundError: unknown leave or reviewer
            InvalidStateError: leave already decided
        """
        with trace_span("leave.approve", leave=leave_id, reviewer=reviewer_id):
            return self._decide(leave_id, reviewer_id, LeaveStatus.APPROVED)

    def reject(self, leave_id: int, reviewer_id: int, reason: str) -> Leave:
        """
        Pending -> Rejected, recording why.

        Raises:
            ValidationError: empty rejection reason
            NotFoundError: unknown leave or reviewer
            InvalidStateError: leave already decided
        """
        with trace_span("leave.reject", leave=leave_id, reviewer=reviewer_id):
            reason = (reason or "").strip()
            if not reason:
                raise ValidationError("Please provide a reason for rejection")
            return self._decide(leave_id, reviewer_id, LeaveStatus.REJECTED, reason)

    def _decide(
        self,
        leave_id: int,
        reviewer_id: int,
        outcome: LeaveStatus,
        rejection_reason: str | None = None,
    ) -> Leave:
        self.store.require("employees", reviewer_id)

        with self.store.locked(("leaves", leave_id)):
            leave: Leave = self.store.require("leaves", leave_id)
            if leave.status != LeaveStatus.PENDING:
                raise InvalidStateError(
                    f"Leave {leave_id} is {leave.status.value}; only Pending requests can be "
                    f"{outcome.value.lower()}"
                )

            decided = leave.model_copy(
                update={
                    "status": outcome,
                    "approved_by": reviewer_id,
                    "approved_date": self.clock(),
                    "rejection_reason": rejection_reason,
                }
            )
            self.store.commit(("leaves", decided))

        logger.info(f"Leave {leave_id} {outcome.value.lower()} by {reviewer_id}")
        return decided
