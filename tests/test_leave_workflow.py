"""
Tests for the leave approval workflow.
"""

from datetime import date

import pytest

from hr_admin.errors import InvalidStateError, NotFoundError, ValidationError
from hr_admin.schemas import LeaveStatus, LeaveType


def submit_sick_leave(workflow, **overrides):
    request = {
        "employee_id": 1,
        "leave_type": "Sick Leave",
        "start_date": "2024-03-01",
        "end_date": "2024-03-03",
        "reason": "Flu, doctor recommended rest",
    }
    request.update(overrides)
    return workflow.submit(**request)


class TestSubmit:
    def test_submit_creates_pending_leave(self, leave_workflow, store, today):
        leave = submit_sick_leave(leave_workflow)

        assert leave.days == 3
        assert leave.status == LeaveStatus.PENDING
        assert leave.type == LeaveType.SICK
        assert leave.employee_name == "John Smith"
        assert leave.applied_date == today
        assert leave.approved_by is None and leave.approved_date is None
        assert store.get("leaves", leave.id) == leave

    def test_new_ids_follow_existing(self, leave_workflow):
        first = submit_sick_leave(leave_workflow)
        second = submit_sick_leave(leave_workflow, employee_id=2)

        assert (first.id, second.id) == (8, 9)

    def test_single_day_leave(self, leave_workflow):
        leave = submit_sick_leave(leave_workflow, end_date="2024-03-01")
        assert leave.days == 1

    def test_accepts_date_objects(self, leave_workflow):
        leave = submit_sick_leave(
            leave_workflow, start_date=date(2024, 3, 4), end_date=date(2024, 3, 8)
        )
        assert leave.days == 5

    def test_end_before_start_rejected(self, leave_workflow, store):
        with pytest.raises(ValidationError, match="End date"):
            submit_sick_leave(leave_workflow, start_date="2024-03-05", end_date="2024-03-01")
        assert len(store.all("leaves")) == 7

    @pytest.mark.parametrize("reason", ["", "   ", "too short", "  Flu     "])
    def test_reason_too_short(self, leave_workflow, reason):
        with pytest.raises(ValidationError, match="minimum 10 characters"):
            submit_sick_leave(leave_workflow, reason=reason)

    def test_unknown_leave_type(self, leave_workflow):
        with pytest.raises(ValidationError, match="leave type"):
            submit_sick_leave(leave_workflow, leave_type="Sabbatical")

    def test_unparsable_date(self, leave_workflow):
        with pytest.raises(ValidationError, match="start_date"):
            submit_sick_leave(leave_workflow, start_date="next tuesday")

    def test_unknown_employee(self, leave_workflow):
        with pytest.raises(NotFoundError, match="Employee 99 not found"):
            submit_sick_leave(leave_workflow, employee_id=99)


class TestDecide:
    def test_submit_then_approve(self, leave_workflow, today):
        leave = submit_sick_leave(leave_workflow)

        approved = leave_workflow.approve(leave.id, reviewer_id=5)

        assert approved.status == LeaveStatus.APPROVED
        assert approved.approved_by == 5
        assert approved.approved_date == today

    def test_reject_records_reason(self, leave_workflow):
        rejected = leave_workflow.reject(4, reviewer_id=8, reason="Team at minimum staffing")

        assert rejected.status == LeaveStatus.REJECTED
        assert rejected.approved_by == 8
        assert rejected.rejection_reason == "Team at minimum staffing"

    def test_reject_requires_reason(self, leave_workflow, store):
        with pytest.raises(ValidationError):
            leave_workflow.reject(4, reviewer_id=8, reason="  ")
        assert store.get("leaves", 4).status == LeaveStatus.PENDING

    def test_approve_twice_fails_and_leaves_state_unchanged(self, leave_workflow, store):
        first = leave_workflow.approve(3, reviewer_id=5)

        with pytest.raises(InvalidStateError):
            leave_workflow.approve(3, reviewer_id=8)

        assert store.get("leaves", 3) == first
        assert store.get("leaves", 3).approved_by == 5

    def test_cannot_approve_rejected_leave(self, leave_workflow):
        with pytest.raises(InvalidStateError, match="Rejected"):
            leave_workflow.approve(6, reviewer_id=5)

    def test_cannot_reject_approved_leave(self, leave_workflow):
        with pytest.raises(InvalidStateError):
            leave_workflow.reject(1, reviewer_id=5, reason="Changed my mind")

    def test_unknown_leave(self, leave_workflow):
        with pytest.raises(NotFoundError, match="Leave 404"):
            leave_workflow.approve(404, reviewer_id=5)

    def test_unknown_reviewer(self, leave_workflow, store):
        with pytest.raises(NotFoundError, match="Employee 77"):
            leave_workflow.approve(3, reviewer_id=77)
        assert store.get("leaves", 3).status == LeaveStatus.PENDING
