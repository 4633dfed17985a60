"""
Tests for training enrollment and withdrawal.
"""

from datetime import date
from decimal import Decimal

import pytest

from hr_admin.errors import InvalidStateError, NotFoundError
from hr_admin.schemas import ParticipantStatus


def test_enroll_adds_participant_and_recomputes_cost(training_workflow, store, today):
    training = training_workflow.enroll(1, employee_id=3)

    assert [p.employee_id for p in training.participants] == [5, 8, 3]
    assert training.participants[-1].status == ParticipantStatus.ENROLLED
    assert training.participants[-1].enrollment_date == today
    assert training.total_cost == Decimal("1500")
    assert store.get("trainings", 1) == training


def test_enroll_with_explicit_date(training_workflow):
    training = training_workflow.enroll(1, employee_id=3, enrollment_date="2024-02-20")
    assert training.participants[-1].enrollment_date == date(2024, 2, 20)


def test_cannot_enroll_twice(training_workflow):
    with pytest.raises(InvalidStateError, match="already enrolled"):
        training_workflow.enroll(1, employee_id=5)


def test_full_training_rejects_enrollment(training_workflow, store):
    with pytest.raises(InvalidStateError, match="full"):
        training_workflow.enroll(2, employee_id=6)
    assert len(store.get("trainings", 2).participants) == 3


@pytest.mark.parametrize("training_id", [3, 4])
def test_closed_trainings_reject_enrollment(training_workflow, training_id):
    with pytest.raises(InvalidStateError, match="not open for enrollment"):
        training_workflow.enroll(training_id, employee_id=6)


def test_unknown_references(training_workflow):
    with pytest.raises(NotFoundError, match="Training 9"):
        training_workflow.enroll(9, employee_id=1)
    with pytest.raises(NotFoundError, match="Employee 99"):
        training_workflow.enroll(1, employee_id=99)


def test_withdraw_marks_cancelled_and_frees_cost(training_workflow):
    training = training_workflow.withdraw(2, employee_id=3)

    cancelled = [p for p in training.participants if p.status == ParticipantStatus.CANCELLED]
    assert [p.employee_id for p in cancelled] == [3]
    assert len(training.participants) == 3
    assert training.total_cost == Decimal("600")


def test_withdraw_then_reenroll_reuses_entry(training_workflow):
    training_workflow.withdraw(2, employee_id=3)

    training = training_workflow.enroll(2, employee_id=3)

    assert len(training.participants) == 3
    assert all(p.status != ParticipantStatus.CANCELLED for p in training.participants)
    assert training.total_cost == Decimal("900")


def test_withdraw_requires_enrollment(training_workflow):
    with pytest.raises(InvalidStateError, match="not enrolled"):
        training_workflow.withdraw(1, employee_id=3)


def test_cannot_withdraw_from_completed_training(training_workflow):
    with pytest.raises(InvalidStateError, match="Completed"):
        training_workflow.withdraw(3, employee_id=9)


def test_capacity_never_exceeded(training_workflow, store):
    for employee_id in [1, 2, 3, 4, 6, 7, 9, 10, 11, 12]:
        try:
            training_workflow.enroll(1, employee_id=employee_id)
        except InvalidStateError:
            pass

    training = store.get("trainings", 1)
    assert len(training.participants) == training.max_participants == 10
