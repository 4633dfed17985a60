"""
Training enrollment.

A training accepts enrollments while Scheduled or In Progress and never
holds more participant entries than ``max_participants``. Withdrawing
keeps the entry with status Cancelled; enrolling the same employee again
reactivates it.
"""

import logging
from collections.abc import Callable
from datetime import date

from hr_admin.errors import InvalidStateError
from hr_admin.observability import trace_span
from hr_admin.schemas import Employee, Participant, ParticipantStatus, Training, TrainingStatus
from hr_admin.store import RecordStore
from hr_admin.utils.dates import parse_date

logger = logging.getLogger(__name__)

OPEN_FOR_ENROLLMENT = {TrainingStatus.SCHEDULED, TrainingStatus.IN_PROGRESS}


def active_participants(training: Training) -> list[Participant]:
    return [p for p in training.participants if p.status != ParticipantStatus.CANCELLED]


def _with_participants(training: Training, participants: list[Participant]) -> Training:
    counted = sum(1 for p in participants if p.status != ParticipantStatus.CANCELLED)
    return training.model_copy(
        update={
            "participants": participants,
            "total_cost": training.cost_per_participant * counted,
        }
    )


class TrainingWorkflow:
    def __init__(self, store: RecordStore, clock: Callable[[], date] = date.today):
        self.store = store
        self.clock = clock

    def enroll(
        self, training_id: int, employee_id: int, enrollment_date: date | str | None = None
    ) -> Training:
        """
        Add an employee to a training.

        Raises:
            NotFoundError: unknown training or employee
            InvalidStateError: training closed or full, or employee already enrolled
        """
        with trace_span("training.enroll", training=training_id, employee=employee_id):
            enrolled_on = (
                parse_date(enrollment_date, "enrollment_date", required=False) or self.clock()
            )
            employee: Employee = self.store.require("employees", employee_id)

            with self.store.locked(("trainings", training_id)):
                training: Training = self.store.require("trainings", training_id)
                if training.status not in OPEN_FOR_ENROLLMENT:
                    raise InvalidStateError(
                        f"Training {training_id} is {training.status.value} "
                        "and not open for enrollment"
                    )

                existing = next(
                    (p for p in training.participants if p.employee_id == employee.id), None
                )
                if existing is not None and existing.status != ParticipantStatus.CANCELLED:
                    raise InvalidStateError(
                        f"Employee {employee.id} is already enrolled in training {training_id}"
                    )

                entry = Participant(
                    employee_id=employee.id,
                    employee_name=employee.name,
                    enrollment_date=enrolled_on,
                    status=ParticipantStatus.ENROLLED,
                )
                if existing is not None:
                    participants = [
                        entry if p is existing else p for p in training.participants
                    ]
                else:
                    if len(training.participants) >= training.max_participants:
                        raise InvalidStateError(
                            f"Training {training_id} is full "
                            f"({training.max_participants} participants)"
                        )
                    participants = [*training.participants, entry]

                updated = _with_participants(training, participants)
                self.store.commit(("trainings", updated))

            logger.info(f"Employee {employee.id} enrolled in training {training_id}")
            return updated

    def withdraw(self, training_id: int, employee_id: int) -> Training:
        """
        Mark an employee's participation Cancelled.

        Raises:
            NotFoundError: unknown training
            InvalidStateError: training already Completed, or employee not enrolled
        """
        with trace_span("training.withdraw", training=training_id, employee=employee_id):
            with self.store.locked(("trainings", training_id)):
                training: Training = self.store.require("trainings", training_id)
                if training.status == TrainingStatus.COMPLETED:
                    raise InvalidStateError(f"Training {training_id} is already Completed")

                if not any(p.employee_id == employee_id for p in active_participants(training)):
                    raise InvalidStateError(
                        f"Employee {employee_id} is not enrolled in training {training_id}"
                    )

                participants = [
                    p.model_copy(update={"status": ParticipantStatus.CANCELLED})
                    if p.employee_id == employee_id
                    else p
                    for p in training.participants
                ]
                updated = _with_participants(training, participants)
                self.store.commit(("trainings", updated))

            logger.info(f"Employee {employee_id} withdrew from training {training_id}")
            return updated
