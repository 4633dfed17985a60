"""
Dashboard KPIs and per-module report breakdowns.

Each builder takes plain record lists (usually from ``RecordStore.snapshot``)
and an explicit ``today`` where date windows are involved.
"""

from datetime import date
from decimal import Decimal

from hr_admin.aggregation import (
    average,
    benefit_totals,
    count_where,
    group_by,
    is_overdue,
    is_upcoming,
    overtime_hours,
    payroll_discrepancies,
    percentage,
    premium_balanced,
    share_by,
    sum_field,
    total_depreciation,
)
from hr_admin.config import settings
from hr_admin.schemas import (
    Asset,
    AssetReport,
    AssetStatus,
    AttendanceStatus,
    AttendanceSummary,
    Benefits,
    BenefitsSummary,
    Candidate,
    CandidateStatus,
    DashboardKPI,
    Employee,
    EmployeeStatus,
    GoalStatus,
    Leave,
    LeaveStatus,
    LeaveSummary,
    MaintenanceLog,
    MaintenanceStatus,
    ParticipantStatus,
    Payroll,
    PayrollSummary,
    Performance,
    PerformanceSummary,
    RecruitmentSummary,
    TimeLog,
    Training,
    TrainingStatus,
    TrainingSummary,
)

ACTIVE_TRAINING = {TrainingStatus.SCHEDULED, TrainingStatus.IN_PROGRESS}
CLOSED_CANDIDATE = {CandidateStatus.HIRED, CandidateStatus.REJECTED}


def _rounded(value: float, places: int = 1) -> float:
    return round(float(value), places)


def _open_position(candidate: Candidate) -> bool:
    return candidate.status not in CLOSED_CANDIDATE


def dashboard_kpis(
    employees: list[Employee],
    leaves: list[Leave],
    trainings: list[Training],
    payroll: list[Payroll],
    candidates: list[Candidate],
    performance: list[Performance],
    benefits: list[Benefits],
) -> DashboardKPI:
    """Headline numbers for the dashboard landing page."""
    headcount = count_where(employees, lambda e: e.status == EmployeeStatus.ACTIVE)

    return DashboardKPI(
        headcount=headcount,
        turnover_rate=_rounded(percentage(len(employees) - headcount, len(employees))),
        pending_leaves=count_where(leaves, lambda l: l.status == LeaveStatus.PENDING),
        trainings_this_month=count_where(trainings, lambda t: t.status in ACTIVE_TRAINING),
        payroll_processed=sum_field(payroll, "net_pay"),
        open_positions=count_where(candidates, _open_position),
        avg_performance_rating=_rounded(average(performance, "overall_rating"), 2),
        benefits_cost=sum(
            (benefit_totals(b)["total_monthly_cost"] for b in benefits), Decimal("0")
        ),
    )


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


def upcoming_maintenance(
    assets: list[Asset], today: date | None = None, days: int | None = None
) -> list[Asset]:
    days = settings.maintenance_window_days if days is None else days
    return [a for a in assets if is_upcoming(a.next_maintenance, days, today)]


def overdue_maintenance(assets: list[Asset], today: date | None = None) -> list[Asset]:
    return [a for a in assets if is_overdue(a.next_maintenance, today)]


def asset_report(
    assets: list[Asset],
    maintenance_logs: list[MaintenanceLog],
    today: date | None = None,
    window_days: int | None = None,
) -> AssetReport:
    """Inventory, maintenance and depreciation breakdown."""
    original_value = sum_field(assets, "purchase_price")
    depreciation = total_depreciation(assets)

    def completed(log: MaintenanceLog) -> bool:
        return log.status == MaintenanceStatus.COMPLETED

    def status_count(status: AssetStatus) -> int:
        return count_where(assets, lambda a: a.status == status)

    return AssetReport(
        total_assets=len(assets),
        assigned_assets=status_count(AssetStatus.ASSIGNED),
        available_assets=status_count(AssetStatus.AVAILABLE),
        under_maintenance=status_count(AssetStatus.UNDER_MAINTENANCE),
        disposed_assets=status_count(AssetStatus.DISPOSED),
        total_value=sum_field(assets, "current_value"),
        original_value=original_value,
        upcoming_maintenance=len(upcoming_maintenance(assets, today, window_days)),
        overdue_maintenance=len(overdue_maintenance(assets, today)),
        by_category=group_by(assets, "category", value="current_value"),
        by_status=share_by(assets, "status", AssetStatus),
        by_condition=group_by(assets, "condition", with_percentage=True),
        total_maintenance_cost=sum_field(maintenance_logs, "cost", where=completed),
        avg_maintenance_cost=average(maintenance_logs, "cost", where=completed),
        total_depreciation=depreciation,
        depreciation_rate=percentage(depreciation, original_value),
    )


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------


def leave_summary(leaves: list[Leave]) -> LeaveSummary:
    def status_count(status: LeaveStatus) -> int:
        return count_where(leaves, lambda l: l.status == status)

    return LeaveSummary(
        total=len(leaves),
        pending=status_count(LeaveStatus.PENDING),
        approved=status_count(LeaveStatus.APPROVED),
        rejected=status_count(LeaveStatus.REJECTED),
        days_by_type=group_by(leaves, "type", value="days"),
    )


def payroll_summary(payroll: list[Payroll]) -> PayrollSummary:
    return PayrollSummary(
        slips=len(payroll),
        total_gross_pay=sum_field(payroll, "gross_pay"),
        total_net_pay=sum_field(payroll, "net_pay"),
        total_deductions=sum_field(payroll, "total_deductions"),
        inconsistent_slips=[p.id for p in payroll if payroll_discrepancies(p)],
    )


def attendance_summary(time_logs: list[TimeLog]) -> AttendanceSummary:
    present = count_where(time_logs, lambda t: t.status == AttendanceStatus.PRESENT)
    return AttendanceSummary(
        total_entries=len(time_logs),
        present=present,
        late=count_where(time_logs, lambda t: t.status == AttendanceStatus.LATE),
        absent=count_where(time_logs, lambda t: t.status == AttendanceStatus.ABSENT),
        attendance_rate=_rounded(percentage(present, len(time_logs))),
        total_overtime_hours=float(sum_field(time_logs, "overtime_hours")),
        inconsistent_entries=[
            t.id for t in time_logs if t.overtime_hours != overtime_hours(t.total_hours)
        ],
    )


def benefits_summary(benefits: list[Benefits]) -> BenefitsSummary:
    totals = [benefit_totals(b) for b in benefits]

    def total(name: str) -> Decimal:
        return sum((t[name] for t in totals), Decimal("0"))

    monthly_cost = total("total_monthly_cost")
    company = total("company_total_contribution")
    return BenefitsSummary(
        employees_covered=len(benefits),
        total_monthly_cost=monthly_cost,
        company_contribution=company,
        employee_contribution=total("employee_total_contribution"),
        company_share=_rounded(percentage(company, monthly_cost)),
        unbalanced_records=[
            b.id for b in benefits if not all(premium_balanced(e) for e in b.benefits)
        ],
    )


def training_summary(trainings: list[Training]) -> TrainingSummary:
    return TrainingSummary(
        total_trainings=len(trainings),
        active_trainings=count_where(trainings, lambda t: t.status in ACTIVE_TRAINING),
        total_participants=sum(
            count_where(t.participants, lambda p: p.status != ParticipantStatus.CANCELLED)
            for t in trainings
        ),
        total_cost=sum_field(trainings, "total_cost"),
        by_category=group_by(trainings, "category", value="total_cost"),
    )


def performance_summary(performance: list[Performance]) -> PerformanceSummary:
    goals = [goal for review in performance for goal in review.goals]
    completed = count_where(goals, lambda g: g.status == GoalStatus.COMPLETED)
    return PerformanceSummary(
        reviews=len(performance),
        avg_rating=_rounded(average(performance, "overall_rating"), 2),
        total_goals=len(goals),
        completed_goals=completed,
        goal_completion_rate=_rounded(percentage(completed, len(goals))),
        top_performers=count_where(
            performance, lambda p: p.overall_rating >= settings.top_performer_rating
        ),
    )


def recruitment_summary(candidates: list[Candidate]) -> RecruitmentSummary:
    return RecruitmentSummary(
        total_candidates=len(candidates),
        screening=count_where(candidates, lambda c: c.status == CandidateStatus.SCREENING),
        interviewing=count_where(
            candidates,
            lambda c: c.status
            in {CandidateStatus.INTERVIEW_SCHEDULED, CandidateStatus.FINAL_INTERVIEW},
        ),
        hired=count_where(candidates, lambda c: c.status == CandidateStatus.HIRED),
        open_positions=count_where(candidates, _open_position),
        by_department=group_by(candidates, "department"),
    )
