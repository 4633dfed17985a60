"""
Tests for the dashboard KPIs and report builders over the bundled fixtures.
"""

from datetime import date
from decimal import Decimal

from hr_admin import reports
from hr_admin.schemas import BenefitEntry, Benefits, Employee, Payroll, TimeLog


def overdrawn_slip() -> Payroll:
    return Payroll(
        id=9,
        employee_id=4,
        employee_name="Emily Davis",
        emp_code="EMP004",
        month="2024-02",
        monthly_salary=100,
        gross_pay=100,
        deductions={"tax": 150},
        total_deductions=150,
        net_pay=-50,
    )


def test_dashboard_kpis(store):
    data = store.snapshot()

    kpis = reports.dashboard_kpis(
        data["employees"],
        data["leaves"],
        data["trainings"],
        data["payroll"],
        data["candidates"],
        data["performance"],
        data["benefits"],
    )

    assert kpis.headcount == 10
    assert kpis.turnover_rate == 16.7
    assert kpis.pending_leaves == 3
    assert kpis.trainings_this_month == 2
    assert kpis.payroll_processed == Decimal("29421.23")
    assert kpis.open_positions == 4
    assert kpis.avg_performance_rating == 4.3
    assert kpis.benefits_cost == Decimal("2540")


def test_dashboard_kpis_with_no_records():
    kpis = reports.dashboard_kpis([], [], [], [], [], [], [])

    assert kpis.headcount == 0
    assert kpis.turnover_rate == 0.0
    assert kpis.avg_performance_rating == 0.0
    assert kpis.payroll_processed == Decimal("0")


def test_headcount_counts_active_only():
    employees = [
        Employee(
            id=i,
            emp_code=f"EMP{i:03d}",
            name=f"Employee {i}",
            email=f"e{i}@company.com",
            department="Sales",
            position="Rep",
            status=status,
            hire_date=date(2022, 1, 1),
            salary=50000,
        )
        for i, status in enumerate(["Active", "Active", "On Leave", "Inactive"], start=1)
    ]

    kpis = reports.dashboard_kpis(employees, [], [], [], [], [], [])

    assert kpis.headcount == 2
    assert kpis.turnover_rate == 50.0


class TestAssetReport:
    def test_inventory_counts(self, store, today):
        report = reports.asset_report(store.all("assets"), store.all("maintenance_logs"), today)

        assert report.total_assets == 10
        assert report.assigned_assets == 4
        assert report.available_assets == 4
        assert report.under_maintenance == 1
        assert report.disposed_assets == 1

    def test_values_and_depreciation(self, store, today):
        report = reports.asset_report(store.all("assets"), store.all("maintenance_logs"), today)

        assert report.total_value == Decimal("8700")
        assert report.original_value == Decimal("12200")
        assert report.total_depreciation == Decimal("3500")
        assert round(report.depreciation_rate, 2) == 28.69

    def test_maintenance_windows(self, store, today):
        assets = store.all("assets")

        upcoming = reports.upcoming_maintenance(assets, today, 30)
        overdue = reports.overdue_maintenance(assets, today)

        assert [a.asset_code for a in upcoming] == ["LAP-001", "PRN-001"]
        assert [a.asset_code for a in overdue] == ["LAP-002", "MON-002"]

    def test_window_days_is_configurable(self, store, today):
        report = reports.asset_report(
            store.all("assets"), store.all("maintenance_logs"), today, window_days=60
        )
        # adds LAP-003 due 2024-04-30
        assert report.upcoming_maintenance == 3

    def test_maintenance_cost_uses_completed_logs(self, store, today):
        report = reports.asset_report(store.all("assets"), store.all("maintenance_logs"), today)

        assert report.total_maintenance_cost == Decimal("300")
        assert report.avg_maintenance_cost == Decimal("150")

    def test_breakdowns(self, store, today):
        report = reports.asset_report(store.all("assets"), store.all("maintenance_logs"), today)

        assert report.by_category[0].key == "Laptop"
        assert report.by_category[0].total == Decimal("5330")
        assert [s.key for s in report.by_status] == [
            "Available",
            "Assigned",
            "Under Maintenance",
            "Disposed",
        ]
        assert [s.count for s in report.by_status] == [4, 4, 1, 1]


def test_leave_summary(store):
    summary = reports.leave_summary(store.all("leaves"))

    assert (summary.total, summary.pending, summary.approved, summary.rejected) == (7, 3, 3, 1)
    assert summary.days_by_type[0].key == "Annual Leave"
    assert summary.days_by_type[0].total == Decimal("22")


def test_payroll_summary(store):
    summary = reports.payroll_summary(store.all("payroll"))

    assert summary.slips == 5
    assert summary.total_gross_pay == Decimal("43398.34")
    assert summary.total_net_pay == Decimal("29421.23")
    assert summary.total_deductions == Decimal("13977.11")
    assert summary.inconsistent_slips == []


def test_attendance_summary(store):
    summary = reports.attendance_summary(store.all("time_logs"))

    assert (summary.present, summary.late, summary.absent) == (5, 2, 1)
    assert summary.attendance_rate == 62.5
    assert summary.total_overtime_hours == 5.0
    assert summary.inconsistent_entries == []


def test_benefits_summary(store):
    summary = reports.benefits_summary(store.all("benefits"))

    assert summary.employees_covered == 4
    assert summary.total_monthly_cost == Decimal("2540")
    assert summary.company_contribution == Decimal("1900")
    assert summary.employee_contribution == Decimal("640")
    assert summary.company_share == 74.8
    assert summary.unbalanced_records == []


def test_training_summary(store):
    summary = reports.training_summary(store.all("trainings"))

    assert summary.total_trainings == 4
    assert summary.active_trainings == 2
    assert summary.total_participants == 7
    assert summary.total_cost == Decimal("2000")


def test_performance_summary(store):
    summary = reports.performance_summary(store.all("performance"))

    assert summary.reviews == 4
    assert summary.avg_rating == 4.3
    assert (summary.total_goals, summary.completed_goals) == (8, 5)
    assert summary.goal_completion_rate == 62.5
    assert summary.top_performers == 2


def test_recruitment_summary(store):
    summary = reports.recruitment_summary(store.all("candidates"))

    assert summary.total_candidates == 6
    assert (summary.screening, summary.interviewing, summary.hired) == (2, 2, 1)
    assert summary.open_positions == 4
    assert (summary.by_department[0].key, summary.by_department[0].count) == ("Engineering", 3)


def test_negative_net_pay_is_reported_not_rejected():
    summary = reports.payroll_summary([overdrawn_slip()])
    kpis = reports.dashboard_kpis([], [], [], [overdrawn_slip()], [], [], [])

    assert summary.total_net_pay == Decimal("-50")
    assert summary.total_deductions == Decimal("150")
    assert summary.inconsistent_slips == []
    assert kpis.payroll_processed == Decimal("-50")


def test_fractional_overtime_is_consistent():
    log = TimeLog(
        id=1,
        employee_id=2,
        employee_name="Sarah Johnson",
        date=date(2024, 2, 5),
        total_hours=8.7,
        overtime_hours=0.7,
        status="Present",
    )
    wrong = log.model_copy(update={"id": 2, "overtime_hours": 0.5})

    summary = reports.attendance_summary([log, wrong])

    assert summary.inconsistent_entries == [2]


def test_benefits_summary_lists_unbalanced_premiums():
    balanced = BenefitEntry(
        type="Health Insurance",
        provider="BlueCross",
        monthly_premium=500,
        employee_contribution=100,
        company_contribution=400,
        status="Active",
    )
    short = balanced.model_copy(update={"company_contribution": Decimal("350")})
    records = [
        Benefits(id=1, employee_id=1, employee_name="John Smith", benefits=[balanced]),
        Benefits(id=2, employee_id=2, employee_name="Sarah Johnson", benefits=[balanced, short]),
    ]

    summary = reports.benefits_summary(records)

    assert summary.unbalanced_records == [2]
