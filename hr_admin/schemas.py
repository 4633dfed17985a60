"""
Record schemas shared by the data access layer, the workflows and the API.

Fields named ``employee_name``, ``asset_name``, ``assigned_by_name`` and
similar are display snapshots copied when the record was written. They
are not kept in sync with the source entity; the matching ``*_id`` field
is authoritative.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer


def _to_decimal(value):
    # floats go through repr so 7765.38 stays 7765.38, not its binary expansion
    if isinstance(value, float):
        return Decimal(str(value))
    return value


# Signed currency: exact Decimal arithmetic, plain JSON number on the wire.
Amount = Annotated[
    Decimal,
    BeforeValidator(_to_decimal),
    PlainSerializer(float, return_type=float, when_used="json"),
]

Money = Annotated[Amount, Field(ge=0)]

Rating = Annotated[float, Field(ge=0, le=5)]


class Record(BaseModel):
    """Base for every stored entity."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    id: int


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class EmployeeStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ON_LEAVE = "On Leave"


class LeaveType(str, Enum):
    ANNUAL = "Annual Leave"
    SICK = "Sick Leave"
    PERSONAL = "Personal Leave"
    EMERGENCY = "Emergency Leave"
    MATERNITY = "Maternity Leave"
    PATERNITY = "Paternity Leave"


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"


class CandidateStatus(str, Enum):
    SCREENING = "Screening"
    INTERVIEW_SCHEDULED = "Interview Scheduled"
    FINAL_INTERVIEW = "Final Interview"
    HIRED = "Hired"
    REJECTED = "Rejected"


class GoalStatus(str, Enum):
    COMPLETED = "Completed"
    PARTIALLY_COMPLETED = "Partially Completed"
    NOT_STARTED = "Not Started"


class TrainingStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ParticipantStatus(str, Enum):
    ENROLLED = "Enrolled"
    ATTENDING = "Attending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class BenefitStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class AssetStatus(str, Enum):
    AVAILABLE = "Available"
    ASSIGNED = "Assigned"
    UNDER_MAINTENANCE = "Under Maintenance"
    DISPOSED = "Disposed"


class AssetCondition(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class AssignmentStatus(str, Enum):
    ACTIVE = "Active"
    RETURNED = "Returned"
    UNDER_MAINTENANCE = "Under Maintenance"


class MaintenanceType(str, Enum):
    PREVENTIVE = "Preventive"
    CORRECTIVE = "Corrective"
    EMERGENCY = "Emergency"


class MaintenanceStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------


class Employee(Record):
    emp_code: str
    name: str
    email: str
    department: str
    position: str
    status: EmployeeStatus
    hire_date: date
    phone: str = ""
    address: str = ""
    manager_id: int | None = None
    salary: Money
    avatar: str | None = None


class Leave(Record):
    employee_id: int
    employee_name: str
    type: LeaveType
    start_date: date
    end_date: date
    days: int = Field(ge=1)
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    applied_date: date
    approved_by: int | None = None
    approved_date: date | None = None
    rejection_reason: str | None = None


class TimeLog(Record):
    employee_id: int
    employee_name: str
    date: date
    check_in: str | None = None
    check_out: str | None = None
    break_duration: float = 0
    total_hours: float = Field(ge=0)
    overtime_hours: float = Field(default=0, ge=0)
    status: AttendanceStatus


class Allowances(BaseModel):
    transport: Money = Decimal("0")
    meal: Money = Decimal("0")
    mobile: Money = Decimal("0")

    def total(self) -> Decimal:
        return self.transport + self.meal + self.mobile


class Deductions(BaseModel):
    tax: Money = Decimal("0")
    social_security: Money = Decimal("0")
    health_insurance: Money = Decimal("0")
    provident_fund: Money = Decimal("0")

    def total(self) -> Decimal:
        return self.tax + self.social_security + self.health_insurance + self.provident_fund


class Payroll(Record):
    employee_id: int
    employee_name: str
    emp_code: str
    month: str
    base_salary: Money = Decimal("0")
    monthly_salary: Money
    overtime_hours: float = Field(default=0, ge=0)
    overtime_rate: Money = Decimal("0")
    overtime_pay: Money = Decimal("0")
    allowances: Allowances = Field(default_factory=Allowances)
    total_allowances: Money = Decimal("0")
    gross_pay: Money
    deductions: Deductions = Field(default_factory=Deductions)
    total_deductions: Money = Decimal("0")
    # negative when deductions exceed gross
    net_pay: Amount


class Candidate(Record):
    name: str
    email: str
    phone: str = ""
    position_applied: str
    department: str
    experience_years: float = Field(default=0, ge=0)
    status: CandidateStatus
    applied_date: date
    resume_url: str | None = None
    skills: list[str] = Field(default_factory=list)
    expected_salary: Money = Decimal("0")
    interview_date: date | None = None
    interviewer: str | None = None
    notes: str = ""


class Goal(BaseModel):
    title: str
    description: str = ""
    target_date: date
    status: GoalStatus
    score: Rating = 0


class Performance(Record):
    employee_id: int
    employee_name: str
    review_period: str
    goals: list[Goal] = Field(default_factory=list)
    overall_rating: Rating
    technical_skills: Rating
    communication: Rating
    teamwork: Rating
    leadership: Rating
    manager_feedback: str = ""
    employee_feedback: str = ""
    reviewed_by: int
    review_date: date


class Participant(BaseModel):
    employee_id: int
    employee_name: str
    enrollment_date: date
    status: ParticipantStatus


class Training(Record):
    title: str
    description: str = ""
    category: str
    instructor: str
    start_date: date
    end_date: date
    duration_hours: float = Field(ge=0)
    max_participants: int = Field(ge=0)
    location: str = ""
    status: TrainingStatus
    participants: list[Participant] = Field(default_factory=list)
    cost_per_participant: Money = Decimal("0")
    total_cost: Money = Decimal("0")


class BenefitEntry(BaseModel):
    type: str
    provider: str
    coverage: str = ""
    monthly_premium: Money
    employee_contribution: Money
    company_contribution: Money
    status: BenefitStatus


class Benefits(Record):
    employee_id: int
    employee_name: str
    benefits: list[BenefitEntry] = Field(default_factory=list)
    total_monthly_cost: Money = Decimal("0")
    employee_total_contribution: Money = Decimal("0")
    company_total_contribution: Money = Decimal("0")


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


class AssignedTo(BaseModel):
    """Snapshot of whoever holds an Assigned asset."""

    employee_id: int | None = None
    employee_name: str | None = None
    department: str
    assigned_date: date


class Asset(Record):
    asset_code: str
    name: str
    category: str
    brand: str = ""
    model: str = ""
    serial_number: str = ""
    status: AssetStatus
    condition: AssetCondition
    purchase_date: date
    purchase_price: Money
    warranty_expiry: date | None = None
    location: str = ""
    assigned_to: AssignedTo | None = None
    supplier: str = ""
    notes: str = ""
    last_maintenance: date | None = None
    next_maintenance: date | None = None
    depreciation_rate: float = Field(default=0, ge=0, le=1)
    current_value: Money


class AssetAssignment(Record):
    asset_id: int
    asset_code: str
    asset_name: str
    employee_id: int | None = None
    employee_name: str | None = None
    department: str
    assigned_date: date
    assigned_by: int
    assigned_by_name: str
    status: AssignmentStatus
    notes: str = ""
    expected_return_date: date | None = None
    return_date: date | None = None
    return_condition: AssetCondition | None = None
    return_notes: str | None = None


class MaintenanceLog(Record):
    asset_id: int
    asset_code: str
    asset_name: str
    maintenance_type: MaintenanceType
    description: str
    scheduled_date: date
    completed_date: date | None = None
    technician: str
    cost: Money = Decimal("0")
    status: MaintenanceStatus
    notes: str = ""
    next_maintenance: date | None = None
    downtime_hours: float | None = Field(default=None, ge=0)
    parts_used: list[str] = Field(default_factory=list)
    priority: Priority


# ---------------------------------------------------------------------------
# Derived aggregates
# ---------------------------------------------------------------------------


class GroupTotal(BaseModel):
    key: str
    count: int
    total: Amount = Decimal("0")
    percentage: float = 0.0


class DashboardKPI(BaseModel):
    headcount: int
    turnover_rate: float
    pending_leaves: int
    trainings_this_month: int
    payroll_processed: Amount
    open_positions: int
    avg_performance_rating: float
    benefits_cost: Money


class AssetReport(BaseModel):
    total_assets: int
    assigned_assets: int
    available_assets: int
    under_maintenance: int
    disposed_assets: int
    total_value: Money
    original_value: Money
    upcoming_maintenance: int
    overdue_maintenance: int
    by_category: list[GroupTotal]
    by_status: list[GroupTotal]
    by_condition: list[GroupTotal]
    total_maintenance_cost: Money
    avg_maintenance_cost: Money
    total_depreciation: Amount
    depreciation_rate: float


class LeaveSummary(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    days_by_type: list[GroupTotal]


class PayrollSummary(BaseModel):
    slips: int
    total_gross_pay: Amount
    total_net_pay: Amount
    total_deductions: Amount
    inconsistent_slips: list[int]


class AttendanceSummary(BaseModel):
    total_entries: int
    present: int
    late: int
    absent: int
    attendance_rate: float
    total_overtime_hours: float
    inconsistent_entries: list[int]


class BenefitsSummary(BaseModel):
    employees_covered: int
    total_monthly_cost: Money
    company_contribution: Money
    employee_contribution: Money
    company_share: float
    unbalanced_records: list[int]


class TrainingSummary(BaseModel):
    total_trainings: int
    active_trainings: int
    total_participants: int
    total_cost: Money
    by_category: list[GroupTotal]


class PerformanceSummary(BaseModel):
    reviews: int
    avg_rating: float
    total_goals: int
    completed_goals: int
    goal_completion_rate: float
    top_performers: int


class RecruitmentSummary(BaseModel):
    total_candidates: int
    screening: int
    interviewing: int
    hired: int
    open_positions: int
    by_department: list[GroupTotal]


# ---------------------------------------------------------------------------
# Workflow outcomes
# ---------------------------------------------------------------------------


class AssignmentOutcome(BaseModel):
    """Asset and assignment as committed by an assign/return action."""

    asset: Asset
    assignment: AssetAssignment


class MaintenanceOutcome(BaseModel):
    """Maintenance log and its asset as committed by a maintenance action."""

    maintenance_log: MaintenanceLog
    asset: Asset
