"""
FastAPI application serving the HR administration back end.
Provides list, workflow, report and monitoring endpoints.
"""

import logging
import os
import threading
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal

import uvicorn
from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from hr_admin import reports
from hr_admin.aggregation import asset_valuation, filter_records
from hr_admin.asset_workflow import AssetWorkflow, DepartmentTarget, EmployeeTarget
from hr_admin.config import settings
from hr_admin.data_access import RECORD_TYPES, data_access
from hr_admin.errors import (
    HRAdminError,
    InvalidStateError,
    NotFoundError,
    SourceUnavailableError,
    ValidationError,
)
from hr_admin.leave_workflow import LeaveWorkflow
from hr_admin.schemas import (
    Amount,
    Asset,
    AssetAssignment,
    AssetReport,
    AssignmentOutcome,
    AttendanceSummary,
    Benefits,
    BenefitsSummary,
    Candidate,
    DashboardKPI,
    Employee,
    Leave,
    LeaveSummary,
    MaintenanceLog,
    MaintenanceOutcome,
    Payroll,
    PayrollSummary,
    Performance,
    PerformanceSummary,
    RecruitmentSummary,
    TimeLog,
    Training,
    TrainingSummary,
)
from hr_admin.snowflake_client import snowflake_client
from hr_admin.store import RecordStore
from hr_admin.training_workflow import TrainingWorkflow

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

EMPLOYEE_SEARCH_FIELDS = ("name", "email", "emp_code", "position")
ASSET_SEARCH_FIELDS = ("name", "asset_code", "brand", "model", "serial_number")

ERROR_STATUS = {
    ValidationError: 422,
    NotFoundError: 404,
    InvalidStateError: 409,
    SourceUnavailableError: 503,
}


# ---------------------------------------------------------------------------
# Shared state
# ---------------------------------------------------------------------------

_store: RecordStore | None = None
_store_lock = threading.Lock()


def get_store() -> RecordStore:
    """Process-wide record store, seeded through the data access layer on first use."""
    global _store
    with _store_lock:
        if _store is None:
            _store = RecordStore.from_data_access(data_access)
        return _store


def get_clock() -> Callable[[], date]:
    return date.today


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class LeaveRequest(BaseModel):
    """Request model for submitting a leave."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "employee_id": 3,
                "leave_type": "Annual Leave",
                "start_date": "2024-03-10",
                "end_date": "2024-03-12",
                "reason": "Family vacation planned months ago",
            }
        }
    )

    employee_id: int
    leave_type: str
    start_date: str
    end_date: str
    reason: str = ""


class ReviewRequest(BaseModel):
    reviewer_id: int = Field(..., description="Employee id of the approving manager")


class RejectRequest(ReviewRequest):
    reason: str = ""


class AssignRequest(BaseModel):
    """Assign to exactly one of an employee or a department."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "employee_id": 3,
                "assigned_date": "2024-03-01",
                "reviewer_id": 8,
                "notes": "Replacement laptop",
            }
        }
    )

    employee_id: int | None = None
    department: str | None = None
    assigned_date: str
    reviewer_id: int
    notes: str | None = None
    expected_return_date: str | None = None


class ReturnRequest(BaseModel):
    return_date: str
    condition: str
    notes: str | None = None


class MaintenanceRequest(BaseModel):
    maintenance_type: str
    description: str = ""
    scheduled_date: str
    priority: str
    technician: str | None = None
    estimated_cost: Decimal | None = None
    notes: str | None = None
    parts_used: list[str] | None = None


class CompleteMaintenanceRequest(BaseModel):
    completed_date: str
    cost: Decimal
    downtime_hours: float | None = None
    next_maintenance_date: str | None = None


class CancelMaintenanceRequest(BaseModel):
    reason: str | None = None


class FailMaintenanceRequest(BaseModel):
    notes: str | None = None


class EnrollmentRequest(BaseModel):
    employee_id: int
    enrollment_date: str | None = None


class WithdrawalRequest(BaseModel):
    employee_id: int


class AssetDetail(BaseModel):
    asset: Asset
    assignments: list[AssetAssignment]
    maintenance_logs: list[MaintenanceLog]


class AssetValuation(BaseModel):
    asset_id: int
    as_of: date
    purchase_price: Amount
    depreciation_rate: float
    stored_value: Amount
    computed_value: Amount


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    environment: str
    snowflake_circuit_breaker: dict


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Starting HR Admin API")
    logger.info(f"Environment: {settings.environment}")

    get_store()

    yield

    logger.info("Shutting down HR Admin API")
    snowflake_client.close()


app = FastAPI(
    title="HR Admin API",
    description="Employee, leave, payroll and asset administration",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HRAdminError)
async def hr_admin_error_handler(request: Request, exc: HRAdminError):
    """Map domain errors onto HTTP status codes."""
    status_code = next(
        (code for error, code in ERROR_STATUS.items() if isinstance(exc, error)),
        500,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {"message": "HR Admin API", "version": API_VERSION, "docs": "/docs"}


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Returns service status and circuit breaker state.
    """
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        snowflake_circuit_breaker=snowflake_client.get_circuit_breaker_state(),
    )


@app.get("/ready")
def ready():
    return {"status": "ready"}


@app.get("/metrics", tags=["Monitoring"])
def metrics(store: RecordStore = Depends(get_store)):
    """Circuit breaker state and record counts per collection."""
    return {
        "circuit_breaker": snowflake_client.get_circuit_breaker_state(),
        "records": {kind: len(store.all(kind)) for kind in RECORD_TYPES},
        "data_source": "fixtures" if snowflake_client.use_mock else "snowflake",
        "environment": settings.environment,
    }


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


@app.get("/employees", response_model=list[Employee], tags=["Employees"])
def list_employees(
    search: str | None = None,
    department: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    store: RecordStore = Depends(get_store),
):
    return filter_records(
        store.all("employees"),
        search=search,
        search_fields=EMPLOYEE_SEARCH_FIELDS,
        department=department,
        status=status_filter,
    )


@app.get("/employees/{employee_id}", response_model=Employee, tags=["Employees"])
def get_employee(employee_id: int, store: RecordStore = Depends(get_store)):
    return store.require("employees", employee_id)


@app.get("/leaves", response_model=list[Leave], tags=["Leaves"])
def list_leaves(
    status_filter: str | None = Query(None, alias="status"),
    store: RecordStore = Depends(get_store),
):
    return filter_records(store.all("leaves"), status=status_filter)


@app.get("/time-logs", response_model=list[TimeLog], tags=["Attendance"])
def list_time_logs(store: RecordStore = Depends(get_store)):
    return store.all("time_logs")


@app.get("/payroll", response_model=list[Payroll], tags=["Payroll"])
def list_payroll(store: RecordStore = Depends(get_store)):
    return store.all("payroll")


@app.get("/candidates", response_model=list[Candidate], tags=["Recruitment"])
def list_candidates(store: RecordStore = Depends(get_store)):
    return store.all("candidates")


@app.get("/performance", response_model=list[Performance], tags=["Performance"])
def list_performance(store: RecordStore = Depends(get_store)):
    return store.all("performance")


@app.get("/trainings", response_model=list[Training], tags=["Training"])
def list_trainings(store: RecordStore = Depends(get_store)):
    return store.all("trainings")


@app.get("/benefits", response_model=list[Benefits], tags=["Benefits"])
def list_benefits(store: RecordStore = Depends(get_store)):
    return store.all("benefits")


@app.get("/assets", response_model=list[Asset], tags=["Assets"])
def list_assets(
    search: str | None = None,
    category: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    condition: str | None = None,
    store: RecordStore = Depends(get_store),
):
    return filter_records(
        store.all("assets"),
        search=search,
        search_fields=ASSET_SEARCH_FIELDS,
        category=category,
        status=status_filter,
        condition=condition,
    )


@app.get("/assets/{asset_id}", response_model=AssetDetail, tags=["Assets"])
def get_asset(asset_id: int, store: RecordStore = Depends(get_store)):
    """Asset with its assignment and maintenance history."""
    asset = store.require("assets", asset_id)
    return AssetDetail(
        asset=asset,
        assignments=[a for a in store.all("asset_assignments") if a.asset_id == asset_id],
        maintenance_logs=[m for m in store.all("maintenance_logs") if m.asset_id == asset_id],
    )


@app.get("/assets/{asset_id}/valuation", response_model=AssetValuation, tags=["Assets"])
def get_asset_valuation(
    asset_id: int,
    store: RecordStore = Depends(get_store),
    clock: Callable[[], date] = Depends(get_clock),
):
    """Stored current value next to the declining-balance value as of today."""
    asset = store.require("assets", asset_id)
    today = clock()
    return AssetValuation(
        asset_id=asset.id,
        as_of=today,
        purchase_price=asset.purchase_price,
        depreciation_rate=asset.depreciation_rate,
        stored_value=asset.current_value,
        computed_value=asset_valuation(asset, today),
    )


@app.get("/asset-assignments", response_model=list[AssetAssignment], tags=["Assets"])
def list_asset_assignments(store: RecordStore = Depends(get_store)):
    return store.all("asset_assignments")


@app.get("/maintenance-logs", response_model=list[MaintenanceLog], tags=["Assets"])
def list_maintenance_logs(store: RecordStore = Depends(get_store)):
    return store.all("maintenance_logs")


# ---------------------------------------------------------------------------
# Leave workflow
# ---------------------------------------------------------------------------


@app.post(
    "/leaves", response_model=Leave, status_code=status.HTTP_201_CREATED, tags=["Leaves"]
)
def submit_leave(
    request: LeaveRequest,
    store: RecordStore = Depends(get_store),
    clock: Callable[[], date] = Depends(get_clock),
):
    return LeaveWorkflow(store, clock).submit(
        request.employee_id,
        request.leave_type,
        request.start_date,
        request.end_date,
        request.reason,
    )


@app.post("/leaves/{leave_id}/approve", response_model=Leave, tags=["Leaves"])
def approve_leave(
    leave_id: int,
    request: ReviewRequest,
    store: RecordStore = Depends(get_store),
    clock: Callable[[], date] = Depends(get_clock),
):
    return LeaveWorkflow(store, clock).approve(leave_id, request.reviewer_id)


@app.post("/leaves/{leave_id}/reject", response_model=Leave, tags=["Leaves"])
def reject_leave(
    leave_id: int,
    request: RejectRequest,
    store: RecordStore = Depends(get_store),
    clock: Callable[[], date] = Depends(get_clock),
):
    return LeaveWorkflow(store, clock).reject(leave_id, request.reviewer_id, request.reason)


# ---------------------------------------------------------------------------
# Asset workflow
# ---------------------------------------------------------------------------


@app.post("/assets/{asset_id}/assign", response_model=AssignmentOutcome, tags=["Assets"])
def assign_asset(
    asset_id: int, request: AssignRequest, store: RecordStore = Depends(get_store)
):
    if (request.employee_id is None) == (request.department is None):
        raise ValidationError("Provide exactly one of employee_id or department")

    target = (
        EmployeeTarget(request.employee_id)
        if request.employee_id is not None
        else DepartmentTarget(request.department)
    )
    return AssetWorkflow(store).assign(
        asset_id,
        target,
        request.assigned_date,
        request.reviewer_id,
        notes=request.notes,
        expected_return_date=request.expected_return_date,
    )


@app.post(
    "/asset-assignments/{assignment_id}/return",
    response_model=AssignmentOutcome,
    tags=["Assets"],
)
def return_asset(
    assignment_id: int, request: ReturnRequest, store: RecordStore = Depends(get_store)
):
    return AssetWorkflow(store).return_asset(
        assignment_id, request.return_date, request.condition, notes=request.notes
    )


@app.post(
    "/assets/{asset_id}/maintenance",
    response_model=MaintenanceOutcome,
    status_code=status.HTTP_201_CREATED,
    tags=["Maintenance"],
)
def schedule_maintenance(
    asset_id: int, request: MaintenanceRequest, store: RecordStore = Depends(get_store)
):
    return AssetWorkflow(store).schedule_maintenance(
        asset_id,
        request.maintenance_type,
        request.description,
        request.scheduled_date,
        request.priority,
        technician=request.technician,
        estimated_cost=request.estimated_cost,
        notes=request.notes,
        parts_used=request.parts_used,
    )


@app.post(
    "/maintenance-logs/{log_id}/start", response_model=MaintenanceOutcome, tags=["Maintenance"]
)
def start_maintenance(log_id: int, store: RecordStore = Depends(get_store)):
    return AssetWorkflow(store).start_maintenance(log_id)


@app.post(
    "/maintenance-logs/{log_id}/complete",
    response_model=MaintenanceOutcome,
    tags=["Maintenance"],
)
def complete_maintenance(
    log_id: int, request: CompleteMaintenanceRequest, store: RecordStore = Depends(get_store)
):
    return AssetWorkflow(store).complete_maintenance(
        log_id,
        request.completed_date,
        request.cost,
        downtime_hours=request.downtime_hours,
        next_maintenance_date=request.next_maintenance_date,
    )


@app.post(
    "/maintenance-logs/{log_id}/cancel", response_model=MaintenanceOutcome, tags=["Maintenance"]
)
def cancel_maintenance(
    log_id: int, request: CancelMaintenanceRequest, store: RecordStore = Depends(get_store)
):
    return AssetWorkflow(store).cancel_maintenance(log_id, reason=request.reason)


@app.post(
    "/maintenance-logs/{log_id}/fail", response_model=MaintenanceOutcome, tags=["Maintenance"]
)
def fail_maintenance(
    log_id: int, request: FailMaintenanceRequest, store: RecordStore = Depends(get_store)
):
    return AssetWorkflow(store).fail_maintenance(log_id, notes=request.notes)


# ---------------------------------------------------------------------------
# Training workflow
# ---------------------------------------------------------------------------


@app.post("/trainings/{training_id}/enroll", response_model=Training, tags=["Training"])
def enroll_in_training(
    training_id: int,
    request: EnrollmentRequest,
    store: RecordStore = Depends(get_store),
    clock: Callable[[], date] = Depends(get_clock),
):
    return TrainingWorkflow(store, clock).enroll(
        training_id, request.employee_id, request.enrollment_date
    )


@app.post("/trainings/{training_id}/withdraw", response_model=Training, tags=["Training"])
def withdraw_from_training(
    training_id: int, request: WithdrawalRequest, store: RecordStore = Depends(get_store)
):
    return TrainingWorkflow(store).withdraw(training_id, request.employee_id)


# ---------------------------------------------------------------------------
# Dashboard and reports
# ---------------------------------------------------------------------------


@app.get("/dashboard/kpis", response_model=DashboardKPI, tags=["Reports"])
def dashboard_kpis(store: RecordStore = Depends(get_store)):
    data = store.snapshot()
    return reports.dashboard_kpis(
        data["employees"],
        data["leaves"],
        data["trainings"],
        data["payroll"],
        data["candidates"],
        data["performance"],
        data["benefits"],
    )


@app.get("/reports/assets", response_model=AssetReport, tags=["Reports"])
def asset_report(
    window_days: int | None = None,
    store: RecordStore = Depends(get_store),
    clock: Callable[[], date] = Depends(get_clock),
):
    data = store.snapshot()
    return reports.asset_report(
        data["assets"], data["maintenance_logs"], today=clock(), window_days=window_days
    )


@app.get("/reports/leaves", response_model=LeaveSummary, tags=["Reports"])
def leave_report(store: RecordStore = Depends(get_store)):
    return reports.leave_summary(store.all("leaves"))


@app.get("/reports/payroll", response_model=PayrollSummary, tags=["Reports"])
def payroll_report(store: RecordStore = Depends(get_store)):
    return reports.payroll_summary(store.all("payroll"))


@app.get("/reports/attendance", response_model=AttendanceSummary, tags=["Reports"])
def attendance_report(store: RecordStore = Depends(get_store)):
    return reports.attendance_summary(store.all("time_logs"))


@app.get("/reports/benefits", response_model=BenefitsSummary, tags=["Reports"])
def benefits_report(store: RecordStore = Depends(get_store)):
    return reports.benefits_summary(store.all("benefits"))


@app.get("/reports/trainings", response_model=TrainingSummary, tags=["Reports"])
def training_report(store: RecordStore = Depends(get_store)):
    return reports.training_summary(store.all("trainings"))


@app.get("/reports/performance", response_model=PerformanceSummary, tags=["Reports"])
def performance_report(store: RecordStore = Depends(get_store)):
    return reports.performance_summary(store.all("performance"))


@app.get("/reports/recruitment", response_model=RecruitmentSummary, tags=["Reports"])
def recruitment_report(store: RecordStore = Depends(get_store)):
    return reports.recruitment_summary(store.all("candidates"))


if __name__ == "__main__":
    uvicorn.run(
        "hr_admin.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8080)),
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
