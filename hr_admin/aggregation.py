"""
Aggregation primitives.

Pure functions over in-memory record collections. Nothing here caches or
mutates; every KPI is recomputed from the records it is handed.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from hr_admin.config import settings
from hr_admin.schemas import (
    Allowances,
    Asset,
    BenefitEntry,
    Benefits,
    BenefitStatus,
    Deductions,
    GroupTotal,
    Payroll,
)

CENT = Decimal("0.01")
DAYS_PER_YEAR = Decimal("365.25")

# Filter value meaning "do not filter on this field"
ANY = "all"


def _field(record: Any, name: str) -> Any:
    value = getattr(record, name)
    # str Enums compare and display by value
    return getattr(value, "value", value)


# ---------------------------------------------------------------------------
# Counting and filtering
# ---------------------------------------------------------------------------


def count_where(records: Iterable[Any], predicate: Callable[[Any], bool]) -> int:
    return sum(1 for record in records if predicate(record))


def matches_search(record: Any, term: str | None, fields: Sequence[str]) -> bool:
    """Case-insensitive substring match of ``term`` against any of ``fields``."""
    if not term:
        return True
    needle = term.lower()
    return any(needle in str(_field(record, name) or "").lower() for name in fields)


def filter_records(
    records: Iterable[Any],
    search: str | None = None,
    search_fields: Sequence[str] = (),
    **equals: Any,
) -> list[Any]:
    """
    Records matching the search term AND every equality filter.

    An equality filter whose value is ``None`` or ``"all"`` is ignored.

    >>> filter_records(assets, search="mac", search_fields=["name"], status="Available")
    """
    active = {name: _field_value(v) for name, v in equals.items() if v is not None and v != ANY}
    return [
        record
        for record in records
        if matches_search(record, search, search_fields)
        and all(_field(record, name) == value for name, value in active.items())
    ]


def _field_value(value: Any) -> Any:
    return getattr(value, "value", value)


def percentage(part: float, whole: float) -> float:
    """``part / whole * 100``; 0 when ``whole`` is 0."""
    if not whole:
        return 0.0
    return float(part) / float(whole) * 100


# ---------------------------------------------------------------------------
# Date windows
# ---------------------------------------------------------------------------


def is_upcoming(value: date | None, days: int, today: date | None = None) -> bool:
    """True iff ``today <= value <= today + days``."""
    if value is None:
        return False
    today = today or date.today()
    return today <= value <= today + timedelta(days=days)


def is_overdue(value: date | None, today: date | None = None) -> bool:
    """True iff ``value < today``."""
    if value is None:
        return False
    return value < (today or date.today())


# ---------------------------------------------------------------------------
# Grouping and sums
# ---------------------------------------------------------------------------


def group_by(
    records: Sequence[Any],
    key: str,
    value: str | None = None,
    with_percentage: bool = False,
) -> list[GroupTotal]:
    """
    Partition ``records`` on ``key``.

    Each group carries its count and, when ``value`` is given, the sum of
    that field. Groups are ordered by count descending; equal counts keep
    the order in which their key was first seen.
    """
    groups: dict[Any, list] = {}
    for record in records:
        bucket = groups.setdefault(_field(record, key), [0, Decimal("0")])
        bucket[0] += 1
        if value is not None:
            bucket[1] += _as_decimal(getattr(record, value))

    totals = [
        GroupTotal(
            key=str(group_key),
            count=count,
            total=total,
            percentage=percentage(count, len(records)) if with_percentage else 0.0,
        )
        for group_key, (count, total) in groups.items()
    ]
    return sorted(totals, key=lambda g: -g.count)


def share_by(records: Sequence[Any], key: str, categories: Iterable[Any]) -> list[GroupTotal]:
    """Count and percentage for each of ``categories``, in the given order, zeros included."""
    shares = []
    for category in categories:
        wanted = _field_value(category)
        count = count_where(records, lambda r: _field(r, key) == wanted)
        shares.append(
            GroupTotal(key=str(wanted), count=count, percentage=percentage(count, len(records)))
        )
    return shares


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def sum_field(
    records: Iterable[Any], name: str, where: Callable[[Any], bool] | None = None
) -> Decimal:
    """Exact sum of a numeric field over the records accepted by ``where``."""
    return sum(
        (_as_decimal(getattr(r, name)) for r in records if where is None or where(r)),
        Decimal("0"),
    )


def average(
    records: Iterable[Any], name: str, where: Callable[[Any], bool] | None = None
) -> Decimal:
    """Mean of a numeric field; 0 when no record matches."""
    matching = [r for r in records if where is None or where(r)]
    if not matching:
        return Decimal("0")
    return sum_field(matching, name) / len(matching)


# ---------------------------------------------------------------------------
# Depreciation
# ---------------------------------------------------------------------------


def years_elapsed(start: date, as_of: date) -> Decimal:
    return Decimal((as_of - start).days) / DAYS_PER_YEAR


def depreciated_value(
    purchase_price: Decimal, rate: float, purchase_date: date, as_of: date | None = None
) -> Decimal:
    """
    Declining-balance value: ``price * (1 - rate) ** years``.

    Rounded half-up to cents and never above the purchase price. A future
    purchase date yields the purchase price.
    """
    as_of = as_of or date.today()
    years = years_elapsed(purchase_date, as_of)
    if years <= 0:
        return purchase_price.quantize(CENT, rounding=ROUND_HALF_UP)

    remaining = Decimal(1) - Decimal(str(rate))
    if remaining <= 0:
        return Decimal("0.00")

    value = purchase_price * remaining**years
    return min(value, purchase_price).quantize(CENT, rounding=ROUND_HALF_UP)


def asset_valuation(asset: Asset, as_of: date | None = None) -> Decimal:
    return depreciated_value(
        asset.purchase_price, asset.depreciation_rate, asset.purchase_date, as_of
    )


def total_depreciation(assets: Iterable[Asset]) -> Decimal:
    """Σ purchase_price − Σ current_value over stored values."""
    assets = list(assets)
    return sum_field(assets, "purchase_price") - sum_field(assets, "current_value")


# ---------------------------------------------------------------------------
# Payroll, benefits and attendance arithmetic
# ---------------------------------------------------------------------------


def payroll_totals(
    monthly_salary: Decimal,
    overtime_hours: float,
    overtime_rate: Decimal,
    allowances: Allowances,
    deductions: Deductions,
) -> dict[str, Decimal]:
    """Derived payroll figures, in cents."""
    overtime_pay = (_as_decimal(overtime_hours) * overtime_rate).quantize(
        CENT, rounding=ROUND_HALF_UP
    )
    total_allowances = allowances.total()
    gross_pay = monthly_salary + overtime_pay + total_allowances
    total_deductions = deductions.total()
    return {
        "overtime_pay": overtime_pay,
        "total_allowances": total_allowances,
        "gross_pay": gross_pay,
        "total_deductions": total_deductions,
        "net_pay": gross_pay - total_deductions,
    }


def payroll_discrepancies(slip: Payroll) -> list[str]:
    """Names of the stored totals that disagree with the slip's components."""
    expected = payroll_totals(
        slip.monthly_salary,
        slip.overtime_hours,
        slip.overtime_rate,
        slip.allowances,
        slip.deductions,
    )
    return [name for name, value in expected.items() if getattr(slip, name) != value]


def premium_balanced(entry: BenefitEntry) -> bool:
    """Whether the premium is exactly split between employee and company."""
    return entry.monthly_premium == entry.employee_contribution + entry.company_contribution


def benefit_totals(record: Benefits) -> dict[str, Decimal]:
    """Monthly totals over Active benefit entries only."""
    active = [b for b in record.benefits if b.status == BenefitStatus.ACTIVE]
    return {
        "total_monthly_cost": sum_field(active, "monthly_premium"),
        "employee_total_contribution": sum_field(active, "employee_contribution"),
        "company_total_contribution": sum_field(active, "company_contribution"),
    }


def overtime_hours(total_hours: float, threshold: float | None = None) -> float:
    """Portion of ``total_hours`` beyond the standard day, exact to the logged digits."""
    threshold = settings.standard_work_hours if threshold is None else threshold
    excess = _as_decimal(total_hours) - _as_decimal(threshold)
    return float(max(Decimal("0"), excess))
