"""Allocation of period-level costs onto individual jobs.

Two allocation bases:

* work hours carry fixed labor and depreciation
  (``hourly rate = period total / total hours``);
* travel minutes carry fuel (``per-minute rate = fuel / total minutes``).

Rates are computed once per period into a ``PeriodRates`` and the same
object is applied to every job of that period.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from clean_village.database.models import Expense, Job, normalize_labor_config
from clean_village.utils.constants import FUEL_CATEGORY
from clean_village.utils.periods import in_period

from .primitives import ensure_records

logger = logging.getLogger(__name__)


def hourly_rate(period_total: float, total_hours: float) -> float:
    """Period cost per work hour; 0 when no hours were worked."""
    if total_hours > 0:
        return period_total / total_hours
    return 0.0


def allocate(rate: float, base: float) -> float:
    """A job's share: *rate* times its hours or minutes."""
    return rate * (base or 0.0)


def qualifying_jobs(jobs: Iterable[Job], key: str) -> list[Job]:
    """Completed jobs serviced within period *key*, in input order."""
    return [
        j for j in ensure_records(jobs, Job, "jobs")
        if j.is_completed and in_period(j.service_date, key)
    ]


def total_work_hours(jobs: Iterable[Job]) -> float:
    return sum((j.work_duration_hours or 0.0) for j in jobs)


def total_travel_minutes(jobs: Iterable[Job]) -> float:
    return sum((j.travel_minutes_calculated or 0.0) for j in jobs)


def fuel_total(expenses: Iterable[Expense], key: str) -> float:
    """Fuel expenses dated within period *key*."""
    return sum(
        e.amount for e in ensure_records(expenses, Expense, "expenses")
        if e.category == FUEL_CATEGORY and in_period(e.date, key)
    )


def _traffic_fallback(fallback: Optional[float]) -> float:
    if fallback is None:
        from clean_village.config import Config
        return Config.TRAFFIC_FALLBACK_RATE
    return fallback


def compute_traffic_rate(expenses: Iterable[Expense], jobs: Iterable[Job],
                         period: str,
                         fallback: Optional[float] = None) -> float:
    """Fuel cost per travel minute for *period*.

    With no travel minutes recorded the configured fallback rate is
    returned instead of 0.
    """
    expenses = ensure_records(expenses, Expense, "expenses")
    minutes = total_travel_minutes(qualifying_jobs(jobs, period))
    if minutes > 0:
        return fuel_total(expenses, period) / minutes
    rate = _traffic_fallback(fallback)
    logger.debug(f"No travel minutes in {period}; traffic rate {rate}/min")
    return rate


@dataclass(frozen=True)
class PeriodRates:
    """Allocation rates for one period, shared by all its jobs."""
    period: str
    total_work_hours: float
    total_travel_minutes: float
    fixed_labor_cost: float
    monthly_depreciation: float
    hourly_labor_rate: float
    hourly_depreciation_rate: float
    per_minute_traffic_rate: float


def compute_period_rates(period: str, jobs: Iterable[Job],
                         expenses: Iterable[Expense], labor_config,
                         monthly_depreciation: float,
                         traffic_fallback: Optional[float] = None
                         ) -> PeriodRates:
    """Derive every allocation rate for *period* in one pass."""
    jobs = ensure_records(jobs, Job, "jobs")
    period_jobs = qualifying_jobs(jobs, period)
    hours = total_work_hours(period_jobs)
    labor = normalize_labor_config(labor_config).total_fixed_labor_cost
    return PeriodRates(
        period=period,
        total_work_hours=hours,
        total_travel_minutes=total_travel_minutes(period_jobs),
        fixed_labor_cost=labor,
        monthly_depreciation=monthly_depreciation,
        hourly_labor_rate=hourly_rate(labor, hours),
        hourly_depreciation_rate=hourly_rate(monthly_depreciation, hours),
        per_minute_traffic_rate=compute_traffic_rate(
            expenses, jobs, period, traffic_fallback
        ),
    )
