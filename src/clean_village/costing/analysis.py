"""Per-job profitability: full cost breakdown and real gross margin."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from clean_village.database.models import (
    Asset,
    Expense,
    Job,
    StockLog,
    normalize_labor_config,
)
from clean_village.utils.periods import period_key

from .allocation import (
    PeriodRates,
    allocate,
    compute_period_rates,
    hourly_rate,
    qualifying_jobs,
)
from .primitives import (
    UnitCosts,
    compute_monthly_depreciation,
    compute_unit_costs,
    consumable_cost,
    ensure_records,
)


@dataclass(frozen=True)
class CostBreakdown:
    labor: float = 0.0
    consumables: float = 0.0
    depreciation: float = 0.0
    traffic: float = 0.0

    @property
    def total(self) -> float:
        return self.labor + self.consumables + self.depreciation + self.traffic

    def to_dict(self) -> dict:
        return {
            "labor": self.labor,
            "consumables": self.consumables,
            "depreciation": self.depreciation,
            "traffic": self.traffic,
            "total": self.total,
        }


@dataclass(frozen=True)
class JobAnalysis:
    job: Job
    revenue: float
    costs: CostBreakdown
    allocated_hours: float
    hourly_labor_rate: float
    hourly_depreciation_rate: float
    per_minute_traffic_rate: float

    @property
    def real_gross_margin(self) -> float:
        return self.revenue - self.costs.total


def analyze_job(job, labor_config, unit_costs, monthly_depreciation: float,
                traffic_rate: float, total_period_work_hours: float,
                default_hours: Optional[float] = None) -> JobAnalysis:
    """Cost out one job against its period's figures.

    Labor and depreciation are allocated by the job's share of the
    period's work hours; a job logged without hours is charged
    *default_hours* (``Config.DEFAULT_WORK_HOURS`` when None). Traffic is
    the job's travel minutes at *traffic_rate*. Nothing is mutated or
    persisted.
    """
    if job is None:
        raise TypeError("job is required")
    if isinstance(job, dict):
        job = Job.from_record(job)
    if default_hours is None:
        from clean_village.config import Config
        default_hours = Config.DEFAULT_WORK_HOURS

    labor_total = normalize_labor_config(labor_config).total_fixed_labor_cost
    labor_rate = hourly_rate(labor_total, total_period_work_hours)
    depreciation_rate = hourly_rate(monthly_depreciation,
                                    total_period_work_hours)
    hours = job.work_duration_hours or default_hours

    costs = CostBreakdown(
        labor=allocate(labor_rate, hours),
        consumables=consumable_cost(job, unit_costs),
        depreciation=allocate(depreciation_rate, hours),
        traffic=allocate(traffic_rate, job.travel_minutes_calculated),
    )
    return JobAnalysis(
        job=job,
        revenue=job.revenue,
        costs=costs,
        allocated_hours=hours,
        hourly_labor_rate=labor_rate,
        hourly_depreciation_rate=depreciation_rate,
        per_minute_traffic_rate=traffic_rate,
    )


@dataclass
class PeriodAnalysis:
    """Every qualifying job of a period, analysed against shared rates."""
    period: str
    rates: PeriodRates
    unit_costs: UnitCosts
    jobs: list[JobAnalysis] = field(default_factory=list)

    @property
    def total_revenue(self) -> float:
        return sum(a.revenue for a in self.jobs)

    @property
    def total_cost(self) -> float:
        return sum(a.costs.total for a in self.jobs)

    @property
    def total_margin(self) -> float:
        return sum(a.real_gross_margin for a in self.jobs)


def analyze_period(year: int, month: int, jobs: Iterable[Job],
                   expenses: Iterable[Expense], assets: Iterable[Asset],
                   stock_logs: Iterable[StockLog], labor_config,
                   unit_cost_fallback=None,
                   traffic_fallback: Optional[float] = None,
                   default_hours: Optional[float] = None) -> PeriodAnalysis:
    """Analyse every completed job of *year*/*month*, newest first.

    Unit costs, depreciation, and allocation rates are derived once and
    reused for each job.
    """
    key = period_key(year, month)
    jobs = ensure_records(jobs, Job, "jobs")
    unit_costs = compute_unit_costs(stock_logs, unit_cost_fallback)
    depreciation = compute_monthly_depreciation(assets, f"{key}-01")
    rates = compute_period_rates(key, jobs, expenses, labor_config,
                                 depreciation, traffic_fallback)

    analyses = [
        analyze_job(job, labor_config, unit_costs, depreciation,
                    rates.per_minute_traffic_rate, rates.total_work_hours,
                    default_hours)
        for job in qualifying_jobs(jobs, key)
    ]
    analyses.sort(key=lambda a: a.job.service_date, reverse=True)
    return PeriodAnalysis(period=key, rates=rates, unit_costs=unit_costs,
                          jobs=analyses)
