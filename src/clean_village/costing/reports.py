"""Monthly profit and loss report, plus tabular rows for analysed jobs."""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from clean_village.database.models import (
    AppSettings,
    Asset,
    Expense,
    Job,
    StockLog,
    is_labor_only,
    normalize_labor_config,
)
from clean_village.utils.periods import in_period, period_key

from .allocation import qualifying_jobs
from .analysis import PeriodAnalysis
from .primitives import (
    compute_monthly_depreciation,
    compute_unit_costs,
    consumable_cost,
    ensure_records,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportCosts:
    labor: float
    consumables_actual: float
    depreciation: float
    overhead: float

    @property
    def total(self) -> float:
        return (self.labor + self.consumables_actual + self.depreciation
                + self.overhead)


@dataclass
class MonthlyReport:
    month: str
    revenue: float
    costs: ReportCosts
    job_count: int = 0
    overhead_by_category: dict = field(default_factory=dict)
    cashflow_only_total: float = 0.0
    unit_costs_actual: bool = False

    @property
    def net_profit(self) -> float:
        return self.revenue - self.costs.total

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "revenue": self.revenue,
            "costs": {
                "labor": self.costs.labor,
                "consumables_actual": self.costs.consumables_actual,
                "depreciation": self.costs.depreciation,
                "overhead": self.costs.overhead,
                "total": self.costs.total,
            },
            "net_profit": self.net_profit,
        }


def generate_monthly_report(year: int, month: int, jobs: Iterable[Job],
                            expenses: Iterable[Expense],
                            assets: Iterable[Asset],
                            stock_logs: Iterable[StockLog], settings,
                            unit_cost_fallback=None) -> MonthlyReport:
    """Profit and loss for one calendar month.

    Labor is the period's fixed labor total, not a per-job allocation;
    for settings that is ``monthly_salary``. A settings dict is read as
    AppSettings so its consumable fallbacks apply too.
    Overhead sums every expense dated in the month except cashflow-only
    ones; expenses with an unrecognised category still count toward the
    overhead total and appear under "other" in the breakdown. Sums run in
    input order.
    """
    key = period_key(year, month)
    if settings is None:
        raise TypeError("settings are required")
    expenses = ensure_records(expenses, Expense, "expenses")
    if isinstance(settings, dict) and not is_labor_only(settings):
        settings = AppSettings.from_dict(settings)
    if unit_cost_fallback is None and isinstance(settings, AppSettings):
        unit_cost_fallback = settings.consumable_fallbacks()

    period_jobs = qualifying_jobs(jobs, key)
    unit_costs = compute_unit_costs(stock_logs, unit_cost_fallback)

    revenue = 0.0
    consumables = 0.0
    for job in period_jobs:
        revenue += job.revenue
        consumables += consumable_cost(job, unit_costs)

    overhead = 0.0
    cashflow_only = 0.0
    by_category: dict[str, float] = {}
    for expense in expenses:
        if not in_period(expense.date, key):
            continue
        if expense.is_cashflow_only:
            cashflow_only += expense.amount
            continue
        overhead += expense.amount
        category = expense.report_category
        by_category[category] = by_category.get(category, 0.0) + expense.amount

    costs = ReportCosts(
        labor=normalize_labor_config(settings).total_fixed_labor_cost,
        consumables_actual=consumables,
        depreciation=compute_monthly_depreciation(assets, f"{key}-01"),
        overhead=overhead,
    )
    report = MonthlyReport(
        month=key,
        revenue=revenue,
        costs=costs,
        job_count=len(period_jobs),
        overhead_by_category=by_category,
        cashflow_only_total=cashflow_only,
        unit_costs_actual=unit_costs.is_using_actual,
    )
    logger.debug(f"Monthly report {key}: revenue {revenue}, "
                 f"net {report.net_profit}")
    return report


JOB_ANALYSIS_HEADERS = [
    "Date", "Job Number", "Customer", "Revenue", "Labor", "Consumables",
    "Depreciation", "Traffic", "Total Cost", "Real Margin",
]

MONTHLY_REPORT_HEADERS = ["Item", "Amount"]


def job_analysis_rows(analysis: PeriodAnalysis) -> list[list]:
    """One row per analysed job, amounts rounded to whole currency units."""
    rows = []
    for item in analysis.jobs:
        job = item.job
        rows.append([
            job.service_date,
            job.job_number,
            job.contact_person or job.customer_name,
            round(item.revenue),
            round(item.costs.labor),
            round(item.costs.consumables),
            round(item.costs.depreciation),
            round(item.costs.traffic),
            round(item.costs.total),
            round(item.real_gross_margin),
        ])
    return rows


def monthly_report_rows(report: MonthlyReport) -> list[list]:
    """Line items of *report*, overhead broken down by category."""
    rows = [
        ["Month", report.month],
        ["Completed jobs", report.job_count],
        ["Revenue", round(report.revenue)],
        ["Labor", round(report.costs.labor)],
        ["Consumables", round(report.costs.consumables_actual)],
        ["Depreciation", round(report.costs.depreciation)],
        ["Overhead", round(report.costs.overhead)],
    ]
    for category, amount in sorted(report.overhead_by_category.items()):
        rows.append([f"  {category}", round(amount)])
    rows += [
        ["Total cost", round(report.costs.total)],
        ["Net profit", round(report.net_profit)],
        ["Cashflow only (excluded)", round(report.cashflow_only_total)],
    ]
    return rows
