"""Tests for period rates and the traffic (fuel) rate."""

import pytest

from clean_village.config import Config
from clean_village.costing.allocation import (
    allocate,
    compute_period_rates,
    compute_traffic_rate,
    fuel_total,
    hourly_rate,
    qualifying_jobs,
)
from clean_village.database.models import Expense, Job, LaborConfig


def _job(service_date="2024-03-05", status="completed", hours=2.0,
         minutes=30.0, **kw):
    return Job(status=status, service_date=service_date,
               work_duration_hours=hours, travel_minutes_calculated=minutes,
               **kw)


@pytest.fixture
def march_jobs():
    return [
        _job("2024-03-05", hours=2, minutes=30),
        _job("2024-03-20", hours=38, minutes=270),
        _job("2024-03-22", status="pending", hours=5, minutes=60),
        _job("2024-04-01", hours=4, minutes=40),
    ]


@pytest.fixture
def march_expenses():
    return [
        Expense(date="2024-03-03", category="fuel", amount=120),
        Expense(date="2024-03-25", category="fuel", amount=80),
        Expense(date="2024-03-25", category="insurance", amount=5000),
        Expense(date="2024-02-28", category="fuel", amount=999),
    ]


class TestRateHelpers:
    def test_hourly_rate(self):
        assert hourly_rate(72000, 40) == 1800

    def test_hourly_rate_zero_hours(self):
        assert hourly_rate(72000, 0) == 0.0

    def test_allocate_missing_base(self):
        assert allocate(1800, None) == 0.0


class TestQualifyingJobs:
    def test_completed_in_period_only(self, march_jobs):
        jobs = qualifying_jobs(march_jobs, "2024-03")
        assert [j.service_date for j in jobs] == ["2024-03-05", "2024-03-20"]

    def test_prefix_match_rejects_other_date_formats(self):
        assert qualifying_jobs([_job("2024/03/05")], "2024-03") == []

    def test_legacy_status_label_counts(self):
        assert len(qualifying_jobs([_job(status="COMPLETED")], "2024-03")) == 1


class TestTrafficRate:
    def test_fuel_per_travel_minute(self, march_expenses, march_jobs):
        rate = compute_traffic_rate(march_expenses, march_jobs, "2024-03")
        assert rate == pytest.approx(200 / 300)

    def test_no_minutes_uses_configured_fallback(self, march_expenses):
        rate = compute_traffic_rate(march_expenses, [], "2024-03")
        assert rate == Config.TRAFFIC_FALLBACK_RATE

    def test_explicit_fallback(self, march_expenses):
        assert compute_traffic_rate(march_expenses, [], "2024-03", 7.5) == 7.5

    def test_fuel_total_filters_category_and_month(self, march_expenses):
        assert fuel_total(march_expenses, "2024-03") == 200

    def test_none_expenses_raise(self, march_jobs):
        with pytest.raises(TypeError):
            compute_traffic_rate(None, march_jobs, "2024-03")

    def test_none_expenses_raise_without_travel(self):
        with pytest.raises(TypeError):
            compute_traffic_rate(None, [], "2024-03")


class TestPeriodRates:
    def test_rates(self, march_jobs, march_expenses):
        rates = compute_period_rates(
            "2024-03", march_jobs, march_expenses,
            LaborConfig(boss_salary=40000, partner_salary=30000,
                        insurance_cost=2000),
            monthly_depreciation=500,
        )
        assert rates.total_work_hours == 40
        assert rates.total_travel_minutes == 300
        assert rates.fixed_labor_cost == 72000
        assert rates.hourly_labor_rate == pytest.approx(1800)
        assert rates.hourly_depreciation_rate == pytest.approx(12.5)
        assert rates.per_minute_traffic_rate == pytest.approx(200 / 300)

    def test_rates_are_reproducible(self, march_jobs, march_expenses):
        first = compute_period_rates("2024-03", march_jobs, march_expenses,
                                     72000, 500)
        second = compute_period_rates("2024-03", march_jobs, march_expenses,
                                      72000, 500)
        assert first == second

    def test_empty_period(self, march_expenses):
        rates = compute_period_rates("2024-03", [], march_expenses, 72000, 500)
        assert rates.hourly_labor_rate == 0.0
        assert rates.hourly_depreciation_rate == 0.0
        assert rates.per_minute_traffic_rate == Config.TRAFFIC_FALLBACK_RATE
