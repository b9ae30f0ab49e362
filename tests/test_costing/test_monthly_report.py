"""Tests for the monthly profit and loss report."""

import pytest

from clean_village.costing.reports import generate_monthly_report
from clean_village.database.models import (
    AppSettings,
    Asset,
    Expense,
    Job,
    LaborConfig,
    StockLog,
)


@pytest.fixture
def jobs():
    return [
        Job(id=1, status="completed", service_date="2024-03-05",
            work_duration_hours=2, travel_minutes_calculated=30,
            citric_acid=1, chemical=0, total_amount=3000),
        Job(id=2, status="completed", service_date="2024-03-20",
            work_duration_hours=38, travel_minutes_calculated=270,
            total_paid=9000),
        Job(id=3, status="pending", service_date="2024-03-25",
            total_amount=5000, citric_acid=4),
        Job(id=4, status="cancelled", service_date="2024-03-26",
            total_amount=5000),
        Job(id=5, status="completed", service_date="2024-04-02",
            total_amount=7000),
    ]


@pytest.fixture
def expenses():
    return [
        Expense(id=1, date="2024-03-10", category="fuel", amount=200),
        Expense(id=2, date="2024-03-01", category="insurance", amount=1000),
        Expense(id=3, date="2024-03-15", category="parking", amount=300),
        Expense(id=4, date="2024-03-28", category="other", amount=5000,
                note="Owner draw", cashflow_only=1),
        Expense(id=5, date="2024-04-01", category="utilities", amount=800),
    ]


@pytest.fixture
def assets():
    return [Asset(name="Kit", purchase_date="2024-01-01", cost=6000,
                  lifespan_months=12)]


@pytest.fixture
def stock_logs():
    return [StockLog(item_type="citric", quantity=1, total_cost=600,
                     yield_per_unit=10)]


@pytest.fixture
def settings():
    return AppSettings(monthly_salary=60000)


def _report(jobs, expenses, assets, stock_logs, settings, **kw):
    return generate_monthly_report(2024, 3, jobs, expenses, assets,
                                   stock_logs, settings, **kw)


class TestMonthlyReport:
    def test_scenario(self, jobs, expenses, assets, stock_logs, settings):
        report = _report(jobs, expenses, assets, stock_logs, settings)
        assert report.month == "2024-03"
        assert report.job_count == 2
        assert report.revenue == 12000
        assert report.costs.labor == 60000
        assert report.costs.consumables_actual == pytest.approx(60)
        assert report.costs.depreciation == pytest.approx(500)
        assert report.costs.overhead == pytest.approx(1500)
        assert report.costs.total == pytest.approx(62060)
        assert report.net_profit == pytest.approx(-50060)

    def test_unknown_category_counts_as_other(self, jobs, expenses, assets,
                                              stock_logs, settings):
        report = _report(jobs, expenses, assets, stock_logs, settings)
        assert report.overhead_by_category == {
            "fuel": 200, "insurance": 1000, "other": 300,
        }
        assert sum(report.overhead_by_category.values()) == \
            report.costs.overhead

    def test_cashflow_only_tracked_separately(self, jobs, expenses, assets,
                                              stock_logs, settings):
        report = _report(jobs, expenses, assets, stock_logs, settings)
        assert report.cashflow_only_total == 5000

    def test_monthly_salary_is_report_labor(self, jobs, expenses, assets,
                                            stock_logs):
        settings = AppSettings(monthly_salary=60000,
                               labor_breakdown={"boss_salary": 40000,
                                                "partner_salary": 35000})
        report = _report(jobs, expenses, assets, stock_logs, settings)
        assert report.costs.labor == 60000

    def test_labor_config_accepted(self, jobs, expenses, assets, stock_logs):
        labor = LaborConfig(boss_salary=40000, partner_salary=30000,
                            insurance_cost=2000)
        report = _report(jobs, expenses, assets, stock_logs, labor)
        assert report.costs.labor == 72000

    def test_settings_consumable_fallbacks(self, jobs, expenses, assets):
        settings = AppSettings(consumables={
            "citric_cost_per_can": 80,
            "chemical_drum_cost": 3000,
            "chemical_drum_to_bottles": 20,
        })
        report = _report(jobs, expenses, assets, [], settings)
        assert report.costs.consumables_actual == pytest.approx(80)
        assert report.unit_costs_actual is False

    def test_settings_dict_matches_app_settings(self, jobs, expenses,
                                                assets):
        raw = {
            "monthlySalary": 65000,
            "consumables": {"citricCostPerCan": 80,
                            "chemicalDrumCost": 3000,
                            "chemicalDrumToBottles": 20},
        }
        from_dict = _report(jobs, expenses, assets, [], raw)
        from_object = _report(jobs, expenses, assets, [],
                              AppSettings.from_dict(raw))
        assert from_dict.costs.consumables_actual == pytest.approx(80)
        assert from_dict.costs.labor == 65000
        assert from_dict.to_dict() == from_object.to_dict()

    def test_input_order_does_not_change_result(self, jobs, expenses, assets,
                                                stock_logs, settings):
        forward = _report(jobs, expenses, assets, stock_logs, settings)
        backward = _report(list(reversed(jobs)), list(reversed(expenses)),
                           assets, stock_logs, settings)
        assert forward.to_dict() == backward.to_dict()

    def test_to_dict_shape(self, jobs, expenses, assets, stock_logs,
                           settings):
        data = _report(jobs, expenses, assets, stock_logs, settings).to_dict()
        assert set(data) == {"month", "revenue", "costs", "net_profit"}
        assert set(data["costs"]) == {
            "labor", "consumables_actual", "depreciation", "overhead",
            "total",
        }


class TestCashflowExclusion:
    def test_cashflow_only_expense_has_no_effect(self, jobs, expenses, assets,
                                                 stock_logs, settings):
        with_draw = _report(jobs, expenses, assets, stock_logs, settings)
        without = _report(jobs, [e for e in expenses if e.id != 4], assets,
                          stock_logs, settings)
        assert with_draw.costs.overhead == without.costs.overhead
        assert with_draw.net_profit == without.net_profit

    def test_regular_expense_changes_overhead_by_its_amount(
            self, jobs, expenses, assets, stock_logs, settings):
        full = _report(jobs, expenses, assets, stock_logs, settings)
        without = _report(jobs, [e for e in expenses if e.id != 2], assets,
                          stock_logs, settings)
        assert full.costs.overhead - without.costs.overhead == \
            pytest.approx(1000)
        assert without.net_profit - full.net_profit == pytest.approx(1000)

    def test_camel_case_flag_is_honoured(self, jobs, assets, stock_logs,
                                         settings):
        raw = [{"date": "2024-03-02", "category": "other", "amount": 900,
                "cashflowOnly": True}]
        report = _report(jobs, raw, assets, stock_logs, settings)
        assert report.costs.overhead == 0


class TestReportArguments:
    def test_invalid_month(self, jobs, expenses, assets, stock_logs,
                           settings):
        with pytest.raises(ValueError):
            generate_monthly_report(2024, 13, jobs, expenses, assets,
                                    stock_logs, settings)

    def test_missing_settings(self, jobs, expenses, assets, stock_logs):
        with pytest.raises(TypeError):
            _report(jobs, expenses, assets, stock_logs, None)

    def test_missing_collection(self, expenses, assets, stock_logs,
                                settings):
        with pytest.raises(TypeError):
            _report(None, expenses, assets, stock_logs, settings)
