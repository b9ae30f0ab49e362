"""Tests for CSV and Excel report exports."""

import csv

import pytest
from openpyxl import load_workbook

from clean_village.costing.analysis import analyze_period
from clean_village.costing.reports import generate_monthly_report
from clean_village.database.models import (
    AppSettings,
    Asset,
    Expense,
    Job,
    StockLog,
)
from clean_village.io.csv_handler import (
    export_job_analysis_csv,
    export_monthly_report_csv,
)
from clean_village.io.excel_handler import export_period_excel

FALLBACKS = {"citric": 50.0, "chemical": 150.0}


@pytest.fixture
def period_inputs():
    jobs = [
        Job(job_number="JOB-2024-001", status="completed",
            contact_person="陳小姐", service_date="2024-03-05",
            work_duration_hours=2, travel_minutes_calculated=30,
            citric_acid=1, total_amount=3000),
        Job(job_number="JOB-2024-002", status="completed",
            contact_person="Mr. Lin", service_date="2024-03-20",
            work_duration_hours=38, travel_minutes_calculated=270,
            total_amount=9000),
    ]
    expenses = [
        Expense(date="2024-03-10", category="fuel", amount=200),
        Expense(date="2024-03-12", category="insurance", amount=1000),
    ]
    assets = [Asset(name="Kit", purchase_date="2024-01-01", cost=6000,
                    lifespan_months=12)]
    stock = [StockLog(item_type="citric", quantity=1, total_cost=600,
                      yield_per_unit=10)]
    return jobs, expenses, assets, stock


@pytest.fixture
def analysis(period_inputs):
    jobs, expenses, assets, stock = period_inputs
    return analyze_period(2024, 3, jobs, expenses, assets, stock, 72000,
                          unit_cost_fallback=FALLBACKS)


@pytest.fixture
def report(period_inputs):
    jobs, expenses, assets, stock = period_inputs
    return generate_monthly_report(2024, 3, jobs, expenses, assets, stock,
                                   AppSettings(monthly_salary=72000))


class TestJobAnalysisCsv:
    def test_writes_rounded_rows(self, analysis, tmp_path):
        filepath = tmp_path / "out" / "jobs.csv"
        assert export_job_analysis_csv(analysis, filepath) == 2

        with open(filepath, encoding="utf-8-sig", newline="") as f:
            rows = list(csv.DictReader(f))
        newest = rows[0]
        assert newest["Job Number"] == "JOB-2024-002"
        oldest = rows[1]
        assert oldest["Customer"] == "陳小姐"
        assert oldest["Labor"] == "3600"
        assert oldest["Traffic"] == "20"
        assert oldest["Total Cost"] == "3705"
        assert oldest["Real Margin"] == "-705"

    def test_starts_with_bom(self, analysis, tmp_path):
        filepath = tmp_path / "jobs.csv"
        export_job_analysis_csv(analysis, filepath)
        assert filepath.read_bytes().startswith(b"\xef\xbb\xbf")

    def test_records_export_audit(self, analysis, tmp_path, repo, boss):
        export_job_analysis_csv(analysis, tmp_path / "jobs.csv", repo, boss)
        entry = repo.get_audit_log(action="EXPORT")[0]
        assert entry.actor_name == "Boss Lee"
        assert "2024-03" in entry.summary


class TestMonthlyReportCsv:
    def test_line_items(self, report, tmp_path):
        filepath = tmp_path / "report.csv"
        count = export_monthly_report_csv(report, filepath)
        with open(filepath, encoding="utf-8-sig", newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["Item", "Amount"]
        assert len(rows) == count + 1
        items = dict(rows[1:])
        assert items["Revenue"] == "12000"
        assert items["Overhead"] == "1200"
        assert items["Net profit"] == str(round(report.net_profit))


class TestPeriodExcel:
    def test_workbook_sheets(self, analysis, report, tmp_path):
        filepath = tmp_path / "period.xlsx"
        assert export_period_excel(analysis, report, filepath) == 2

        wb = load_workbook(filepath)
        assert wb.sheetnames == ["Jobs", "Report"]
        jobs_sheet = wb["Jobs"]
        assert jobs_sheet["A1"].value == "Date"
        assert jobs_sheet["A1"].font.bold
        assert jobs_sheet.max_row == 3
        assert wb["Report"]["A2"].value == "Month"
        assert wb["Report"]["B2"].value == "2024-03"

    def test_mismatched_period_rejected(self, analysis, period_inputs,
                                        tmp_path):
        jobs, expenses, assets, stock = period_inputs
        april = generate_monthly_report(2024, 4, jobs, expenses, assets,
                                        stock, 72000)
        with pytest.raises(ValueError):
            export_period_excel(analysis, april, tmp_path / "bad.xlsx")

    def test_records_export_audit(self, analysis, report, tmp_path, repo):
        export_period_excel(analysis, report, tmp_path / "p.xlsx", repo)
        entry = repo.get_audit_log(action="EXPORT")[0]
        assert entry.actor_name == "System"
        assert entry.entity_name == "p.xlsx"
