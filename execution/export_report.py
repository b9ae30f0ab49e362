"""Export a month's job analysis and P&L report from the command line."""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from clean_village.config import Config
from clean_village.costing.analysis import analyze_period
from clean_village.costing.reports import generate_monthly_report
from clean_village.database.connection import DatabaseConnection
from clean_village.database.repository import Repository
from clean_village.database.schema import initialize_database
from clean_village.io.csv_handler import (
    export_job_analysis_csv,
    export_monthly_report_csv,
)
from clean_village.io.excel_handler import export_period_excel
from clean_village.utils.formatters import (
    format_currency,
    format_margin,
    format_rate,
)


def build_period(repo: Repository, year: int, month: int):
    """Analysis and monthly report for one month from the stored data."""
    data = repo.get_all_data()
    settings = data["app_settings"]
    fallbacks = settings.consumable_fallbacks()
    analysis = analyze_period(
        year, month, data["jobs"], data["expenses"], data["assets"],
        data["stock_logs"], data["labor_config"],
        unit_cost_fallback=fallbacks,
    )
    report = generate_monthly_report(
        year, month, data["jobs"], data["expenses"], data["assets"],
        data["stock_logs"], settings, unit_cost_fallback=fallbacks,
    )
    return analysis, report


def main():
    if len(sys.argv) < 3:
        print("Usage: python export_report.py <year> <month> [csv|xlsx]")
        sys.exit(1)

    logging.basicConfig(level=Config.LOG_LEVEL)
    year, month = int(sys.argv[1]), int(sys.argv[2])
    fmt = sys.argv[3].lower() if len(sys.argv) > 3 else "csv"

    db = DatabaseConnection(Config.DATABASE_PATH)
    initialize_database(db)
    repo = Repository(db)
    analysis, report = build_period(repo, year, month)

    out_dir = Path(Config.EXPORTS_DIRECTORY)
    stem = f"clean_village_{report.month}"
    if fmt == "csv":
        count = export_job_analysis_csv(
            analysis, out_dir / f"{stem}_jobs.csv", repo)
        export_monthly_report_csv(report, out_dir / f"{stem}_report.csv", repo)
    elif fmt == "xlsx":
        count = export_period_excel(
            analysis, report, out_dir / f"{stem}.xlsx", repo)
    else:
        print(f"Unknown format: {fmt}. Use 'csv' or 'xlsx'.")
        sys.exit(1)

    print(f"Exported {count} jobs for {report.month} to {out_dir}")
    rates = analysis.rates
    print(f"Labor rate: {format_rate(rates.hourly_labor_rate)}/h, "
          f"traffic rate: {format_rate(rates.per_minute_traffic_rate)}/min")
    print(f"Revenue: {format_currency(report.revenue)}")
    print(f"Net profit: {format_currency(report.net_profit)} "
          f"({format_margin(report.net_profit, report.revenue)})")


if __name__ == "__main__":
    main()
