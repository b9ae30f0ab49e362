"""CSV export for job profitability and monthly reports."""

import csv
import logging
from pathlib import Path
from typing import Optional

from clean_village.costing.analysis import PeriodAnalysis
from clean_village.costing.reports import (
    JOB_ANALYSIS_HEADERS,
    MONTHLY_REPORT_HEADERS,
    MonthlyReport,
    job_analysis_rows,
    monthly_report_rows,
)
from clean_village.database.models import Actor
from clean_village.database.repository import Repository

logger = logging.getLogger(__name__)

# BOM so spreadsheet apps detect UTF-8 customer names
CSV_ENCODING = "utf-8-sig"


def _write_rows(filepath: Path, headers: list, rows: list[list]):
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", newline="", encoding=CSV_ENCODING) as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        writer.writerows(rows)


def export_job_analysis_csv(
    analysis: PeriodAnalysis,
    filepath: str | Path,
    repo: Optional[Repository] = None,
    actor: Optional[Actor] = None,
) -> int:
    """Export one row per analysed job. Returns the number of rows written."""
    filepath = Path(filepath)
    rows = job_analysis_rows(analysis)
    _write_rows(filepath, JOB_ANALYSIS_HEADERS, rows)
    logger.info(f"Exported {len(rows)} job analyses for {analysis.period} "
                f"to {filepath}")
    if repo is not None:
        repo.record_export(
            actor, filepath.name,
            f"Exported job analysis {analysis.period} ({len(rows)} jobs)",
        )
    return len(rows)


def export_monthly_report_csv(
    report: MonthlyReport,
    filepath: str | Path,
    repo: Optional[Repository] = None,
    actor: Optional[Actor] = None,
) -> int:
    """Export the report's line items. Returns the number of rows written."""
    filepath = Path(filepath)
    rows = monthly_report_rows(report)
    _write_rows(filepath, MONTHLY_REPORT_HEADERS, rows)
    logger.info(f"Exported monthly report {report.month} to {filepath}")
    if repo is not None:
        repo.record_export(
            actor, filepath.name, f"Exported monthly report {report.month}",
        )
    return len(rows)
