"""Excel workbook export using openpyxl."""

import logging
from pathlib import Path
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font

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


def _fill_sheet(ws, headers: list, rows: list[list]):
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append(row)

    # Auto-fit column widths (approximate)
    for col in ws.columns:
        max_len = max(len(str(cell.value or "")) for cell in col)
        ws.column_dimensions[col[0].column_letter].width = min(max_len + 2, 40)


def export_period_excel(
    analysis: PeriodAnalysis,
    report: MonthlyReport,
    filepath: str | Path,
    repo: Optional[Repository] = None,
    actor: Optional[Actor] = None,
) -> int:
    """Write a workbook with a Jobs sheet and a Report sheet.

    Returns the number of job rows written.
    """
    if analysis.period != report.month:
        raise ValueError(
            f"Analysis period {analysis.period} does not match "
            f"report month {report.month}"
        )
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    ws.title = "Jobs"
    job_rows = job_analysis_rows(analysis)
    _fill_sheet(ws, JOB_ANALYSIS_HEADERS, job_rows)
    _fill_sheet(wb.create_sheet("Report"), MONTHLY_REPORT_HEADERS,
                monthly_report_rows(report))

    wb.save(filepath)
    logger.info(f"Exported workbook for {report.month} to {filepath}")
    if repo is not None:
        repo.record_export(
            actor, filepath.name,
            f"Exported workbook {report.month} ({len(job_rows)} jobs)",
        )
    return len(job_rows)
