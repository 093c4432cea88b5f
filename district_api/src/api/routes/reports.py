from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional
from uuid import UUID

import pandas as pd
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.deps import get_db_session
from src.db.models.organization import School
from src.db.models.visits import FieldVisit
from src.repositories.organization import SchoolRepository
from src.repositories.visits import FieldVisitRepository

# PUBLIC_INTERFACE
router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
)

SCHOOL_REPORT_COLUMNS = [
    "school",
    "code",
    "emis_number",
    "total_students",
    "present_students",
    "student_attendance_pct",
    "total_teachers",
    "present_teachers",
    "teacher_attendance_pct",
    "last_visit_type",
    "last_visit_date",
    "last_visited_by",
]


def _export_dataframe(
    df: pd.DataFrame,
    filename_base: str,
    export_format: str,
) -> StreamingResponse:
    """
    Convert DataFrame to the requested format and return a StreamingResponse.

    Supported formats:
      - csv: text/csv
      - xlsx: application/vnd.openxmlformats-officedocument.spreadsheetml.sheet
      - pdf: application/pdf (simple tabular rendering)
    Anything else falls back to CSV.
    """
    export_format = (export_format or "csv").lower()

    if export_format in ("xlsx", "excel", "xls"):
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Report")
        buffer.seek(0)
        headers = {
            "Content-Disposition": f'attachment; filename="{filename_base}.xlsx"'
        }
        return StreamingResponse(
            buffer,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers=headers,
        )

    if export_format == "pdf":
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4, landscape
        from reportlab.lib.styles import getSampleStyleSheet
        from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=landscape(A4), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
        )
        styles = getSampleStyleSheet()
        generated = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        elements: list = [Paragraph(f"{filename_base.replace('_', ' ').title()} ({generated})", styles["Title"])]

        data = [list(df.columns)] + df.fillna("").astype(str).values.tolist()
        table = Table(data, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
                    ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 7),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ]
            )
        )
        elements.append(table)
        doc.build(elements)
        buffer.seek(0)
        headers = {
            "Content-Disposition": f'attachment; filename="{filename_base}.pdf"'
        }
        return StreamingResponse(buffer, media_type="application/pdf", headers=headers)

    text_buffer = io.StringIO()
    df.to_csv(text_buffer, index=False)
    text_buffer.seek(0)
    headers = {
        "Content-Disposition": f'attachment; filename="{filename_base}.csv"'
    }
    return StreamingResponse(text_buffer, media_type="text/csv", headers=headers)


def attendance_pct(present: Optional[int], total: Optional[int]) -> Optional[float]:
    """Percentage rounded to one decimal; None when there is nobody on the roll."""
    if not total:
        return None
    return round(100.0 * (present or 0) / total, 1)


# PUBLIC_INTERFACE
def build_school_report_frame(
    schools: Iterable[School],
    latest_visits: Mapping[UUID, FieldVisit],
) -> pd.DataFrame:
    """
    One row per school with attendance percentages and its most recent visit.

    Parameters:
        schools: schools to report on, in output order
        latest_visits: most recent visit per school id; schools without one get blanks
    """
    rows = []
    for s in schools:
        visit = latest_visits.get(s.id)
        rows.append(
            {
                "school": s.name,
                "code": s.code,
                "emis_number": s.emis_number,
                "total_students": s.total_students,
                "present_students": s.present_students,
                "student_attendance_pct": attendance_pct(s.present_students, s.total_students),
                "total_teachers": s.total_teachers,
                "present_teachers": s.present_teachers,
                "teacher_attendance_pct": attendance_pct(s.present_teachers, s.total_teachers),
                "last_visit_type": visit.visit_type if visit else None,
                "last_visit_date": visit.visit_date if visit else None,
                "last_visited_by": visit.aeo_name if visit else None,
            }
        )
    return pd.DataFrame(rows, columns=SCHOOL_REPORT_COLUMNS)


# PUBLIC_INTERFACE
@router.get(
    "/schools",
    summary="Schools report",
    description=(
        "Exports schools with student/teacher attendance percentages and the latest AEO visit. "
        "Filter by cluster or district."
    ),
    response_description="File stream (CSV/XLSX/PDF)",
)
async def schools_report(
    session: AsyncSession = Depends(get_db_session),
    district_id: Optional[UUID] = Query(None),
    cluster_id: Optional[UUID] = Query(None),
    format: str = Query("csv", description="Export format: csv | xlsx | pdf"),
):
    schools = await SchoolRepository(session).list_schools(cluster_id=cluster_id, district_id=district_id)
    latest = await FieldVisitRepository(session).latest_visit_per_school()
    df = build_school_report_frame(schools, latest)
    return _export_dataframe(df, filename_base="schools_report", export_format=format)
