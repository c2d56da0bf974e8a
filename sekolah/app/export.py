"""
Registration Export
===================
CSV, Excel (xlsx) and PDF renditions of a list of student registrations.
Column labels and their order are fixed; downstream spreadsheets rely on them.
"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from sekolah.app.exceptions import ValidationError
from sekolah.app.registration_workflow import STATUS_LABELS, parse_status
from sekolah.app.utils import format_date

logger = logging.getLogger(__name__)


EXPORT_COLUMNS = [
    ("No", None),
    ("Nama Lengkap", "nama_lengkap"),
    ("Tempat Lahir", "tempat_lahir"),
    ("Tanggal Lahir", "tanggal_lahir"),
    ("Jenis Kelamin", "jenis_kelamin"),
    ("Agama", "agama"),
    ("Alamat", "alamat"),
    ("No. Telepon", "no_telepon"),
    ("Email", "email"),
    ("Asal Sekolah", "asal_sekolah"),
    ("Alamat Sekolah", "alamat_sekolah"),
    ("Tahun Lulus", "tahun_lulus"),
    ("Nama Ayah", "nama_ayah"),
    ("Nama Ibu", "nama_ibu"),
    ("Pekerjaan Ayah", "pekerjaan_ayah"),
    ("Pekerjaan Ibu", "pekerjaan_ibu"),
    ("No. Telepon Orang Tua", "no_telepon_ortu"),
    ("Email Orang Tua", "email_ortu"),
    ("Program Pilihan", "program_pilihan"),
    ("Motivasi", "motivasi"),
    ("Status", "status"),
    ("Tanggal Daftar", "created_at"),
]

EXPORT_HEADERS = [label for label, _ in EXPORT_COLUMNS]

FORMAT_ALIASES = {
    "csv": "csv",
    "excel": "excel",
    "xlsx": "excel",
    "pdf": "pdf",
}

SHEET_TITLE = "Pendaftaran"
HEADER_FILL = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")

# (label, x position, max characters)
PDF_COLUMNS = [
    ("No", 40, 4),
    ("Nama", 75, 32),
    ("Program", 265, 20),
    ("Status", 390, 12),
    ("Tanggal", 470, 12),
]
PDF_TOP = A4[1] - 50
PDF_BOTTOM_MARGIN = 50
PDF_ROW_HEIGHT = 18


@dataclass
class ExportFile:
    content: bytes
    media_type: str
    filename: str


def normalize_format(fmt: Optional[str]) -> str:
    key = (fmt or "").strip().lower()
    if key not in FORMAT_ALIASES:
        raise ValidationError(f"Format export tidak didukung: {fmt}")
    return FORMAT_ALIASES[key]


def status_label(status: Optional[str]) -> str:
    return STATUS_LABELS.get(status, status or "")


def _cell(registration: Dict[str, Any], key: str) -> Any:
    value = registration.get(key)
    if key == "status":
        return status_label(value)
    if key == "tanggal_lahir":
        return format_date(value)
    if key == "created_at":
        return format_date(value, "%d/%m/%Y %H:%M")
    return "" if value is None else value


def registration_rows(registrations: List[Dict[str, Any]]) -> List[List[Any]]:
    rows = []
    for index, registration in enumerate(registrations, start=1):
        rows.append([index if key is None else _cell(registration, key) for _, key in EXPORT_COLUMNS])
    return rows


def truncate(value: Any, limit: int) -> str:
    text = "" if value is None else str(value)
    if len(text) <= limit:
        return text
    return text[:max(limit - 3, 0)] + "..."


# =============================================================================
# RENDERERS
# =============================================================================

def to_csv(registrations: List[Dict[str, Any]]) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_HEADERS)
    writer.writerows(registration_rows(registrations))
    return output.getvalue().encode("utf-8")


def to_excel(registrations: List[Dict[str, Any]]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    sheet.append(EXPORT_HEADERS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL

    for row in registration_rows(registrations):
        sheet.append(row)

    for index, header in enumerate(EXPORT_HEADERS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = max(len(header) + 4, 12)

    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def _pdf_header(pdf: canvas.Canvas, y: float) -> float:
    pdf.setFont("Helvetica-Bold", 10)
    for label, x, _ in PDF_COLUMNS:
        pdf.drawString(x, y, label)
    pdf.line(PDF_COLUMNS[0][1], y - 4, A4[0] - 40, y - 4)
    pdf.setFont("Helvetica", 9)
    return y - PDF_ROW_HEIGHT


def to_pdf(registrations: List[Dict[str, Any]]) -> bytes:
    output = io.BytesIO()
    pdf = canvas.Canvas(output, pagesize=A4)
    pdf.setTitle("Data Pendaftaran Siswa")

    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawString(40, PDF_TOP, "Data Pendaftaran Siswa Baru")
    pdf.setFont("Helvetica", 9)
    pdf.drawString(40, PDF_TOP - 16, f"Dicetak: {datetime.now().strftime('%d/%m/%Y %H:%M')}")

    y = _pdf_header(pdf, PDF_TOP - 45)

    for index, registration in enumerate(registrations, start=1):
        if y < PDF_BOTTOM_MARGIN:
            pdf.showPage()
            y = _pdf_header(pdf, PDF_TOP)

        values = [
            index,
            registration.get("nama_lengkap"),
            registration.get("program_pilihan"),
            status_label(registration.get("status")),
            format_date(registration.get("created_at")),
        ]
        for (_, x, limit), value in zip(PDF_COLUMNS, values):
            pdf.drawString(x, y, truncate(value, limit))
        y -= PDF_ROW_HEIGHT

    pdf.save()
    return output.getvalue()


# =============================================================================
# EXPORT ENTRY POINT
# =============================================================================

def select_registrations(db, ids: Optional[List[int]] = None,
                         filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """
    Explicit ids win over filters; neither means every registration.
    An empty id list selects nothing.
    """
    if ids is not None:
        return db.get_student_registrations_by_ids(ids) if ids else []
    if filters is not None:
        status = filters.get("status")
        if status and status != "all":
            parse_status(status)
        return db.get_student_registrations({k: v for k, v in filters.items() if k not in ("limit", "offset")})
    return db.get_all_student_registrations()


def export_registrations(db, fmt: str, ids: Optional[List[int]] = None,
                         filters: Optional[Dict[str, Any]] = None) -> ExportFile:
    kind = normalize_format(fmt)
    registrations = select_registrations(db, ids, filters)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    if kind == "csv":
        result = ExportFile(to_csv(registrations), "text/csv; charset=utf-8", f"pendaftaran_{stamp}.csv")
    elif kind == "excel":
        result = ExportFile(
            to_excel(registrations),
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            f"pendaftaran_{stamp}.xlsx",
        )
    else:
        result = ExportFile(to_pdf(registrations), "application/pdf", f"pendaftaran_{stamp}.pdf")

    logger.info(f"📤 Exported {len(registrations)} registrations as {kind}")
    return result
