import csv
import io
import re
from datetime import date, datetime

import pytest
from openpyxl import load_workbook

from sekolah.app import export
from sekolah.app.exceptions import ValidationError
from tests.conftest import registration_data


def _stored(**overrides):
    data = registration_data(**overrides)
    data.setdefault("status", "pending")
    data["tanggal_lahir"] = date(2012, 5, 15)
    data["created_at"] = datetime(2025, 1, 2, 9, 30)
    return data


def test_unknown_format_rejected(db):
    with pytest.raises(ValidationError):
        export.export_registrations(db, "xyz")


@pytest.mark.parametrize("fmt,expected", [("csv", "csv"), ("EXCEL", "excel"), ("xlsx", "excel"), ("pdf", "pdf")])
def test_format_aliases(fmt, expected):
    assert export.normalize_format(fmt) == expected


def test_empty_csv_is_header_only():
    rows = list(csv.reader(io.StringIO(export.to_csv([]).decode("utf-8"))))
    assert rows == [export.EXPORT_HEADERS]


def test_csv_headers_are_fixed():
    assert export.EXPORT_HEADERS == [
        "No", "Nama Lengkap", "Tempat Lahir", "Tanggal Lahir", "Jenis Kelamin", "Agama", "Alamat",
        "No. Telepon", "Email", "Asal Sekolah", "Alamat Sekolah", "Tahun Lulus", "Nama Ayah",
        "Nama Ibu", "Pekerjaan Ayah", "Pekerjaan Ibu", "No. Telepon Orang Tua", "Email Orang Tua",
        "Program Pilihan", "Motivasi", "Status", "Tanggal Daftar",
    ]


def test_csv_rows():
    registrations = [_stored(status="approved"), _stored(nama_lengkap="Budi, S.", status="rejected")]
    rows = list(csv.reader(io.StringIO(export.to_csv(registrations).decode("utf-8"))))

    assert len(rows) == 3
    first = dict(zip(rows[0], rows[1]))
    assert first["No"] == "1"
    assert first["Nama Lengkap"] == "Ahmad Fauzi"
    assert first["Tanggal Lahir"] == "15/05/2012"
    assert first["Email"] == ""
    assert first["Status"] == "Diterima"
    assert first["Tanggal Daftar"] == "02/01/2025 09:30"

    second = dict(zip(rows[0], rows[2]))
    assert second["Nama Lengkap"] == "Budi, S."
    assert second["Status"] == "Ditolak"


def test_excel_workbook():
    content = export.to_excel([_stored()])
    sheet = load_workbook(io.BytesIO(content)).active

    assert sheet.title == "Pendaftaran"
    assert [cell.value for cell in sheet[1]] == export.EXPORT_HEADERS
    assert sheet["A1"].font.bold is True
    assert sheet["B2"].value == "Ahmad Fauzi"
    assert sheet.max_row == 2


def test_pdf_document_spans_pages():
    registrations = [_stored(nama_lengkap=f"Siswa {i}") for i in range(80)]
    content = export.to_pdf(registrations)

    assert content.startswith(b"%PDF")
    assert len(re.findall(rb"/Type\s*/Page\b", content)) >= 2


def test_truncate():
    assert export.truncate("Muhammad Abdurrahman Al-Fatih", 12) == "Muhammad ..."
    assert export.truncate("Ahmad", 12) == "Ahmad"
    assert export.truncate(None, 5) == ""


class TestSelection:
    def test_by_ids(self, db):
        first = db.create_student_registration(registration_data(nama_lengkap="A"))
        db.create_student_registration(registration_data(nama_lengkap="B"))
        third = db.create_student_registration(registration_data(nama_lengkap="C"))

        selected = export.select_registrations(db, ids=[first["id"], third["id"]])
        assert [r["nama_lengkap"] for r in selected] == ["C", "A"]

    def test_by_filters_ignores_paging(self, db):
        for i in range(3):
            db.create_student_registration(registration_data(program_pilihan="Sains"))
        db.create_student_registration(registration_data(program_pilihan="Tahfidz"))

        selected = export.select_registrations(db, filters={"program": "Sains", "limit": 1})
        assert len(selected) == 3

    def test_all(self, db):
        db.create_student_registration(registration_data())
        db.create_student_registration(registration_data())
        assert len(export.select_registrations(db)) == 2

    def test_empty_id_list_selects_nothing(self, db):
        db.create_student_registration(registration_data())
        assert export.select_registrations(db, ids=[]) == []

    def test_empty_filter_set_selects_all(self, db):
        db.create_student_registration(registration_data())
        assert len(export.select_registrations(db, filters={})) == 1

    def test_unknown_status_filter_rejected(self, db):
        with pytest.raises(ValidationError):
            export.select_registrations(db, filters={"status": "diterima"})

    def test_all_status_filter_allowed(self, db):
        db.create_student_registration(registration_data())
        assert len(export.select_registrations(db, filters={"status": "all"})) == 1

    def test_export_file_metadata(self, db):
        result = export.export_registrations(db, "xlsx")
        assert result.filename.endswith(".xlsx")
        assert result.media_type.startswith("application/vnd.openxmlformats")
