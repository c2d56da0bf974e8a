from datetime import date, datetime

import pytest
from pydantic import ValidationError as FormError

from sekolah.app import registration_workflow
from sekolah.app.exceptions import NotFoundError, ValidationError
from sekolah.app.registration_workflow import StudentRegistrationForm
from tests.conftest import registration_data, registration_form


class TestStudentRegistrationForm:
    def test_accepts_camel_case_fields(self):
        form = StudentRegistrationForm(**registration_form())
        assert form.nama_lengkap == "Ahmad Fauzi"
        assert form.tanggal_lahir == date(2012, 5, 15)
        assert form.program_pilihan == "Tahfidz"

    def test_blank_optional_fields_become_none(self):
        form = StudentRegistrationForm(**registration_form(email="", noTelepon="  ", motivasi=""))
        assert form.email is None
        assert form.no_telepon is None
        assert form.motivasi is None

    def test_missing_required_field(self):
        payload = registration_form()
        del payload["namaAyah"]
        with pytest.raises(FormError):
            StudentRegistrationForm(**payload)

    def test_whitespace_only_required_field(self):
        with pytest.raises(FormError):
            StudentRegistrationForm(**registration_form(namaLengkap="   "))

    def test_graduation_year_bounds(self):
        with pytest.raises(FormError):
            StudentRegistrationForm(**registration_form(tahunLulus=2019))
        with pytest.raises(FormError):
            StudentRegistrationForm(**registration_form(tahunLulus=datetime.now().year + 2))
        StudentRegistrationForm(**registration_form(tahunLulus=datetime.now().year + 1))

    def test_invalid_gender(self):
        with pytest.raises(FormError):
            StudentRegistrationForm(**registration_form(jenisKelamin="L"))

    def test_invalid_email(self):
        with pytest.raises(FormError):
            StudentRegistrationForm(**registration_form(emailOrtu="bukan-email"))

    def test_program_must_be_offered(self):
        with pytest.raises(FormError):
            StudentRegistrationForm(**registration_form(programPilihan="Kedokteran"))

    def test_program_matched_case_insensitively(self):
        form = StudentRegistrationForm(**registration_form(programPilihan="teknologi informasi"))
        assert form.program_pilihan == "Teknologi Informasi"


class TestSubmission:
    def test_round_trip_with_nullable_fields(self, db):
        form = StudentRegistrationForm(**registration_form())
        created = registration_workflow.submit_registration(db, form)

        stored = registration_workflow.get_registration(db, created["id"])
        assert stored["status"] == "pending"
        assert stored["jenis_kelamin"] == "Laki-laki"
        assert stored["no_telepon"] is None
        assert stored["email"] is None
        assert stored["email_ortu"] is None
        assert stored["motivasi"] is None
        assert stored["nama_ibu"] == "Siti Aminah"


class TestStatusWorkflow:
    def test_approve(self, db):
        registration = db.create_student_registration(registration_data())
        result = registration_workflow.update_status(db, registration["id"], "approved")

        assert result["old_status"] == "pending"
        assert result["new_status"] == "approved"
        assert db.get_student_registration_by_id(registration["id"])["status"] == "approved"

    def test_back_to_pending(self, db):
        registration = db.create_student_registration(registration_data())
        registration_workflow.update_status(db, registration["id"], "rejected")
        registration_workflow.update_status(db, registration["id"], "pending")
        assert db.get_student_registration_by_id(registration["id"])["status"] == "pending"

    def test_invalid_status_leaves_record_unchanged(self, db):
        registration = db.create_student_registration(registration_data())

        with pytest.raises(ValidationError):
            registration_workflow.update_status(db, registration["id"], "accepted")

        assert db.get_student_registration_by_id(registration["id"])["status"] == "pending"

    def test_unknown_registration(self, db):
        with pytest.raises(NotFoundError):
            registration_workflow.update_status(db, 9999, "approved")

    def test_delete(self, db):
        registration = db.create_student_registration(registration_data())
        registration_workflow.delete_registration(db, registration["id"])
        assert db.get_student_registration_by_id(registration["id"]) is None


class TestListing:
    def test_program_filter_scenario(self, db):
        db.create_student_registration(registration_data(nama_lengkap="Ahmad", program_pilihan="Tahfidz"))
        db.create_student_registration(registration_data(nama_lengkap="Budi", program_pilihan="Sains"))
        db.create_student_registration(registration_data(nama_lengkap="Citra", program_pilihan="Tahfidz"))

        result = registration_workflow.list_registrations(db, program="Tahfidz")

        assert [r["nama_lengkap"] for r in result["registrations"]] == ["Citra", "Ahmad"]
        assert result["pagination"]["total"] == 2
        assert result["programs"] == ["Sains", "Tahfidz"]

    def test_search_is_case_insensitive_across_columns(self, db):
        db.create_student_registration(registration_data(nama_lengkap="Ahmad", nama_ibu="Fatimah"))
        db.create_student_registration(registration_data(nama_lengkap="Budi", asal_sekolah="SD Negeri 1"))

        by_mother = registration_workflow.list_registrations(db, search="fatimah")
        by_school = registration_workflow.list_registrations(db, search="NEGERI")

        assert [r["nama_lengkap"] for r in by_mother["registrations"]] == ["Ahmad"]
        assert [r["nama_lengkap"] for r in by_school["registrations"]] == ["Budi"]

    def test_pagination_window(self, db):
        for i in range(12):
            db.create_student_registration(registration_data(nama_lengkap=f"Siswa {i}"))

        result = registration_workflow.list_registrations(db, page=2, per_page=5)

        assert [r["nama_lengkap"] for r in result["registrations"]] == [f"Siswa {i}" for i in range(6, 1, -1)]
        assert result["pagination"]["totalPages"] == 3
        assert result["pagination"]["hasNextPage"] is True
        assert result["pagination"]["hasPrevPage"] is True

    def test_status_all_lists_everything(self, db):
        first = db.create_student_registration(registration_data())
        db.create_student_registration(registration_data())
        db.update_student_registration_status(first["id"], "approved")

        assert registration_workflow.list_registrations(db, status="all")["pagination"]["total"] == 2
        assert registration_workflow.list_registrations(db, status="approved")["pagination"]["total"] == 1

    def test_invalid_status_filter(self, db):
        with pytest.raises(ValidationError):
            registration_workflow.list_registrations(db, status="menunggu")
