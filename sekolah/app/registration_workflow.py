"""
Student Registration Workflow
=============================
Public form submission (pending) and admin review:

    pending -> approved | rejected   (and back to pending)

Status values are validated here, before anything touches the database.
"""

import logging
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from sekolah.app.config import settings
from sekolah.app.exceptions import NotFoundError, ValidationError
from sekolah.app.utils import paginate

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Gender(str, Enum):
    LAKI_LAKI = "Laki-laki"
    PEREMPUAN = "Perempuan"


STATUS_LABELS = {
    RegistrationStatus.PENDING.value: "Menunggu",
    RegistrationStatus.APPROVED.value: "Diterima",
    RegistrationStatus.REJECTED.value: "Ditolak",
}


def parse_status(value: Any) -> RegistrationStatus:
    try:
        return RegistrationStatus(value)
    except ValueError:
        raise ValidationError(f"Status tidak valid: {value}")


# =============================================================================
# PUBLIC FORM
# =============================================================================

class StudentRegistrationForm(BaseModel):
    """Pendaftaran siswa baru, field names as posted by the public form"""

    nama_lengkap: str = Field(..., alias="namaLengkap", min_length=1, max_length=100)
    tempat_lahir: str = Field(..., alias="tempatLahir", min_length=1, max_length=50)
    tanggal_lahir: date = Field(..., alias="tanggalLahir")
    jenis_kelamin: Gender = Field(..., alias="jenisKelamin")
    agama: str = Field(..., min_length=1, max_length=20)
    alamat: str = Field(..., min_length=1)
    no_telepon: Optional[str] = Field(None, alias="noTelepon", max_length=20)
    email: Optional[str] = Field(None, max_length=100)
    asal_sekolah: str = Field(..., alias="asalSekolah", min_length=1, max_length=100)
    alamat_sekolah: str = Field(..., alias="alamatSekolah", min_length=1)
    tahun_lulus: int = Field(..., alias="tahunLulus")
    nama_ayah: str = Field(..., alias="namaAyah", min_length=1, max_length=100)
    nama_ibu: str = Field(..., alias="namaIbu", min_length=1, max_length=100)
    pekerjaan_ayah: str = Field(..., alias="pekerjaanAyah", min_length=1, max_length=50)
    pekerjaan_ibu: str = Field(..., alias="pekerjaanIbu", min_length=1, max_length=50)
    no_telepon_ortu: str = Field(..., alias="noTeleponOrtu", min_length=1, max_length=20)
    email_ortu: Optional[str] = Field(None, alias="emailOrtu", max_length=100)
    program_pilihan: str = Field(..., alias="programPilihan", min_length=1, max_length=50)
    motivasi: Optional[str] = None

    class Config:
        populate_by_name = True
        str_strip_whitespace = True

    @field_validator("no_telepon", "email", "email_ortu", "motivasi", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("email", "email_ortu")
    @classmethod
    def check_email(cls, value):
        if value is not None and not EMAIL_PATTERN.match(value):
            raise ValueError("Email tidak valid")
        return value

    @field_validator("tahun_lulus")
    @classmethod
    def check_graduation_year(cls, value):
        max_year = datetime.now().year + 1
        if value < settings.min_graduation_year or value > max_year:
            raise ValueError("Tahun lulus tidak valid")
        return value

    @field_validator("program_pilihan")
    @classmethod
    def check_program(cls, value):
        programs = settings.programs
        if not programs:
            return value
        for program in programs:
            if program.lower() == value.lower():
                return program
        raise ValueError("Program pilihan tidak valid")


# =============================================================================
# WORKFLOW
# =============================================================================

def submit_registration(db, form: StudentRegistrationForm) -> Dict[str, Any]:
    data = form.model_dump()
    data["jenis_kelamin"] = form.jenis_kelamin.value
    registration = db.create_student_registration(data)
    logger.info(f"📝 New registration #{registration['id']}: {form.nama_lengkap} ({form.program_pilihan})")
    return registration


def get_registration(db, registration_id: int) -> Dict[str, Any]:
    registration = db.get_student_registration_by_id(registration_id)
    if not registration:
        raise NotFoundError("Data pendaftaran tidak ditemukan")
    return registration


def list_registrations(db, status: str = None, program: str = None, search: str = None,
                       page: int = 1, per_page: int = None) -> Dict[str, Any]:
    if status and status != "all":
        parse_status(status)

    filters = {"status": status, "program": program, "search": search}
    total = db.count_student_registrations(filters)
    pagination = paginate(total, page, per_page or settings.per_page)

    registrations = db.get_student_registrations({
        **filters,
        "limit": pagination["per_page"],
        "offset": pagination["offset"],
    })

    return {
        "registrations": registrations,
        "pagination": pagination,
        "programs": db.get_registration_programs(),
        "filters": filters,
    }


def update_status(db, registration_id: int, status: Any) -> Dict[str, Any]:
    """Validate and apply a status change. Concurrent updates are last-write-wins."""
    new_status = parse_status(status).value
    registration = get_registration(db, registration_id)

    db.update_student_registration_status(registration_id, new_status)
    logger.info(f"🔄 Registration #{registration_id}: {registration['status']} -> {new_status}")

    return {
        "id": registration_id,
        "nama_lengkap": registration["nama_lengkap"],
        "old_status": registration["status"],
        "new_status": new_status,
    }


def delete_registration(db, registration_id: int) -> Dict[str, Any]:
    registration = get_registration(db, registration_id)
    db.delete_student_registration(registration_id)
    return registration
