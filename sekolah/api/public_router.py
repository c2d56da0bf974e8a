from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from sekolah.app import content_service, course_catalog, message_service, news_service, registration_workflow
from sekolah.app.database import DatabaseManager
from sekolah.app.message_service import ConsultationForm, ContactForm
from sekolah.app.registration_workflow import StudentRegistrationForm
from sekolah.api.deps import get_db

router = APIRouter(tags=["Public"])


# =============================================================================
# HOME & NEWS
# =============================================================================

@router.get("/")
def home(db: DatabaseManager = Depends(get_db)):
    """
    Homepage bundle: active sliders, active testimonials and latest news.
    Placeholder sliders/testimonials are served when the database is down.
    """
    return {"success": True, "data": content_service.homepage(db)}


@router.get("/news")
def list_news(
    page: int = Query(1, ge=1),
    per_page: int = Query(None, ge=1, le=100),
    db: DatabaseManager = Depends(get_db)
):
    return {"success": True, "data": news_service.list_published(db, page=page, per_page=per_page)}


@router.get("/news/{slug}")
def news_detail(slug: str, db: DatabaseManager = Depends(get_db)):
    return {"success": True, "data": news_service.get_published_by_slug(db, slug)}


# =============================================================================
# COURSES
# =============================================================================

@router.get("/courses")
def list_courses(search: Optional[str] = None, category: Optional[str] = None,
                 sort: Optional[str] = None):
    """Program catalogue with search (title/instructor), category filter and sort"""
    return {"success": True, "data": course_catalog.list_courses(search=search, category=category, sort=sort)}


@router.get("/course/{course_id}")
def course_detail(course_id: int):
    return {"success": True, "data": course_catalog.get_course(course_id)}


# =============================================================================
# FORMS
# =============================================================================

@router.post("/contact", status_code=status.HTTP_201_CREATED)
def submit_contact(form: ContactForm, db: DatabaseManager = Depends(get_db)):
    message = message_service.submit_contact(db, form)
    return {
        "success": True,
        "message": "Pesan Anda telah terkirim. Terima kasih!",
        "data": {"id": message["id"]}
    }


@router.post("/konsultasi", status_code=status.HTTP_201_CREATED)
def submit_consultation(form: ConsultationForm, db: DatabaseManager = Depends(get_db)):
    message = message_service.submit_consultation(db, form)
    return {
        "success": True,
        "message": "Permintaan konsultasi Anda telah diterima. Kami akan segera menghubungi Anda.",
        "data": {"id": message["id"]}
    }


@router.post("/daftar-siswa", status_code=status.HTTP_201_CREATED)
def submit_registration(form: StudentRegistrationForm, db: DatabaseManager = Depends(get_db)):
    registration = registration_workflow.submit_registration(db, form)
    return {
        "success": True,
        "message": "Pendaftaran berhasil dikirim. Kami akan menghubungi Anda untuk informasi selanjutnya.",
        "data": {
            "id": registration["id"],
            "nama_lengkap": registration["nama_lengkap"],
            "program_pilihan": registration["program_pilihan"],
            "status": registration["status"],
        }
    }
