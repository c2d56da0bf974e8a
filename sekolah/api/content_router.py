from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, Field

from sekolah.app import activity_log, content_service, news_service
from sekolah.app.config import settings
from sekolah.app.database import DatabaseManager
from sekolah.api.deps import get_db, require_admin

router = APIRouter(
    prefix=settings.admin_prefix,
    tags=["Admin Content"]
)


# =============================================================================
# MODELS
# =============================================================================

class NewsRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = None
    featured_image: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=50)
    status: str = "draft"


class TestimonialRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    role: Optional[str] = Field(None, max_length=100)
    content: Optional[str] = None
    image: Optional[str] = Field(None, max_length=255)
    rating: Optional[int] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None


class SliderRequest(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    subtitle: Optional[str] = None
    image: Optional[str] = Field(None, max_length=255)
    link_url: Optional[str] = Field(None, max_length=255)
    link_text: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None
    display_order: Optional[int] = None


# =============================================================================
# NEWS
# =============================================================================

@router.get("/news")
def list_news(
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    author_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(None, ge=1, le=100),
    admin: Dict[str, Any] = Depends(require_admin),
    db: DatabaseManager = Depends(get_db)
):
    data = news_service.list_news(db, status=status, category=category, search=search,
                                  author_id=author_id, page=page, per_page=per_page)
    return {"success": True, "data": data}


@router.post("/news", status_code=status.HTTP_201_CREATED)
def create_news(payload: NewsRequest, request: Request,
                admin: Dict[str, Any] = Depends(require_admin),
                db: DatabaseManager = Depends(get_db)):
    news = news_service.create_news(db, payload.model_dump(), author_id=admin["id"])
    activity_log.record(db, admin["id"], "CREATE_NEWS", f"Membuat berita: {news['title']}", request)
    return {"success": True, "message": "Berita berhasil dibuat", "data": news}


@router.get("/news/{news_id}")
def news_detail(news_id: int, admin: Dict[str, Any] = Depends(require_admin),
                db: DatabaseManager = Depends(get_db)):
    return {"success": True, "data": news_service.get_news(db, news_id)}


@router.put("/news/{news_id}")
def update_news(news_id: int, payload: NewsRequest, request: Request,
                admin: Dict[str, Any] = Depends(require_admin),
                db: DatabaseManager = Depends(get_db)):
    news = news_service.update_news(db, news_id, payload.model_dump())
    activity_log.record(db, admin["id"], "UPDATE_NEWS", f"Mengubah berita: {news['title']}", request)
    return {"success": True, "message": "Berita berhasil diperbarui", "data": news}


@router.delete("/news/{news_id}")
def delete_news(news_id: int, request: Request,
                admin: Dict[str, Any] = Depends(require_admin),
                db: DatabaseManager = Depends(get_db)):
    news = news_service.delete_news(db, news_id)
    activity_log.record(db, admin["id"], "DELETE_NEWS", f"Menghapus berita: {news['title']}", request)
    return {"success": True, "message": "Berita berhasil dihapus"}


# =============================================================================
# TESTIMONIALS
# =============================================================================

@router.get("/testimonials")
def list_testimonials(admin: Dict[str, Any] = Depends(require_admin),
                      db: DatabaseManager = Depends(get_db)):
    return {"success": True, "data": db.get_testimonials()}


@router.post("/testimonials", status_code=status.HTTP_201_CREATED)
def create_testimonial(payload: TestimonialRequest, request: Request,
                       admin: Dict[str, Any] = Depends(require_admin),
                       db: DatabaseManager = Depends(get_db)):
    testimonial = content_service.create_testimonial(db, payload.model_dump())
    activity_log.record(db, admin["id"], "CREATE_TESTIMONIAL",
                        f"Menambahkan testimoni: {testimonial['name']}", request)
    return {"success": True, "message": "Testimoni berhasil ditambahkan", "data": testimonial}


@router.put("/testimonials/{testimonial_id}")
def update_testimonial(testimonial_id: int, payload: TestimonialRequest, request: Request,
                       admin: Dict[str, Any] = Depends(require_admin),
                       db: DatabaseManager = Depends(get_db)):
    testimonial = content_service.update_testimonial(db, testimonial_id, payload.model_dump(exclude_unset=True))
    activity_log.record(db, admin["id"], "UPDATE_TESTIMONIAL",
                        f"Mengubah testimoni: {testimonial['name']}", request)
    return {"success": True, "message": "Testimoni berhasil diperbarui", "data": testimonial}


@router.delete("/testimonials/{testimonial_id}")
def delete_testimonial(testimonial_id: int, request: Request,
                       admin: Dict[str, Any] = Depends(require_admin),
                       db: DatabaseManager = Depends(get_db)):
    testimonial = content_service.delete_testimonial(db, testimonial_id)
    activity_log.record(db, admin["id"], "DELETE_TESTIMONIAL",
                        f"Menghapus testimoni: {testimonial['name']}", request)
    return {"success": True, "message": "Testimoni berhasil dihapus"}


# =============================================================================
# SLIDERS
# =============================================================================

@router.get("/sliders")
def list_sliders(admin: Dict[str, Any] = Depends(require_admin),
                 db: DatabaseManager = Depends(get_db)):
    return {"success": True, "data": db.get_sliders()}


@router.post("/sliders", status_code=status.HTTP_201_CREATED)
def create_slider(payload: SliderRequest, request: Request,
                  admin: Dict[str, Any] = Depends(require_admin),
                  db: DatabaseManager = Depends(get_db)):
    slider = content_service.create_slider(db, payload.model_dump())
    activity_log.record(db, admin["id"], "CREATE_SLIDER", f"Menambahkan slider: {slider['title']}", request)
    return {"success": True, "message": "Slider berhasil ditambahkan", "data": slider}


@router.put("/sliders/{slider_id}")
def update_slider(slider_id: int, payload: SliderRequest, request: Request,
                  admin: Dict[str, Any] = Depends(require_admin),
                  db: DatabaseManager = Depends(get_db)):
    slider = content_service.update_slider(db, slider_id, payload.model_dump(exclude_unset=True))
    activity_log.record(db, admin["id"], "UPDATE_SLIDER", f"Mengubah slider: {slider['title']}", request)
    return {"success": True, "message": "Slider berhasil diperbarui", "data": slider}


@router.delete("/sliders/{slider_id}")
def delete_slider(slider_id: int, request: Request,
                  admin: Dict[str, Any] = Depends(require_admin),
                  db: DatabaseManager = Depends(get_db)):
    slider = content_service.delete_slider(db, slider_id)
    activity_log.record(db, admin["id"], "DELETE_SLIDER", f"Menghapus slider: {slider['title']}", request)
    return {"success": True, "message": "Slider berhasil dihapus"}
