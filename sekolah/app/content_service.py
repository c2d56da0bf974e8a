"""
Homepage content: testimonials, sliders and the home page bundle.
"""

import copy
import logging
from typing import Any, Callable, Dict, List

from sekolah.app.exceptions import DatabaseError, NotFoundError, ValidationError
from sekolah.app.fallback import PLACEHOLDER_SLIDERS, PLACEHOLDER_TESTIMONIALS

logger = logging.getLogger(__name__)

HOME_NEWS_LIMIT = 3


def with_fallback(reader: Callable[[], List[Dict]], fallback: List[Dict]) -> List[Dict]:
    """Run a read, substituting placeholder rows when the database fails"""
    try:
        return reader()
    except DatabaseError as e:
        logger.warning(f"⚠️ Serving placeholder content: {e}")
        return copy.deepcopy(fallback)


def homepage(db) -> Dict[str, Any]:
    return {
        "sliders": with_fallback(lambda: db.get_sliders(active_only=True), PLACEHOLDER_SLIDERS),
        "testimonials": with_fallback(lambda: db.get_testimonials(active_only=True), PLACEHOLDER_TESTIMONIALS),
        "news": with_fallback(lambda: db.get_published_news(limit=HOME_NEWS_LIMIT), []),
    }


# =============================================================================
# SHARED FIELD RULES
# =============================================================================

def clamp_rating(value: Any) -> int:
    if value is None or value == "":
        return 5
    try:
        rating = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Rating harus berupa angka")
    return min(max(rating, 1), 5)


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Urutan tampil harus berupa angka")


def _to_bool(value: Any, default: bool = True) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "on", "yes")
    return bool(value)


def _merge(existing: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay the keys that were sent; an explicit None clears the field"""
    merged = dict(existing or {})
    merged.update(changes)
    return merged


# =============================================================================
# TESTIMONIALS
# =============================================================================

def _testimonial_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    name = (data.get("name") or "").strip()
    content = (data.get("content") or "").strip()
    if not name or not content:
        raise ValidationError("Nama dan isi testimoni wajib diisi")

    return {
        "name": name,
        "role": data.get("role") or None,
        "content": content,
        "image": data.get("image") or None,
        "rating": clamp_rating(data.get("rating")),
        "is_active": _to_bool(data.get("is_active")),
        "display_order": _to_int(data.get("display_order")),
    }


def get_testimonial(db, testimonial_id: int) -> Dict[str, Any]:
    testimonial = db.get_testimonial_by_id(testimonial_id)
    if not testimonial:
        raise NotFoundError("Testimoni tidak ditemukan")
    return testimonial


def create_testimonial(db, data: Dict[str, Any]) -> Dict[str, Any]:
    return db.create_testimonial(_testimonial_payload(data))


def update_testimonial(db, testimonial_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    existing = get_testimonial(db, testimonial_id)
    db.update_testimonial(testimonial_id, _testimonial_payload(_merge(existing, data)))
    return get_testimonial(db, testimonial_id)


def delete_testimonial(db, testimonial_id: int) -> Dict[str, Any]:
    testimonial = get_testimonial(db, testimonial_id)
    db.delete_testimonial(testimonial_id)
    return testimonial


# =============================================================================
# SLIDERS
# =============================================================================

def _slider_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    title = (data.get("title") or "").strip()
    image = (data.get("image") or "").strip()
    if not title or not image:
        raise ValidationError("Judul dan gambar slider wajib diisi")

    return {
        "title": title,
        "subtitle": data.get("subtitle") or None,
        "image": image,
        "link_url": data.get("link_url") or None,
        "link_text": data.get("link_text") or None,
        "is_active": _to_bool(data.get("is_active")),
        "display_order": _to_int(data.get("display_order")),
    }


def get_slider(db, slider_id: int) -> Dict[str, Any]:
    slider = db.get_slider_by_id(slider_id)
    if not slider:
        raise NotFoundError("Slider tidak ditemukan")
    return slider


def create_slider(db, data: Dict[str, Any]) -> Dict[str, Any]:
    return db.create_slider(_slider_payload(data))


def update_slider(db, slider_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    existing = get_slider(db, slider_id)
    db.update_slider(slider_id, _slider_payload(_merge(existing, data)))
    return get_slider(db, slider_id)


def delete_slider(db, slider_id: int) -> Dict[str, Any]:
    slider = get_slider(db, slider_id)
    db.delete_slider(slider_id)
    return slider
