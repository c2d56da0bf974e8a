"""
News Publishing
===============
draft | published | archived. published_at is stamped the first time an
item becomes published and is kept from then on.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from sekolah.app.config import settings
from sekolah.app.exceptions import NotFoundError, ValidationError
from sekolah.app.utils import paginate, slugify

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 200


class NewsStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


def parse_news_status(value: Any) -> str:
    try:
        return NewsStatus(value or NewsStatus.DRAFT.value).value
    except ValueError:
        raise ValidationError(f"Status berita tidak valid: {value}")


def unique_slug(db, title: str, exclude_id: int = None) -> str:
    """Slug from title; collisions get -2, -3, ... appended"""
    base = slugify(title)
    if not base:
        raise ValidationError("Judul berita harus mengandung huruf atau angka")

    slug, suffix = base, 2
    while db.slug_exists(slug, exclude_id):
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def make_excerpt(content: str, excerpt: Optional[str] = None) -> str:
    if excerpt and excerpt.strip():
        return excerpt.strip()
    text = " ".join((content or "").split())
    if len(text) <= EXCERPT_LENGTH:
        return text
    return text[:EXCERPT_LENGTH].rsplit(" ", 1)[0] + "..."


def _prepare(db, data: Dict[str, Any], exclude_id: int = None) -> Dict[str, Any]:
    title = (data.get("title") or "").strip()
    content = (data.get("content") or "").strip()
    if not title or not content:
        raise ValidationError("Judul dan konten berita wajib diisi")

    return {
        "title": title,
        "slug": unique_slug(db, title, exclude_id),
        "content": content,
        "excerpt": make_excerpt(content, data.get("excerpt")),
        "featured_image": data.get("featured_image") or None,
        "category": data.get("category") or "umum",
        "status": parse_news_status(data.get("status")),
    }


def create_news(db, data: Dict[str, Any], author_id: int) -> Dict[str, Any]:
    payload = _prepare(db, data)
    payload["author_id"] = author_id
    news = db.create_news(payload)
    logger.info(f"📰 News created: {news['slug']} ({news['status']})")
    return news


def get_news(db, news_id: int) -> Dict[str, Any]:
    news = db.get_news_by_id(news_id)
    if not news:
        raise NotFoundError("Berita tidak ditemukan")
    return news


def update_news(db, news_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    get_news(db, news_id)
    payload = _prepare(db, data, exclude_id=news_id)
    db.update_news(news_id, payload)
    return get_news(db, news_id)


def delete_news(db, news_id: int) -> Dict[str, Any]:
    news = get_news(db, news_id)
    db.delete_news(news_id)
    return news


def list_news(db, status: str = None, category: str = None, search: str = None,
              author_id: int = None, page: int = 1, per_page: int = None) -> Dict[str, Any]:
    if status and status != "all":
        parse_news_status(status)

    filters = {"status": status, "author_id": author_id, "category": category, "search": search}
    total = db.count_news(filters)
    pagination = paginate(total, page, per_page or settings.per_page)

    news = db.get_all_news({**filters, "limit": pagination["per_page"], "offset": pagination["offset"]})
    return {"news": news, "pagination": pagination, "filters": filters}


def list_published(db, page: int = 1, per_page: int = None) -> Dict[str, Any]:
    total = db.count_published_news()
    pagination = paginate(total, page, per_page or settings.per_page)
    news = db.get_published_news(limit=pagination["per_page"], offset=pagination["offset"])
    return {"news": news, "pagination": pagination}


def get_published_by_slug(db, slug: str) -> Dict[str, Any]:
    news = db.get_news_by_slug(slug)
    if not news:
        raise NotFoundError("Berita tidak ditemukan")
    return news
