import math
import re
from datetime import date, datetime
from typing import Any, Dict, Optional


def slugify(text: str) -> str:
    """
    Generate URL slug from a title.

    "Berita Terbaru: PPDB 2025!" -> "berita-terbaru-ppdb-2025"
    """
    slug = (text or "").lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def paginate(total: int, page: int = 1, per_page: int = 10) -> Dict[str, Any]:
    """Pagination window and navigation flags for list pages"""
    per_page = max(int(per_page or 1), 1)
    page = max(int(page or 1), 1)
    total = max(int(total or 0), 0)
    total_pages = math.ceil(total / per_page)

    return {
        "page": page,
        "per_page": per_page,
        "total": total,
        "totalPages": total_pages,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
        "offset": (page - 1) * per_page,
    }


def format_date(value: Any, fmt: str = "%d/%m/%Y") -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime(fmt)
    return str(value)


def client_ip(request) -> Optional[str]:
    """Client address, honouring X-Forwarded-For from a reverse proxy"""
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
