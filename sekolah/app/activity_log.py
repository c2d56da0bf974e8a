import logging
from typing import Any, Dict, List, Optional

from sekolah.app.config import settings
from sekolah.app.exceptions import DatabaseError
from sekolah.app.utils import client_ip

logger = logging.getLogger(__name__)


def record(db, admin_id: Optional[int], action: str, description: str, request=None) -> bool:
    """
    Write an activity log entry after a successful mutation.

    A failed write is logged and reported as False; the mutation it describes
    has already been committed.
    """
    ip_address = client_ip(request)
    user_agent = request.headers.get("user-agent") if request is not None else None

    try:
        return db.log_activity(admin_id, action, description, ip_address, user_agent)
    except DatabaseError as e:
        logger.warning(f"⚠️ Activity log write failed ({action}): {e}")
        return False


def list_logs(db, action: str = None, date: str = None, admin_id: int = None) -> List[Dict[str, Any]]:
    return db.get_activity_logs({"action": action, "date": date, "admin_id": admin_id})


def cleanup(db, days_to_keep: int = None) -> int:
    """Delete logs past the retention window, returns deleted count"""
    days = days_to_keep if days_to_keep is not None else settings.log_retention_days
    deleted = db.cleanup_old_logs(days)
    logger.info(f"🧹 Cleaned up {deleted} activity logs older than {days} days")
    return deleted
