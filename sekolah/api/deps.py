from typing import Any, Dict

from fastapi import Depends, Request

from sekolah.app.auth import end_session, public_admin, session_admin_id
from sekolah.app.database import DatabaseManager, get_db_manager
from sekolah.app.exceptions import AdminLoginRequired


# =============================================================================
# DEPENDENCY
# =============================================================================

def get_db() -> DatabaseManager:
    return get_db_manager()


def require_admin(request: Request, db: DatabaseManager = Depends(get_db)) -> Dict[str, Any]:
    """
    Guard for every admin route.

    No session marker, or a marker pointing at a deleted admin, redirects to
    the admin login page.
    """
    admin_id = session_admin_id(request.session)
    if admin_id is None:
        raise AdminLoginRequired()

    admin = db.find_admin_by_id(admin_id)
    if not admin:
        end_session(request.session)
        raise AdminLoginRequired()

    return public_admin(admin)
