from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel, Field

from sekolah.app import activity_log, auth, export, message_service, registration_workflow
from sekolah.app.config import settings
from sekolah.app.database import DatabaseManager
from sekolah.api.deps import get_db, require_admin

router = APIRouter(
    prefix=settings.admin_prefix,
    tags=["Admin"]
)


# =============================================================================
# MODELS
# =============================================================================

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class AdminCreateRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=100)
    password: str
    full_name: str = Field(..., min_length=1, max_length=100)
    role: str = "admin"


class AdminUpdateRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=100)
    full_name: str = Field(..., min_length=1, max_length=100)
    role: str = "admin"
    password: Optional[str] = None


class UpdateStatusRequest(BaseModel):
    # validated by the workflow so an invalid value is a 400, not a 422
    status: str


class ExportRequest(BaseModel):
    format: str = "csv"
    ids: Optional[List[int]] = None
    status: Optional[str] = None
    program: Optional[str] = None
    search: Optional[str] = None


# =============================================================================
# LOGIN / SESSION
# =============================================================================

@router.get("/login")
def login_page(request: Request):
    return {
        "success": True,
        "data": {
            "logged_in": auth.session_admin_id(request.session) is not None,
            "username": request.session.get(auth.SESSION_ADMIN_USERNAME),
        }
    }


@router.post("/login")
def login(payload: LoginRequest, request: Request, db: DatabaseManager = Depends(get_db)):
    admin = auth.authenticate_admin(db, payload.username, payload.password)
    auth.start_session(request.session, admin)
    activity_log.record(db, admin["id"], "LOGIN", f"Admin {admin['username']} login", request)
    return {
        "success": True,
        "message": "Login berhasil",
        "data": auth.public_admin(admin)
    }


@router.post("/logout")
def logout(request: Request, admin: Dict[str, Any] = Depends(require_admin),
           db: DatabaseManager = Depends(get_db)):
    activity_log.record(db, admin["id"], "LOGOUT", f"Admin {admin['username']} logout", request)
    auth.end_session(request.session)
    return {"success": True, "message": "Logout berhasil"}


@router.get("/me")
def me(admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "data": admin}


@router.post("/password")
def change_password(payload: ChangePasswordRequest, request: Request,
                    admin: Dict[str, Any] = Depends(require_admin),
                    db: DatabaseManager = Depends(get_db)):
    auth.change_password(db, admin["id"], payload.current_password, payload.new_password)
    activity_log.record(db, admin["id"], "CHANGE_PASSWORD", "Mengubah password", request)
    return {"success": True, "message": "Password berhasil diubah"}


# =============================================================================
# DASHBOARD
# =============================================================================

@router.get("/dashboard")
def dashboard(admin: Dict[str, Any] = Depends(require_admin), db: DatabaseManager = Depends(get_db)):
    """
    Admin dashboard overview
    """
    return {
        "success": True,
        "data": {
            "admin": admin,
            "registration_stats": db.get_registration_stats(),
            "news_stats": db.get_news_stats(),
            "recent_registrations": db.get_recent_registrations(5),
            "recent_activity": db.get_activity_logs({})[:10],
        }
    }


# =============================================================================
# ADMIN USERS
# =============================================================================

@router.get("/admins")
def list_admins(admin: Dict[str, Any] = Depends(require_admin), db: DatabaseManager = Depends(get_db)):
    return {"success": True, "data": db.get_all_admins()}


@router.post("/admins", status_code=status.HTTP_201_CREATED)
def create_admin(payload: AdminCreateRequest, request: Request,
                 admin: Dict[str, Any] = Depends(require_admin),
                 db: DatabaseManager = Depends(get_db)):
    created = auth.create_admin_account(
        db, payload.username, payload.email, payload.password, payload.full_name, payload.role
    )
    activity_log.record(db, admin["id"], "CREATE_ADMIN", f"Menambahkan admin {created['username']}", request)
    return {"success": True, "message": "Admin berhasil ditambahkan", "data": created}


@router.put("/admins/{admin_id}")
def update_admin(admin_id: int, payload: AdminUpdateRequest, request: Request,
                 admin: Dict[str, Any] = Depends(require_admin),
                 db: DatabaseManager = Depends(get_db)):
    updated = auth.update_admin_account(
        db, admin_id, payload.username, payload.email, payload.full_name,
        payload.role, payload.password
    )
    activity_log.record(db, admin["id"], "UPDATE_ADMIN", f"Mengubah admin {updated['username']}", request)
    return {"success": True, "message": "Admin berhasil diperbarui", "data": updated}


@router.delete("/admins/{admin_id}")
def delete_admin(admin_id: int, request: Request,
                 admin: Dict[str, Any] = Depends(require_admin),
                 db: DatabaseManager = Depends(get_db)):
    deleted = auth.delete_admin_account(db, admin_id, admin["id"])
    activity_log.record(db, admin["id"], "DELETE_ADMIN", f"Menghapus admin {deleted['username']}", request)
    return {"success": True, "message": "Admin berhasil dihapus"}


# =============================================================================
# REGISTRATION MANAGEMENT
# =============================================================================

@router.get("/registrations")
def list_registrations(
    status: Optional[str] = None,
    program: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(None, ge=1, le=100),
    admin: Dict[str, Any] = Depends(require_admin),
    db: DatabaseManager = Depends(get_db)
):
    """
    List registrations with status/program filter, search and pagination
    """
    data = registration_workflow.list_registrations(
        db, status=status, program=program, search=search, page=page, per_page=per_page
    )
    return {"success": True, "data": data}


@router.post("/registrations/export")
def export_registrations(payload: ExportRequest, request: Request,
                         admin: Dict[str, Any] = Depends(require_admin),
                         db: DatabaseManager = Depends(get_db)):
    filters = {"status": payload.status, "program": payload.program, "search": payload.search}
    filters = {k: v for k, v in filters.items() if v}
    result = export.export_registrations(
        db, payload.format, ids=payload.ids, filters=filters or None
    )
    activity_log.record(db, admin["id"], "EXPORT_REGISTRATIONS",
                        f"Export data pendaftaran ({payload.format})", request)
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f"attachment; filename={result.filename}"}
    )


@router.get("/registrations/{registration_id}")
def registration_detail(registration_id: int,
                        admin: Dict[str, Any] = Depends(require_admin),
                        db: DatabaseManager = Depends(get_db)):
    registration = registration_workflow.get_registration(db, registration_id)
    return {
        "success": True,
        "data": {
            **registration,
            "status_label": registration_workflow.STATUS_LABELS.get(registration["status"]),
        }
    }


@router.put("/registrations/{registration_id}/status")
def update_registration_status(registration_id: int, payload: UpdateStatusRequest, request: Request,
                               admin: Dict[str, Any] = Depends(require_admin),
                               db: DatabaseManager = Depends(get_db)):
    result = registration_workflow.update_status(db, registration_id, payload.status)
    activity_log.record(
        db, admin["id"], "UPDATE_REGISTRATION_STATUS",
        f"Mengubah status pendaftaran {result['nama_lengkap']} menjadi {result['new_status']}",
        request
    )
    return {
        "success": True,
        "message": f"Status updated to {result['new_status']}",
        "data": result
    }


@router.delete("/registrations/{registration_id}")
def delete_registration(registration_id: int, request: Request,
                        admin: Dict[str, Any] = Depends(require_admin),
                        db: DatabaseManager = Depends(get_db)):
    deleted = registration_workflow.delete_registration(db, registration_id)
    activity_log.record(db, admin["id"], "DELETE_REGISTRATION",
                        f"Menghapus pendaftaran {deleted['nama_lengkap']}", request)
    return {"success": True, "message": "Data pendaftaran berhasil dihapus"}


# =============================================================================
# ACTIVITY LOGS
# =============================================================================

@router.get("/activity-logs")
def list_activity_logs(
    action: Optional[str] = None,
    date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    admin_id: Optional[int] = None,
    admin: Dict[str, Any] = Depends(require_admin),
    db: DatabaseManager = Depends(get_db)
):
    return {"success": True, "data": activity_log.list_logs(db, action=action, date=date, admin_id=admin_id)}


@router.post("/activity-logs/cleanup")
def cleanup_activity_logs(
    request: Request,
    days: int = Query(None, ge=1),
    admin: Dict[str, Any] = Depends(require_admin),
    db: DatabaseManager = Depends(get_db)
):
    deleted = activity_log.cleanup(db, days)
    activity_log.record(db, admin["id"], "CLEANUP_LOGS", f"Menghapus {deleted} log aktivitas lama", request)
    return {"success": True, "data": {"deleted": deleted}}


# =============================================================================
# CONTACT & CONSULTATION MESSAGES
# =============================================================================

@router.get("/messages")
def list_messages(
    message_type: Optional[str] = Query(None, alias="type", pattern="^(all|contact|consultation)$"),
    unread: bool = False,
    admin: Dict[str, Any] = Depends(require_admin),
    db: DatabaseManager = Depends(get_db)
):
    return {"success": True, "data": message_service.list_messages(db, message_type=message_type, unread_only=unread)}


@router.put("/messages/{message_id}/read")
def mark_message_read(message_id: int,
                      admin: Dict[str, Any] = Depends(require_admin),
                      db: DatabaseManager = Depends(get_db)):
    message_service.mark_read(db, message_id)
    return {"success": True, "message": "Pesan ditandai sudah dibaca"}


@router.delete("/messages/{message_id}")
def delete_message(message_id: int, request: Request,
                   admin: Dict[str, Any] = Depends(require_admin),
                   db: DatabaseManager = Depends(get_db)):
    message_service.delete_message(db, message_id)
    activity_log.record(db, admin["id"], "DELETE_MESSAGE", f"Menghapus pesan #{message_id}", request)
    return {"success": True, "message": "Pesan berhasil dihapus"}
