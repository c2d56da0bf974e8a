"""
Admin Authentication & Management
=================================
- bcrypt password hashing
- Login check against admin_users
- Session marker helpers
- Admin account CRUD rules (roles, password length, self-delete guard)
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

import bcrypt

from sekolah.app.exceptions import AuthenticationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SESSION_ADMIN_ID = "admin_id"
SESSION_ADMIN_USERNAME = "admin_username"

MIN_PASSWORD_LENGTH = 6


class AdminRole(str, Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


# =============================================================================
# PASSWORDS
# =============================================================================

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def public_admin(admin: Dict[str, Any]) -> Dict[str, Any]:
    """Admin record without the password hash"""
    return {k: v for k, v in admin.items() if k != "password"}


# =============================================================================
# LOGIN / SESSION
# =============================================================================

def authenticate_admin(db, username: str, password: str) -> Dict[str, Any]:
    """
    Verify credentials.

    Unknown username and wrong password raise the same AuthenticationError,
    so callers cannot tell which one failed.
    """
    admin = db.find_admin_by_username((username or "").strip())
    if not admin or not verify_password(password, admin.get("password")):
        logger.warning(f"🔒 Failed login attempt for '{username}'")
        raise AuthenticationError()
    return admin


def start_session(session: Dict[str, Any], admin: Dict[str, Any]):
    session[SESSION_ADMIN_ID] = admin["id"]
    session[SESSION_ADMIN_USERNAME] = admin["username"]


def end_session(session: Dict[str, Any]):
    session.pop(SESSION_ADMIN_ID, None)
    session.pop(SESSION_ADMIN_USERNAME, None)


def session_admin_id(session: Dict[str, Any]) -> Optional[int]:
    admin_id = session.get(SESSION_ADMIN_ID)
    return int(admin_id) if admin_id is not None else None


# =============================================================================
# ADMIN MANAGEMENT
# =============================================================================

def _validate_role(role: str) -> str:
    try:
        return AdminRole(role).value
    except ValueError:
        raise ValidationError(f"Role tidak valid: {role}")


def _validate_password(password: str):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password minimal {MIN_PASSWORD_LENGTH} karakter")


def _require_fields(**fields):
    missing = [name for name, value in fields.items() if not value or not str(value).strip()]
    if missing:
        raise ValidationError(f"Field wajib diisi: {', '.join(missing)}")


def create_admin_account(db, username: str, email: str, password: str,
                         full_name: str, role: str = "admin") -> Dict[str, Any]:
    _require_fields(username=username, email=email, full_name=full_name)
    _validate_password(password)
    role = _validate_role(role)

    if db.find_admin_by_username(username):
        raise ValidationError("Username sudah digunakan")
    if db.find_admin_by_email(email):
        raise ValidationError("Email sudah digunakan")

    admin = db.create_admin(username, email, hash_password(password), full_name, role)
    logger.info(f"👤 Admin created: {username} ({role})")
    return admin


def update_admin_account(db, admin_id: int, username: str, email: str, full_name: str,
                         role: str, password: str = None) -> Dict[str, Any]:
    existing = db.find_admin_by_id(admin_id)
    if not existing:
        raise NotFoundError("Admin tidak ditemukan")

    _require_fields(username=username, email=email, full_name=full_name)
    role = _validate_role(role)

    other = db.find_admin_by_username(username)
    if other and other["id"] != admin_id:
        raise ValidationError("Username sudah digunakan")
    other = db.find_admin_by_email(email)
    if other and other["id"] != admin_id:
        raise ValidationError("Email sudah digunakan")

    password_hash = None
    if password:
        _validate_password(password)
        password_hash = hash_password(password)

    db.update_admin(admin_id, username, email, full_name, role, password_hash)
    return public_admin(db.find_admin_by_id(admin_id))


def change_password(db, admin_id: int, current_password: str, new_password: str):
    admin = db.find_admin_by_id(admin_id)
    if not admin:
        raise NotFoundError("Admin tidak ditemukan")
    if not verify_password(current_password, admin.get("password")):
        raise ValidationError("Password saat ini salah")
    _validate_password(new_password)
    db.update_admin_password(admin_id, hash_password(new_password))


def delete_admin_account(db, admin_id: int, current_admin_id: int) -> Dict[str, Any]:
    if admin_id == current_admin_id:
        raise ValidationError("Tidak dapat menghapus akun sendiri")

    admin = db.find_admin_by_id(admin_id)
    if not admin:
        raise NotFoundError("Admin tidak ditemukan")

    db.delete_admin(admin_id)
    logger.info(f"🗑️ Admin deleted: {admin['username']}")
    return public_admin(admin)
