"""
Domain exceptions for the school back-office.

Routes never catch these themselves; handlers registered in ``main.py``
turn them into HTTP responses.
"""


class SekolahError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str = None):
        self.message = message or self.__class__.__doc__ or "Terjadi kesalahan"
        super().__init__(self.message)


class ValidationError(SekolahError):
    """Data yang dikirim tidak valid"""
    status_code = 400


class NotFoundError(SekolahError):
    """Data tidak ditemukan"""
    status_code = 404


class AuthenticationError(SekolahError):
    """Username atau password salah"""
    status_code = 401


class DatabaseError(SekolahError):
    """Terjadi kesalahan pada server"""
    status_code = 500


class DatabaseUnavailable(DatabaseError):
    """Database tidak dapat dihubungi"""


class DatabaseOperationFailed(DatabaseError):
    """Operasi database gagal"""


class AdminLoginRequired(SekolahError):
    """Silakan login terlebih dahulu"""
    status_code = 303
