import logging
import uvicorn
from datetime import datetime
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

# Routers
from sekolah.api.public_router import router as public_router
from sekolah.api.admin_router import router as admin_router
from sekolah.api.content_router import router as content_router
from sekolah.api.deps import get_db

# Core modules
from sekolah.app.config import settings
from sekolah.app.database import DatabaseManager, init_database, get_db_manager
from sekolah.app.exceptions import AdminLoginRequired, DatabaseError, SekolahError
from sekolah.app.scheduler import get_scheduler, init_scheduler

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =============================================================================
# LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup and shutdown events using lifespan context manager.
    """
    # =========================================================================
    # STARTUP
    # =========================================================================
    print("\n" + "="*60)
    print(f"🚀 STARTING {settings.app_name}")
    print("="*60)

    # 1. Initialize database
    print("\n📦 Initializing database...")
    db = init_database()
    if db.available:
        print("   ✅ Database ready")
    else:
        print("   ⚠️  Database unavailable, serving placeholder content")

    # 2. Initialize scheduler
    print("\n⏰ Initializing scheduler...")
    scheduler = init_scheduler()
    print(f"   ✅ Log cleanup daily at {settings.log_cleanup_hour:02d}:00 "
          f"(retention {settings.log_retention_days} days)")

    print("\n" + "="*60)
    print(f"✅ {settings.app_name} Ready - Version {settings.app_version}")
    print(f"   Host: {settings.host}:{settings.port}")
    print(f"   Debug: {settings.debug}")
    print("="*60 + "\n")

    yield  # Application is running

    # =========================================================================
    # SHUTDOWN
    # =========================================================================
    print("\n" + "="*60)
    print(f"🛑 SHUTTING DOWN {settings.app_name}")
    print("="*60)

    scheduler.stop()
    get_db_manager().close()
    print("   ✅ Database connections closed")

    print("\n✅ Shutdown complete\n")


# =============================================================================
# CREATE APP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="""
    Website & back-office SMPIT Baituljannah.

    ## Features
    - 🏠 Homepage content (slider, testimoni, berita)
    - 📝 Pendaftaran siswa baru
    - ✉️ Kontak & konsultasi
    - 🔐 Admin: berita, testimoni, slider, pendaftaran, log aktivitas
    - 📤 Export pendaftaran (CSV, Excel, PDF)
    """,
    version=settings.app_version,
    lifespan=lifespan
)

# =============================================================================
# MIDDLEWARE
# =============================================================================

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie="sekolah_session",
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.https_only,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(AdminLoginRequired)
async def admin_login_required_handler(request: Request, exc: AdminLoginRequired):
    return RedirectResponse(url=settings.admin_login_path, status_code=303)


@app.exception_handler(DatabaseError)
async def database_error_handler(request: Request, exc: DatabaseError):
    logger.error(f"❌ Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": DatabaseError.__doc__}
    )


@app.exception_handler(SekolahError)
async def sekolah_error_handler(request: Request, exc: SekolahError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Data yang dikirim tidak valid", "errors": errors}
    )


# =============================================================================
# ROUTERS
# =============================================================================

app.include_router(public_router)
app.include_router(admin_router)
app.include_router(content_router)


# =============================================================================
# HEALTH CHECK
# =============================================================================

@app.get("/health", tags=["Health"])
def health_check(db: DatabaseManager = Depends(get_db)):
    """Health check endpoint; retries database initialization when it is down"""
    connected = db.reconnect()
    if connected:
        try:
            connected = db.ping()
        except DatabaseError as e:
            logger.warning(f"⚠️ Health check ping failed: {e}")
            connected = False

    scheduler = get_scheduler(use_async=True)
    return {
        "status": "healthy" if connected else "degraded",
        "timestamp": datetime.now().isoformat(),
        "components": {
            "database": "connected" if connected else "unavailable",
            "scheduler": {
                "running": scheduler.is_running,
                "jobs": scheduler.get_jobs() if scheduler.is_running else []
            }
        }
    }


# =============================================================================
# RUN APPLICATION
# =============================================================================

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info"
    )
