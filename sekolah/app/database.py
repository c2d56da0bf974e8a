"""
Database Manager - PostgreSQL
=============================
Schema, migrations and one helper per entity operation for:
- Admin users
- Student registrations
- Activity logs
- News
- Testimonials & sliders
- Contact / consultation messages
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Tuple

import psycopg2
from psycopg2 import errors, sql
from psycopg2 import pool
from psycopg2.extensions import parse_dsn
from psycopg2.extras import RealDictCursor

from sekolah.app.auth import hash_password
from sekolah.app.config import settings
from sekolah.app.exceptions import (
    DatabaseError,
    DatabaseOperationFailed,
    DatabaseUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)


REGISTRATION_FIELDS = [
    "nama_lengkap", "tempat_lahir", "tanggal_lahir", "jenis_kelamin", "agama", "alamat",
    "no_telepon", "email", "asal_sekolah", "alamat_sekolah", "tahun_lulus",
    "nama_ayah", "nama_ibu", "pekerjaan_ayah", "pekerjaan_ibu", "no_telepon_ortu", "email_ortu",
    "program_pilihan", "motivasi",
]

NEWS_SEARCH_COLUMNS = ["title", "content", "excerpt"]
REGISTRATION_SEARCH_COLUMNS = ["nama_lengkap", "asal_sekolah", "email", "nama_ayah", "nama_ibu"]

ACTIVITY_LOG_LIMIT = 100


# =============================================================================
# FILTER BUILDERS
# =============================================================================

def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term is matched literally"""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def normalize_search(value: Any) -> Optional[str]:
    if value is None:
        return None
    term = str(value).strip()
    return term or None


def _is_set(value: Any) -> bool:
    return value is not None and value != "" and value != "all"


def _search_clause(term: str, columns: Iterable[str], alias: str) -> Tuple[str, List[Any]]:
    columns = list(columns)
    pattern = f"%{escape_like(term)}%"
    clause = "(" + " OR ".join(f"{alias}{column} ILIKE %s" for column in columns) + ")"
    return clause, [pattern] * len(columns)


def build_news_filters(filters: Dict[str, Any], alias: str = "n.") -> Tuple[List[str], List[Any]]:
    """Build WHERE clauses for news list/count queries"""
    clauses, params = [], []

    if _is_set(filters.get("status")):
        clauses.append(f"{alias}status = %s")
        params.append(filters["status"])

    if _is_set(filters.get("author_id")):
        clauses.append(f"{alias}author_id = %s")
        try:
            params.append(int(filters["author_id"]))
        except (TypeError, ValueError):
            raise ValidationError(f"author_id tidak valid: {filters['author_id']}")

    if _is_set(filters.get("category")):
        clauses.append(f"{alias}category = %s")
        params.append(filters["category"])

    term = normalize_search(filters.get("search"))
    if term:
        clause, search_params = _search_clause(term, NEWS_SEARCH_COLUMNS, alias)
        clauses.append(clause)
        params.extend(search_params)

    return clauses, params


def build_registration_filters(filters: Dict[str, Any]) -> Tuple[List[str], List[Any]]:
    """Build WHERE clauses for registration list/count queries"""
    clauses, params = [], []

    if _is_set(filters.get("status")):
        clauses.append("status = %s")
        params.append(filters["status"])

    if _is_set(filters.get("program")):
        clauses.append("program_pilihan = %s")
        params.append(filters["program"])

    term = normalize_search(filters.get("search"))
    if term:
        clause, search_params = _search_clause(term, REGISTRATION_SEARCH_COLUMNS, "")
        clauses.append(clause)
        params.extend(search_params)

    return clauses, params


def build_activity_filters(filters: Dict[str, Any]) -> Tuple[List[str], List[Any]]:
    """Build WHERE clauses for activity log queries"""
    clauses, params = [], []

    if _is_set(filters.get("action")):
        clauses.append("al.action ILIKE %s")
        params.append(f"%{escape_like(str(filters['action']))}%")

    if filters.get("date"):
        clauses.append("DATE(al.created_at) = %s")
        params.append(filters["date"])

    if filters.get("admin_id"):
        clauses.append("al.admin_id = %s")
        params.append(int(filters["admin_id"]))

    return clauses, params


def where_sql(clauses: List[str]) -> str:
    return f" WHERE {' AND '.join(clauses)}" if clauses else ""


def limit_offset_sql(filters: Dict[str, Any]) -> Tuple[str, List[Any]]:
    """LIMIT/OFFSET fragment; offset is only honoured together with a limit"""
    limit = filters.get("limit")
    if limit is None or limit == "":
        return "", []

    try:
        limit = int(limit)
        offset = int(filters.get("offset") or 0)
    except (TypeError, ValueError):
        raise ValidationError("Parameter limit/offset harus berupa angka")

    if limit < 0 or offset < 0:
        raise ValidationError("Parameter limit/offset tidak boleh negatif")

    fragment, params = " LIMIT %s", [limit]
    if offset:
        fragment += " OFFSET %s"
        params.append(offset)
    return fragment, params


# =============================================================================
# DATABASE MANAGER
# =============================================================================

class DatabaseManager:
    """
    PostgreSQL Database Manager with connection pooling.

    Never raises on construction: when the server is unreachable the manager
    stays unavailable and every helper raises DatabaseUnavailable.
    """

    def __init__(self, database_url: str = None, maintenance_url: str = None,
                 min_connections: int = None, max_connections: int = None,
                 reconnect_cooldown: int = None, auto_init: bool = True):
        self.database_url = database_url or settings.database_url
        self.maintenance_url = maintenance_url or settings.maintenance_database_url
        self.database_name = parse_dsn(self.database_url).get("dbname", settings.database_name)
        self.min_connections = min_connections or settings.database_min_connections
        self.max_connections = max_connections or settings.database_max_connections
        self.connect_timeout = settings.database_connect_timeout
        self.reconnect_cooldown = (
            reconnect_cooldown if reconnect_cooldown is not None else settings.database_reconnect_cooldown
        )

        self._pool: Optional[pool.ThreadedConnectionPool] = None
        self._slots = threading.BoundedSemaphore(self.max_connections)
        self._init_lock = threading.Lock()
        self.available = False
        self._last_attempt: Optional[float] = None

        if auto_init:
            self.initialize()

    def initialize(self) -> bool:
        """Create database, tables, migrations and seed rows"""
        with self._init_lock:
            self._last_attempt = time.monotonic()
            try:
                self._ensure_database()
                self._create_pool()
                self._init_db()
                self._run_migrations()
                self._insert_default_admin()
                self.available = True
                logger.info("✅ PostgreSQL database initialized")
            except (psycopg2.Error, DatabaseError) as e:
                self.available = False
                logger.error(f"❌ Database initialization failed, running in degraded mode: {e}")
        return self.available

    def reconnect(self) -> bool:
        """Retry initialization, at most once per reconnect_cooldown seconds"""
        if self.available:
            return True
        last = self._last_attempt
        if last is not None and time.monotonic() - last < self.reconnect_cooldown:
            return False
        return self.initialize()

    def _create_pool(self):
        if self._pool is not None:
            return
        self._pool = pool.ThreadedConnectionPool(
            minconn=self.min_connections,
            maxconn=self.max_connections,
            dsn=self.database_url,
            connect_timeout=self.connect_timeout,
            keepalives=1,
            keepalives_idle=30,
            keepalives_interval=10,
            keepalives_count=5
        )

    @contextmanager
    def get_connection(self):
        """Get connection from pool with auto-commit/rollback; always released"""
        db_pool = self._pool
        if db_pool is None:
            raise DatabaseUnavailable()

        if not self._slots.acquire(timeout=self.connect_timeout):
            raise DatabaseUnavailable("Semua koneksi database sedang digunakan")

        conn = None
        try:
            try:
                conn = db_pool.getconn()
            except psycopg2.Error as e:
                raise DatabaseUnavailable(str(e)) from e

            try:
                yield conn
                conn.commit()
            except psycopg2.IntegrityError as e:
                self._rollback(conn)
                if isinstance(e, errors.UniqueViolation):
                    raise ValidationError("Data sudah terdaftar") from e
                raise DatabaseOperationFailed(str(e)) from e
            except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
                self._rollback(conn)
                raise DatabaseUnavailable(str(e)) from e
            except psycopg2.Error as e:
                self._rollback(conn)
                raise DatabaseOperationFailed(str(e)) from e
            except Exception:
                self._rollback(conn)
                raise
        finally:
            if conn is not None:
                db_pool.putconn(conn, close=bool(conn.closed))
            self._slots.release()

    @staticmethod
    def _rollback(conn):
        if conn.closed:
            return
        try:
            conn.rollback()
        except psycopg2.Error as e:
            logger.warning(f"⚠️ Rollback failed: {e}")

    # =========================================================================
    # SCHEMA & MIGRATIONS
    # =========================================================================

    def _ensure_database(self):
        """Create the target database when it does not exist yet"""
        try:
            conn = psycopg2.connect(self.maintenance_url, connect_timeout=self.connect_timeout)
        except psycopg2.Error as e:
            logger.warning(f"⚠️ Cannot reach maintenance database, skipping CREATE DATABASE: {e}")
            return

        try:
            conn.autocommit = True
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1 FROM pg_database WHERE datname = %s", (self.database_name,))
                if cursor.fetchone() is None:
                    cursor.execute(
                        sql.SQL("CREATE DATABASE {} ENCODING 'UTF8'").format(sql.Identifier(self.database_name))
                    )
                    logger.info(f"   ✅ Database created: {self.database_name}")
        finally:
            conn.close()

    def _init_db(self):
        """Initialize all database tables"""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS admin_users (
                    id SERIAL PRIMARY KEY,
                    username VARCHAR(50) UNIQUE NOT NULL,
                    email VARCHAR(100) UNIQUE NOT NULL,
                    password VARCHAR(255) NOT NULL,
                    full_name VARCHAR(100) NOT NULL,
                    role VARCHAR(20) NOT NULL DEFAULT 'admin'
                        CHECK (role IN ('admin', 'super_admin')),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS student_registrations (
                    id SERIAL PRIMARY KEY,
                    nama_lengkap VARCHAR(100) NOT NULL,
                    tempat_lahir VARCHAR(50) NOT NULL,
                    tanggal_lahir DATE NOT NULL,
                    jenis_kelamin VARCHAR(20) NOT NULL
                        CHECK (jenis_kelamin IN ('Laki-laki', 'Perempuan')),
                    agama VARCHAR(20) NOT NULL,
                    alamat TEXT NOT NULL,
                    no_telepon VARCHAR(20),
                    email VARCHAR(100),
                    asal_sekolah VARCHAR(100) NOT NULL,
                    alamat_sekolah TEXT NOT NULL,
                    tahun_lulus INTEGER NOT NULL,
                    nama_ayah VARCHAR(100) NOT NULL,
                    nama_ibu VARCHAR(100) NOT NULL,
                    pekerjaan_ayah VARCHAR(50) NOT NULL,
                    pekerjaan_ibu VARCHAR(50) NOT NULL,
                    no_telepon_ortu VARCHAR(20) NOT NULL,
                    email_ortu VARCHAR(100),
                    program_pilihan VARCHAR(50) NOT NULL,
                    motivasi TEXT,
                    status VARCHAR(20) NOT NULL DEFAULT 'pending'
                        CHECK (status IN ('pending', 'approved', 'rejected')),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS activity_logs (
                    id SERIAL PRIMARY KEY,
                    admin_id INTEGER REFERENCES admin_users(id) ON DELETE SET NULL,
                    action VARCHAR(100) NOT NULL,
                    description TEXT NOT NULL,
                    ip_address VARCHAR(45),
                    user_agent TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS news (
                    id SERIAL PRIMARY KEY,
                    title VARCHAR(255) NOT NULL,
                    slug VARCHAR(255) UNIQUE NOT NULL,
                    content TEXT NOT NULL,
                    excerpt TEXT,
                    featured_image VARCHAR(255),
                    author_id INTEGER REFERENCES admin_users(id) ON DELETE SET NULL,
                    status VARCHAR(20) NOT NULL DEFAULT 'draft'
                        CHECK (status IN ('draft', 'published', 'archived')),
                    published_at TIMESTAMP NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS testimonials (
                    id SERIAL PRIMARY KEY,
                    name VARCHAR(100) NOT NULL,
                    role VARCHAR(100),
                    content TEXT NOT NULL,
                    image VARCHAR(255),
                    rating INTEGER NOT NULL DEFAULT 5 CHECK (rating >= 1 AND rating <= 5),
                    is_active BOOLEAN DEFAULT TRUE,
                    display_order INTEGER DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS sliders (
                    id SERIAL PRIMARY KEY,
                    title VARCHAR(255) NOT NULL,
                    subtitle TEXT,
                    image VARCHAR(255) NOT NULL,
                    link_url VARCHAR(255),
                    link_text VARCHAR(100),
                    is_active BOOLEAN DEFAULT TRUE,
                    display_order INTEGER DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS contact_messages (
                    id SERIAL PRIMARY KEY,
                    message_type VARCHAR(20) NOT NULL DEFAULT 'contact'
                        CHECK (message_type IN ('contact', 'consultation')),
                    name VARCHAR(100) NOT NULL,
                    email VARCHAR(100) NOT NULL,
                    phone VARCHAR(20),
                    consultation_type VARCHAR(100),
                    message TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS migrations (
                    id SERIAL PRIMARY KEY,
                    migration_name TEXT UNIQUE NOT NULL,
                    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_reg_status ON student_registrations(status)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_reg_program ON student_registrations(program_pilihan)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_reg_created_at ON student_registrations(created_at)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_log_admin_id ON activity_logs(admin_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_log_action ON activity_logs(action)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_log_created_at ON activity_logs(created_at)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_news_status ON news(status)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_news_published_at ON news(published_at)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_news_author_id ON news(author_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_testimonial_order ON testimonials(display_order)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_slider_order ON sliders(display_order)")

    def _run_migrations(self):
        """Run pending migrations"""
        migrations = [
            ("001_initial", lambda c: None),
            ("002_add_news_category", self._migrate_add_news_category),
            ("003_add_content_display_order", self._migrate_add_content_display_order),
            ("004_add_message_read_flag", self._migrate_add_message_read_flag),
        ]

        with self.get_connection() as conn:
            cursor = conn.cursor(cursor_factory=RealDictCursor)

            for migration_name, migration_func in migrations:
                cursor.execute(
                    "SELECT id FROM migrations WHERE migration_name = %s",
                    (migration_name,)
                )
                if cursor.fetchone() is None:
                    migration_func(cursor)
                    cursor.execute(
                        "INSERT INTO migrations (migration_name) VALUES (%s) ON CONFLICT DO NOTHING",
                        (migration_name,)
                    )
                    logger.info(f"   ✅ Migration applied: {migration_name}")

    def _migrate_add_news_category(self, cursor):
        cursor.execute("ALTER TABLE news ADD COLUMN IF NOT EXISTS category VARCHAR(50) DEFAULT 'umum'")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_news_category ON news(category)")

    def _migrate_add_content_display_order(self, cursor):
        for table in ("testimonials", "sliders"):
            cursor.execute(f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS display_order INTEGER DEFAULT 0")

    def _migrate_add_message_read_flag(self, cursor):
        cursor.execute("ALTER TABLE contact_messages ADD COLUMN IF NOT EXISTS is_read BOOLEAN DEFAULT FALSE")

    def _insert_default_admin(self):
        """Insert default super admin (idempotent on username)"""
        admin = settings.default_admin
        username = admin.get("username", "admin")

        if self.find_admin_by_username(username):
            return

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO admin_users (username, email, password, full_name, role)
                VALUES (%s, %s, %s, %s, 'super_admin')
                ON CONFLICT DO NOTHING
            """, (
                username,
                admin.get("email", "admin@smpbaituljannah.sch.id"),
                hash_password(str(admin.get("password", "admin123"))),
                admin.get("full_name", "Administrator"),
            ))
            if cursor.rowcount:
                logger.info("   ✅ Default admin user created")

    # =========================================================================
    # QUERY HELPERS
    # =========================================================================

    def _fetch_one(self, query: str, params: Iterable = ()) -> Optional[Dict]:
        with self.get_connection() as conn:
            cursor = conn.cursor(cursor_factory=RealDictCursor)
            cursor.execute(query, tuple(params))
            row = cursor.fetchone()
            return dict(row) if row else None

    def _fetch_all(self, query: str, params: Iterable = ()) -> List[Dict]:
        with self.get_connection() as conn:
            cursor = conn.cursor(cursor_factory=RealDictCursor)
            cursor.execute(query, tuple(params))
            return [dict(row) for row in cursor.fetchall()]

    def _execute(self, query: str, params: Iterable = ()) -> int:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, tuple(params))
            return cursor.rowcount

    def ping(self) -> bool:
        return self._fetch_one("SELECT 1 AS ok") is not None

    # =========================================================================
    # ADMIN USERS
    # =========================================================================

    _ADMIN_PUBLIC_COLUMNS = "id, username, email, full_name, role, created_at, updated_at"

    def find_admin_by_id(self, admin_id: int) -> Optional[Dict]:
        return self._fetch_one("SELECT * FROM admin_users WHERE id = %s", (admin_id,))

    def find_admin_by_username(self, username: str) -> Optional[Dict]:
        return self._fetch_one("SELECT * FROM admin_users WHERE username = %s", (username,))

    def find_admin_by_email(self, email: str) -> Optional[Dict]:
        return self._fetch_one("SELECT * FROM admin_users WHERE email = %s", (email,))

    def create_admin(self, username: str, email: str, password_hash: str,
                     full_name: str, role: str = "admin") -> Dict:
        return self._fetch_one(f"""
            INSERT INTO admin_users (username, email, password, full_name, role)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING {self._ADMIN_PUBLIC_COLUMNS}
        """, (username, email, password_hash, full_name, role))

    def get_all_admins(self) -> List[Dict]:
        return self._fetch_all(
            f"SELECT {self._ADMIN_PUBLIC_COLUMNS} FROM admin_users ORDER BY created_at DESC, id DESC"
        )

    def update_admin(self, admin_id: int, username: str, email: str, full_name: str,
                     role: str, password_hash: str = None) -> bool:
        query = """
            UPDATE admin_users
            SET username = %s, email = %s, full_name = %s, role = %s, updated_at = CURRENT_TIMESTAMP
        """
        params = [username, email, full_name, role]

        if password_hash:
            query += ", password = %s"
            params.append(password_hash)

        query += " WHERE id = %s"
        params.append(admin_id)
        return self._execute(query, params) > 0

    def update_admin_password(self, admin_id: int, password_hash: str) -> bool:
        return self._execute(
            "UPDATE admin_users SET password = %s, updated_at = CURRENT_TIMESTAMP WHERE id = %s",
            (password_hash, admin_id)
        ) > 0

    def delete_admin(self, admin_id: int) -> bool:
        return self._execute("DELETE FROM admin_users WHERE id = %s", (admin_id,)) > 0

    # =========================================================================
    # STUDENT REGISTRATIONS
    # =========================================================================

    def create_student_registration(self, data: Dict[str, Any]) -> Dict:
        columns = ", ".join(REGISTRATION_FIELDS)
        placeholders = ", ".join(["%s"] * len(REGISTRATION_FIELDS))
        return self._fetch_one(
            f"INSERT INTO student_registrations ({columns}) VALUES ({placeholders}) RETURNING *",
            [data.get(field) for field in REGISTRATION_FIELDS]
        )

    def get_student_registration_by_id(self, registration_id: int) -> Optional[Dict]:
        return self._fetch_one("SELECT * FROM student_registrations WHERE id = %s", (registration_id,))

    def get_all_student_registrations(self) -> List[Dict]:
        return self.get_student_registrations({})

    def get_student_registrations(self, filters: Dict[str, Any] = None) -> List[Dict]:
        filters = filters or {}
        clauses, params = build_registration_filters(filters)
        paging, paging_params = limit_offset_sql(filters)
        return self._fetch_all(
            f"SELECT * FROM student_registrations{where_sql(clauses)}"
            f" ORDER BY created_at DESC, id DESC{paging}",
            params + paging_params
        )

    def count_student_registrations(self, filters: Dict[str, Any] = None) -> int:
        clauses, params = build_registration_filters(filters or {})
        row = self._fetch_one(
            f"SELECT COUNT(*) AS total FROM student_registrations{where_sql(clauses)}", params
        )
        return row["total"] if row else 0

    def get_student_registrations_by_ids(self, ids: List[int]) -> List[Dict]:
        if not ids:
            return []
        return self._fetch_all(
            "SELECT * FROM student_registrations WHERE id = ANY(%s) ORDER BY created_at DESC, id DESC",
            ([int(i) for i in ids],)
        )

    def get_recent_registrations(self, limit: int = 5) -> List[Dict]:
        return self.get_student_registrations({"limit": limit})

    def get_registration_programs(self) -> List[str]:
        rows = self._fetch_all(
            "SELECT DISTINCT program_pilihan FROM student_registrations ORDER BY program_pilihan"
        )
        return [row["program_pilihan"] for row in rows]

    def update_student_registration_status(self, registration_id: int, status: str) -> bool:
        return self._execute("""
            UPDATE student_registrations
            SET status = %s, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
        """, (status, registration_id)) > 0

    def delete_student_registration(self, registration_id: int) -> bool:
        return self._execute("DELETE FROM student_registrations WHERE id = %s", (registration_id,)) > 0

    def get_registration_stats(self) -> Dict:
        return self._fetch_one("""
            SELECT
                COUNT(*) AS total,
                COUNT(CASE WHEN status = 'pending' THEN 1 END) AS pending,
                COUNT(CASE WHEN status = 'approved' THEN 1 END) AS approved,
                COUNT(CASE WHEN status = 'rejected' THEN 1 END) AS rejected,
                COUNT(CASE WHEN DATE(created_at) = CURRENT_DATE THEN 1 END) AS today
            FROM student_registrations
        """)

    # =========================================================================
    # ACTIVITY LOGS
    # =========================================================================

    def log_activity(self, admin_id: Optional[int], action: str, description: str,
                     ip_address: str = None, user_agent: str = None) -> bool:
        return self._execute("""
            INSERT INTO activity_logs (admin_id, action, description, ip_address, user_agent)
            VALUES (%s, %s, %s, %s, %s)
        """, (admin_id, action, description, ip_address, user_agent)) > 0

    def get_activity_logs(self, filters: Dict[str, Any] = None) -> List[Dict]:
        clauses, params = build_activity_filters(filters or {})
        return self._fetch_all(f"""
            SELECT al.*, au.username, au.full_name
            FROM activity_logs al
            LEFT JOIN admin_users au ON al.admin_id = au.id
            {where_sql(clauses)}
            ORDER BY al.created_at DESC, al.id DESC
            LIMIT {ACTIVITY_LOG_LIMIT}
        """, params)

    def cleanup_old_logs(self, days_to_keep: int = 30) -> int:
        """Remove activity logs older than the retention window"""
        return self._execute("""
            DELETE FROM activity_logs
            WHERE created_at < CURRENT_TIMESTAMP - make_interval(days => %s)
        """, (int(days_to_keep),))

    # =========================================================================
    # NEWS
    # =========================================================================

    _NEWS_SELECT = """
        SELECT n.*, au.username AS author_name, au.full_name AS author_full_name
        FROM news n
        LEFT JOIN admin_users au ON n.author_id = au.id
    """

    def create_news(self, data: Dict[str, Any]) -> Dict:
        status = data.get("status", "draft")
        return self._fetch_one("""
            INSERT INTO news (title, slug, content, excerpt, featured_image, category,
                              author_id, status, published_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s,
                    CASE WHEN %s = 'published' THEN CURRENT_TIMESTAMP ELSE NULL END)
            RETURNING *
        """, (
            data["title"], data["slug"], data["content"], data.get("excerpt"),
            data.get("featured_image"), data.get("category") or "umum",
            data.get("author_id"), status, status,
        ))

    def get_all_news(self, filters: Dict[str, Any] = None) -> List[Dict]:
        filters = filters or {}
        clauses, params = build_news_filters(filters)
        paging, paging_params = limit_offset_sql(filters)
        return self._fetch_all(
            f"{self._NEWS_SELECT}{where_sql(clauses)} ORDER BY n.created_at DESC, n.id DESC{paging}",
            params + paging_params
        )

    def count_news(self, filters: Dict[str, Any] = None) -> int:
        clauses, params = build_news_filters(filters or {})
        row = self._fetch_one(f"SELECT COUNT(*) AS total FROM news n{where_sql(clauses)}", params)
        return row["total"] if row else 0

    def get_published_news(self, limit: int = None, offset: int = None) -> List[Dict]:
        paging, paging_params = limit_offset_sql({"limit": limit, "offset": offset})
        return self._fetch_all(f"""
            {self._NEWS_SELECT}
            WHERE n.status = 'published' AND n.published_at <= CURRENT_TIMESTAMP
            ORDER BY n.published_at DESC, n.id DESC{paging}
        """, paging_params)

    def count_published_news(self) -> int:
        row = self._fetch_one("""
            SELECT COUNT(*) AS total FROM news
            WHERE status = 'published' AND published_at <= CURRENT_TIMESTAMP
        """)
        return row["total"] if row else 0

    def get_news_by_id(self, news_id: int) -> Optional[Dict]:
        return self._fetch_one(f"{self._NEWS_SELECT} WHERE n.id = %s", (news_id,))

    def get_news_by_slug(self, slug: str) -> Optional[Dict]:
        return self._fetch_one(
            f"{self._NEWS_SELECT} WHERE n.slug = %s AND n.status = 'published'", (slug,)
        )

    def slug_exists(self, slug: str, exclude_id: int = None) -> bool:
        if exclude_id is None:
            row = self._fetch_one("SELECT id FROM news WHERE slug = %s", (slug,))
        else:
            row = self._fetch_one("SELECT id FROM news WHERE slug = %s AND id <> %s", (slug, exclude_id))
        return row is not None

    def update_news(self, news_id: int, data: Dict[str, Any]) -> bool:
        # published_at is stamped once, on the first transition into 'published'
        return self._execute("""
            UPDATE news
            SET title = %s, slug = %s, content = %s, excerpt = %s, featured_image = %s,
                category = %s, status = %s,
                published_at = CASE WHEN %s = 'published'
                                    THEN COALESCE(published_at, CURRENT_TIMESTAMP)
                                    ELSE published_at END,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
        """, (
            data["title"], data["slug"], data["content"], data.get("excerpt"),
            data.get("featured_image"), data.get("category") or "umum",
            data["status"], data["status"], news_id,
        )) > 0

    def delete_news(self, news_id: int) -> bool:
        return self._execute("DELETE FROM news WHERE id = %s", (news_id,)) > 0

    def get_news_stats(self) -> Dict:
        return self._fetch_one("""
            SELECT
                COUNT(*) AS total,
                COUNT(CASE WHEN status = 'published' THEN 1 END) AS published,
                COUNT(CASE WHEN status = 'draft' THEN 1 END) AS draft,
                COUNT(CASE WHEN status = 'archived' THEN 1 END) AS archived,
                COUNT(CASE WHEN DATE(created_at) = CURRENT_DATE THEN 1 END) AS today
            FROM news
        """)

    # =========================================================================
    # TESTIMONIALS
    # =========================================================================

    def get_testimonials(self, active_only: bool = False) -> List[Dict]:
        condition = " WHERE is_active = TRUE" if active_only else ""
        return self._fetch_all(
            f"SELECT * FROM testimonials{condition} ORDER BY display_order ASC, created_at DESC, id DESC"
        )

    def get_testimonial_by_id(self, testimonial_id: int) -> Optional[Dict]:
        return self._fetch_one("SELECT * FROM testimonials WHERE id = %s", (testimonial_id,))

    def create_testimonial(self, data: Dict[str, Any]) -> Dict:
        return self._fetch_one("""
            INSERT INTO testimonials (name, role, content, image, rating, is_active, display_order)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING *
        """, (
            data["name"], data.get("role"), data["content"], data.get("image"),
            data["rating"], data["is_active"], data["display_order"],
        ))

    def update_testimonial(self, testimonial_id: int, data: Dict[str, Any]) -> bool:
        return self._execute("""
            UPDATE testimonials
            SET name = %s, role = %s, content = %s, image = %s, rating = %s,
                is_active = %s, display_order = %s, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
        """, (
            data["name"], data.get("role"), data["content"], data.get("image"),
            data["rating"], data["is_active"], data["display_order"], testimonial_id,
        )) > 0

    def delete_testimonial(self, testimonial_id: int) -> bool:
        return self._execute("DELETE FROM testimonials WHERE id = %s", (testimonial_id,)) > 0

    # =========================================================================
    # SLIDERS
    # =========================================================================

    def get_sliders(self, active_only: bool = False) -> List[Dict]:
        condition = " WHERE is_active = TRUE" if active_only else ""
        return self._fetch_all(
            f"SELECT * FROM sliders{condition} ORDER BY display_order ASC, created_at DESC, id DESC"
        )

    def get_slider_by_id(self, slider_id: int) -> Optional[Dict]:
        return self._fetch_one("SELECT * FROM sliders WHERE id = %s", (slider_id,))

    def create_slider(self, data: Dict[str, Any]) -> Dict:
        return self._fetch_one("""
            INSERT INTO sliders (title, subtitle, image, link_url, link_text, is_active, display_order)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING *
        """, (
            data["title"], data.get("subtitle"), data["image"], data.get("link_url"),
            data.get("link_text"), data["is_active"], data["display_order"],
        ))

    def update_slider(self, slider_id: int, data: Dict[str, Any]) -> bool:
        return self._execute("""
            UPDATE sliders
            SET title = %s, subtitle = %s, image = %s, link_url = %s, link_text = %s,
                is_active = %s, display_order = %s, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
        """, (
            data["title"], data.get("subtitle"), data["image"], data.get("link_url"),
            data.get("link_text"), data["is_active"], data["display_order"], slider_id,
        )) > 0

    def delete_slider(self, slider_id: int) -> bool:
        return self._execute("DELETE FROM sliders WHERE id = %s", (slider_id,)) > 0

    # =========================================================================
    # CONTACT & CONSULTATION MESSAGES
    # =========================================================================

    def create_contact_message(self, data: Dict[str, Any]) -> Dict:
        return self._fetch_one("""
            INSERT INTO contact_messages (message_type, name, email, phone, consultation_type, message)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING *
        """, (
            data.get("message_type", "contact"), data["name"], data["email"],
            data.get("phone"), data.get("consultation_type"), data["message"],
        ))

    def get_contact_messages(self, message_type: str = None, unread_only: bool = False) -> List[Dict]:
        clauses, params = [], []
        if _is_set(message_type):
            clauses.append("message_type = %s")
            params.append(message_type)
        if unread_only:
            clauses.append("is_read = FALSE")
        return self._fetch_all(
            f"SELECT * FROM contact_messages{where_sql(clauses)} ORDER BY created_at DESC, id DESC",
            params
        )

    def mark_contact_message_read(self, message_id: int) -> bool:
        return self._execute("UPDATE contact_messages SET is_read = TRUE WHERE id = %s", (message_id,)) > 0

    def delete_contact_message(self, message_id: int) -> bool:
        return self._execute("DELETE FROM contact_messages WHERE id = %s", (message_id,)) > 0

    def close(self):
        """Close all connections in pool"""
        if self._pool:
            self._pool.closeall()
            self._pool = None
        self.available = False


# =============================================================================
# SINGLETON
# =============================================================================

_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get database manager singleton"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def init_database(database_url: str = None) -> DatabaseManager:
    """Initialize database with optional custom URL"""
    global _db_manager
    _db_manager = DatabaseManager(database_url=database_url)
    return _db_manager
