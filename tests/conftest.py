"""
Shared fixtures: an in-memory stand-in for DatabaseManager and a TestClient
wired to it.
"""

import itertools
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from sekolah.app.auth import hash_password
from sekolah.app.exceptions import DatabaseUnavailable

ADMIN_PASSWORD = "admin123"


# =============================================================================
# FAKE DATABASE
# =============================================================================

def _matches(row, columns, term):
    if term is None or not str(term).strip():
        return True
    needle = str(term).strip().lower()
    return any(needle in str(row.get(column) or "").lower() for column in columns)


def _is_set(value):
    return value is not None and value != "" and value != "all"


def _window(rows, filters):
    limit = filters.get("limit")
    if limit is None or limit == "":
        return rows
    offset = int(filters.get("offset") or 0)
    return rows[offset:offset + int(limit)]


def _newest_first(rows):
    return sorted(rows, key=lambda r: (r["created_at"], r["id"]), reverse=True)


def _display_order(rows):
    rows = sorted(rows, key=lambda r: (r["created_at"], r["id"]), reverse=True)
    return sorted(rows, key=lambda r: r["display_order"])


class FakeDatabase:
    """Implements the DatabaseManager helper interface over dicts"""

    def __init__(self):
        self.admins = {}
        self.registrations = {}
        self.logs = []
        self.news = {}
        self.testimonials = {}
        self.sliders = {}
        self.messages = {}
        self.available = True
        self._ids = itertools.count(1)
        self._clock = datetime(2025, 1, 1, 8, 0, 0)

    def _next_id(self):
        return next(self._ids)

    def _now(self):
        self._clock += timedelta(seconds=1)
        return self._clock

    def ping(self):
        return True

    def reconnect(self):
        return True

    # ---- admins -------------------------------------------------------------

    def find_admin_by_id(self, admin_id):
        admin = self.admins.get(admin_id)
        return dict(admin) if admin else None

    def find_admin_by_username(self, username):
        return next((dict(a) for a in self.admins.values() if a["username"] == username), None)

    def find_admin_by_email(self, email):
        return next((dict(a) for a in self.admins.values() if a["email"] == email), None)

    def create_admin(self, username, email, password_hash, full_name, role="admin"):
        now = self._now()
        admin = {
            "id": self._next_id(), "username": username, "email": email, "password": password_hash,
            "full_name": full_name, "role": role, "created_at": now, "updated_at": now,
        }
        self.admins[admin["id"]] = admin
        return {k: v for k, v in admin.items() if k != "password"}

    def get_all_admins(self):
        return [{k: v for k, v in a.items() if k != "password"} for a in _newest_first(self.admins.values())]

    def update_admin(self, admin_id, username, email, full_name, role, password_hash=None):
        admin = self.admins.get(admin_id)
        if not admin:
            return False
        admin.update(username=username, email=email, full_name=full_name, role=role, updated_at=self._now())
        if password_hash:
            admin["password"] = password_hash
        return True

    def update_admin_password(self, admin_id, password_hash):
        if admin_id not in self.admins:
            return False
        self.admins[admin_id]["password"] = password_hash
        return True

    def delete_admin(self, admin_id):
        for log in self.logs:
            if log["admin_id"] == admin_id:
                log["admin_id"] = None
        return self.admins.pop(admin_id, None) is not None

    # ---- registrations ------------------------------------------------------

    def create_student_registration(self, data):
        now = self._now()
        registration = dict(data, id=self._next_id(), status="pending", created_at=now, updated_at=now)
        self.registrations[registration["id"]] = registration
        return dict(registration)

    def get_student_registration_by_id(self, registration_id):
        registration = self.registrations.get(registration_id)
        return dict(registration) if registration else None

    def _filter_registrations(self, filters):
        rows = self.registrations.values()
        if _is_set(filters.get("status")):
            rows = [r for r in rows if r["status"] == filters["status"]]
        if _is_set(filters.get("program")):
            rows = [r for r in rows if r["program_pilihan"] == filters["program"]]
        columns = ["nama_lengkap", "asal_sekolah", "email", "nama_ayah", "nama_ibu"]
        return [r for r in rows if _matches(r, columns, filters.get("search"))]

    def get_student_registrations(self, filters=None):
        filters = filters or {}
        rows = _newest_first(self._filter_registrations(filters))
        return [dict(r) for r in _window(rows, filters)]

    def get_all_student_registrations(self):
        return self.get_student_registrations({})

    def count_student_registrations(self, filters=None):
        return len(self._filter_registrations(filters or {}))

    def get_student_registrations_by_ids(self, ids):
        rows = [r for r in self.registrations.values() if r["id"] in set(ids)]
        return [dict(r) for r in _newest_first(rows)]

    def get_recent_registrations(self, limit=5):
        return self.get_student_registrations({"limit": limit})

    def get_registration_programs(self):
        return sorted({r["program_pilihan"] for r in self.registrations.values()})

    def update_student_registration_status(self, registration_id, status):
        registration = self.registrations.get(registration_id)
        if not registration:
            return False
        registration.update(status=status, updated_at=self._now())
        return True

    def delete_student_registration(self, registration_id):
        return self.registrations.pop(registration_id, None) is not None

    def get_registration_stats(self):
        rows = list(self.registrations.values())
        return {
            "total": len(rows),
            "pending": sum(1 for r in rows if r["status"] == "pending"),
            "approved": sum(1 for r in rows if r["status"] == "approved"),
            "rejected": sum(1 for r in rows if r["status"] == "rejected"),
            "today": 0,
        }

    # ---- activity logs ------------------------------------------------------

    def log_activity(self, admin_id, action, description, ip_address=None, user_agent=None):
        self.logs.append({
            "id": self._next_id(), "admin_id": admin_id, "action": action, "description": description,
            "ip_address": ip_address, "user_agent": user_agent, "created_at": self._now(),
        })
        return True

    def get_activity_logs(self, filters=None):
        filters = filters or {}
        rows = self.logs
        if _is_set(filters.get("action")):
            rows = [r for r in rows if filters["action"].lower() in r["action"].lower()]
        if filters.get("admin_id"):
            rows = [r for r in rows if r["admin_id"] == int(filters["admin_id"])]
        return [dict(r) for r in _newest_first(rows)][:100]

    def cleanup_old_logs(self, days_to_keep=30):
        cutoff = self._clock - timedelta(days=days_to_keep)
        before = len(self.logs)
        self.logs = [log for log in self.logs if log["created_at"] >= cutoff]
        return before - len(self.logs)

    # ---- news ---------------------------------------------------------------

    def create_news(self, data):
        now = self._now()
        news = dict(
            data, id=self._next_id(), created_at=now, updated_at=now,
            published_at=now if data.get("status") == "published" else None,
        )
        self.news[news["id"]] = news
        return dict(news)

    def _filter_news(self, filters):
        rows = self.news.values()
        if _is_set(filters.get("status")):
            rows = [n for n in rows if n["status"] == filters["status"]]
        if _is_set(filters.get("author_id")):
            rows = [n for n in rows if n["author_id"] == int(filters["author_id"])]
        if _is_set(filters.get("category")):
            rows = [n for n in rows if n.get("category") == filters["category"]]
        return [n for n in rows if _matches(n, ["title", "content", "excerpt"], filters.get("search"))]

    def get_all_news(self, filters=None):
        filters = filters or {}
        return [dict(n) for n in _window(_newest_first(self._filter_news(filters)), filters)]

    def count_news(self, filters=None):
        return len(self._filter_news(filters or {}))

    def _published(self):
        rows = [n for n in self.news.values() if n["status"] == "published" and n["published_at"]]
        return sorted(rows, key=lambda n: (n["published_at"], n["id"]), reverse=True)

    def get_published_news(self, limit=None, offset=None):
        return [dict(n) for n in _window(self._published(), {"limit": limit, "offset": offset})]

    def count_published_news(self):
        return len(self._published())

    def get_news_by_id(self, news_id):
        news = self.news.get(news_id)
        return dict(news) if news else None

    def get_news_by_slug(self, slug):
        return next((dict(n) for n in self._published() if n["slug"] == slug), None)

    def slug_exists(self, slug, exclude_id=None):
        return any(n["slug"] == slug and n["id"] != exclude_id for n in self.news.values())

    def update_news(self, news_id, data):
        news = self.news.get(news_id)
        if not news:
            return False
        news.update(data, updated_at=self._now())
        if data["status"] == "published" and news["published_at"] is None:
            news["published_at"] = self._now()
        return True

    def delete_news(self, news_id):
        return self.news.pop(news_id, None) is not None

    def get_news_stats(self):
        rows = list(self.news.values())
        return {
            "total": len(rows),
            "published": sum(1 for n in rows if n["status"] == "published"),
            "draft": sum(1 for n in rows if n["status"] == "draft"),
            "archived": sum(1 for n in rows if n["status"] == "archived"),
            "today": 0,
        }

    # ---- testimonials & sliders --------------------------------------------

    def _create_content(self, table, data):
        now = self._now()
        row = dict(data, id=self._next_id(), created_at=now, updated_at=now)
        table[row["id"]] = row
        return dict(row)

    def _update_content(self, table, row_id, data):
        if row_id not in table:
            return False
        table[row_id].update(data, updated_at=self._now())
        return True

    def get_testimonials(self, active_only=False):
        rows = [t for t in self.testimonials.values() if t["is_active"] or not active_only]
        return [dict(t) for t in _display_order(rows)]

    def get_testimonial_by_id(self, testimonial_id):
        row = self.testimonials.get(testimonial_id)
        return dict(row) if row else None

    def create_testimonial(self, data):
        return self._create_content(self.testimonials, data)

    def update_testimonial(self, testimonial_id, data):
        return self._update_content(self.testimonials, testimonial_id, data)

    def delete_testimonial(self, testimonial_id):
        return self.testimonials.pop(testimonial_id, None) is not None

    def get_sliders(self, active_only=False):
        rows = [s for s in self.sliders.values() if s["is_active"] or not active_only]
        return [dict(s) for s in _display_order(rows)]

    def get_slider_by_id(self, slider_id):
        row = self.sliders.get(slider_id)
        return dict(row) if row else None

    def create_slider(self, data):
        return self._create_content(self.sliders, data)

    def update_slider(self, slider_id, data):
        return self._update_content(self.sliders, slider_id, data)

    def delete_slider(self, slider_id):
        return self.sliders.pop(slider_id, None) is not None

    # ---- messages -----------------------------------------------------------

    def create_contact_message(self, data):
        row = {
            "id": self._next_id(), "message_type": data.get("message_type", "contact"),
            "name": data["name"], "email": data["email"], "phone": data.get("phone"),
            "consultation_type": data.get("consultation_type"), "message": data["message"],
            "is_read": False, "created_at": self._now(),
        }
        self.messages[row["id"]] = row
        return dict(row)

    def get_contact_messages(self, message_type=None, unread_only=False):
        rows = self.messages.values()
        if _is_set(message_type):
            rows = [m for m in rows if m["message_type"] == message_type]
        if unread_only:
            rows = [m for m in rows if not m["is_read"]]
        return [dict(m) for m in _newest_first(rows)]

    def mark_contact_message_read(self, message_id):
        if message_id not in self.messages:
            return False
        self.messages[message_id]["is_read"] = True
        return True

    def delete_contact_message(self, message_id):
        return self.messages.pop(message_id, None) is not None


class UnavailableDatabase:
    """Every helper fails the way a manager in degraded mode does"""

    available = False

    def reconnect(self):
        return False

    def __getattr__(self, name):
        def unavailable(*args, **kwargs):
            raise DatabaseUnavailable()
        return unavailable


# =============================================================================
# FIXTURES
# =============================================================================

def registration_data(**overrides):
    """Snake_case registration row as stored by create_student_registration"""
    data = {
        "nama_lengkap": "Ahmad Fauzi",
        "tempat_lahir": "Bekasi",
        "tanggal_lahir": "2012-05-15",
        "jenis_kelamin": "Laki-laki",
        "agama": "Islam",
        "alamat": "Jl. Merdeka No. 1",
        "no_telepon": None,
        "email": None,
        "asal_sekolah": "SDIT Al-Hikmah",
        "alamat_sekolah": "Jl. Pendidikan No. 5",
        "tahun_lulus": 2024,
        "nama_ayah": "Budi Santoso",
        "nama_ibu": "Siti Aminah",
        "pekerjaan_ayah": "Wiraswasta",
        "pekerjaan_ibu": "Guru",
        "no_telepon_ortu": "081234567890",
        "email_ortu": None,
        "program_pilihan": "Tahfidz",
        "motivasi": None,
    }
    data.update(overrides)
    return data


def registration_form(**overrides):
    """camelCase payload as posted by the public registration form"""
    form = {
        "namaLengkap": "Ahmad Fauzi",
        "tempatLahir": "Bekasi",
        "tanggalLahir": "2012-05-15",
        "jenisKelamin": "Laki-laki",
        "agama": "Islam",
        "alamat": "Jl. Merdeka No. 1",
        "asalSekolah": "SDIT Al-Hikmah",
        "alamatSekolah": "Jl. Pendidikan No. 5",
        "tahunLulus": 2024,
        "namaAyah": "Budi Santoso",
        "namaIbu": "Siti Aminah",
        "pekerjaanAyah": "Wiraswasta",
        "pekerjaanIbu": "Guru",
        "noTeleponOrtu": "081234567890",
        "programPilihan": "Tahfidz",
    }
    form.update(overrides)
    return form


@pytest.fixture
def db():
    fake = FakeDatabase()
    fake.create_admin("admin", "admin@smpbaituljannah.sch.id", hash_password(ADMIN_PASSWORD),
                      "Administrator", "super_admin")
    return fake


@pytest.fixture
def app():
    from main import app as fastapi_app
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app, db):
    from sekolah.api.deps import get_db

    app.dependency_overrides[get_db] = lambda: db
    return TestClient(app)


@pytest.fixture
def admin_client(client):
    response = client.post("/admin/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client
