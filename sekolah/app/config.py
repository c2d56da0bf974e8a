"""
Configuration for the school site.

Values live in ``sekolah/config/app_config.yaml``; placeholders of the form
``${VAR}`` or ``${VAR:default}`` are filled from the environment (``.env`` is
loaded first). A filled placeholder stays a string; ``Settings`` converts the
keys that are numbers or flags.
"""

import os
import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import yaml
from dotenv import load_dotenv

load_dotenv()

ENV_PLACEHOLDER = re.compile(r'\$\{([^}:]+)(?::([^}]*))?\}')
TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def as_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"Expected a number in config, got {value!r}")
    return int(value)


def as_bool(value: Any, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"Expected true/false in config, got {value!r}")


def as_str(value: Any, default: str) -> str:
    if value is None:
        return default
    return str(value)


def resolve_env(value: Any) -> Any:
    """Walk a loaded YAML tree and fill ${VAR:default} placeholders"""
    if isinstance(value, dict):
        return {key: resolve_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_env(item) for item in value]
    if not isinstance(value, str) or "${" not in value:
        return value

    return ENV_PLACEHOLDER.sub(
        lambda m: os.getenv(m.group(1), m.group(2) or ""),
        value
    )


def dig(tree: Dict[str, Any], dotted_key: str, default: Any = None) -> Any:
    node: Any = tree
    for part in dotted_key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


# =============================================================================
# YAML CONFIG PROVIDER
# =============================================================================

class YAMLConfigProvider:
    """Reads YAML files from one directory, re-reading a file when it changes on disk"""

    def __init__(self, config_dir: str = None):
        if config_dir is None:
            config_dir = os.getenv("SEKOLAH_CONFIG_DIR") or Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)
        self._loaded: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def _path_for(self, name: str) -> Path:
        if not name.endswith(('.yaml', '.yml')):
            name = f"{name}.yaml"
        return self.config_dir / name

    def load(self, name: str, use_cache: bool = True) -> Dict[str, Any]:
        path = self._path_for(name)
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")

        mtime = path.stat().st_mtime
        with self._lock:
            cached = self._loaded.get(path.name)
            if use_cache and cached and cached[0] == mtime:
                return cached[1]

        with open(path, 'r', encoding='utf-8') as handle:
            data = resolve_env(yaml.safe_load(handle) or {})

        with self._lock:
            self._loaded[path.name] = (mtime, data)
        return data

    def reload(self):
        with self._lock:
            self._loaded.clear()

    def get(self, name: str, key: str, default: Any = None) -> Any:
        """Dot-notation lookup, e.g. get("app_config", "security.default_admin.username")"""
        return dig(self.load(name), key, default)


_yaml_loader: Optional[YAMLConfigProvider] = None


def get_yaml_loader() -> YAMLConfigProvider:
    global _yaml_loader
    if _yaml_loader is None:
        _yaml_loader = YAMLConfigProvider()
    return _yaml_loader


def get_app_config() -> Dict[str, Any]:
    return get_yaml_loader().load("app_config")


# =============================================================================
# SETTINGS CLASS
# =============================================================================

class Settings:
    """Typed shortcuts over app_config.yaml"""

    def __init__(self, provider: YAMLConfigProvider = None):
        self._provider = provider
        self._app_config = None

    def _section(self, name: str) -> Dict[str, Any]:
        if self._app_config is None:
            if self._provider is not None:
                self._app_config = self._provider.load("app_config")
            else:
                self._app_config = get_app_config()
        return self._app_config.get(name) or {}

    # ==========================================================================
    # RAW CONFIG SECTIONS
    # ==========================================================================

    @property
    def app(self) -> Dict[str, Any]:
        return self._section("app")

    @property
    def server(self) -> Dict[str, Any]:
        return self._section("server")

    @property
    def database(self) -> Dict[str, Any]:
        return self._section("database")

    @property
    def security(self) -> Dict[str, Any]:
        return self._section("security")

    @property
    def activity_log(self) -> Dict[str, Any]:
        return self._section("activity_log")

    @property
    def registration(self) -> Dict[str, Any]:
        return self._section("registration")

    @property
    def pagination(self) -> Dict[str, Any]:
        return self._section("pagination")

    # ==========================================================================
    # COMMON SHORTCUTS - APP & SERVER
    # ==========================================================================

    @property
    def debug(self) -> bool:
        return as_bool(self.app.get("debug"), False)

    @property
    def app_name(self) -> str:
        return as_str(self.app.get("name"), "SMPIT Baituljannah")

    @property
    def app_version(self) -> str:
        return as_str(self.app.get("version"), "1.0.0")

    @property
    def host(self) -> str:
        return as_str(self.server.get("host"), "0.0.0.0")

    @property
    def port(self) -> int:
        return as_int(self.server.get("port"), 3002)

    @property
    def admin_prefix(self) -> str:
        return as_str(self.server.get("admin_prefix"), "/admin")

    @property
    def admin_login_path(self) -> str:
        return f"{self.admin_prefix}/login"

    # ==========================================================================
    # COMMON SHORTCUTS - DATABASE
    # ==========================================================================

    @property
    def database_name(self) -> str:
        return as_str(self.database.get("name"), "smp_baituljannah")

    def _dsn(self, dbname: str) -> str:
        db = self.database
        user = quote(as_str(db.get("user"), "postgres"), safe="")
        password = quote(as_str(db.get("password"), ""), safe="")
        host = as_str(db.get("host"), "localhost")
        port = as_int(db.get("port"), 5432)
        return f"postgresql://{user}:{password}@{host}:{port}/{quote(dbname, safe='')}"

    @property
    def database_url(self) -> str:
        url = self.database.get("url")
        if url:
            return str(url)
        return self._dsn(self.database_name)

    @property
    def maintenance_database_url(self) -> str:
        return self._dsn(as_str(self.database.get("maintenance_db"), "postgres"))

    @property
    def database_min_connections(self) -> int:
        return as_int(self.database.get("min_connections"), 1)

    @property
    def database_max_connections(self) -> int:
        return as_int(self.database.get("max_connections"), 10)

    @property
    def database_connect_timeout(self) -> int:
        return as_int(self.database.get("connect_timeout"), 10)

    @property
    def database_reconnect_cooldown(self) -> int:
        return as_int(self.database.get("reconnect_cooldown"), 30)

    # ==========================================================================
    # COMMON SHORTCUTS - SECURITY
    # ==========================================================================

    @property
    def secret_key(self) -> str:
        return as_str(self.security.get("secret_key"), "change-this-in-production")

    @property
    def session_max_age(self) -> int:
        return as_int(self.security.get("session_max_age"), 24 * 60 * 60)

    @property
    def https_only(self) -> bool:
        return as_bool(self.security.get("https_only"), False)

    @property
    def default_admin(self) -> Dict[str, Any]:
        return self.security.get("default_admin") or {}

    # ==========================================================================
    # COMMON SHORTCUTS - DOMAIN
    # ==========================================================================

    @property
    def log_retention_days(self) -> int:
        return as_int(self.activity_log.get("retention_days"), 30)

    @property
    def log_cleanup_hour(self) -> int:
        return as_int(self.activity_log.get("cleanup_hour"), 2)

    @property
    def min_graduation_year(self) -> int:
        return as_int(self.registration.get("min_graduation_year"), 2020)

    @property
    def programs(self) -> List[str]:
        return [str(program) for program in self.registration.get("programs") or []]

    @property
    def per_page(self) -> int:
        return as_int(self.pagination.get("per_page"), 10)

    def reload(self):
        """Reload all configs"""
        self._app_config = None
        if _yaml_loader:
            _yaml_loader.reload()


# Global settings instance
settings = Settings()
