from __future__ import annotations

# docspace/db.py
import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator
import os
import yaml

# DB path resolution order:
# 1) env DOCSPACE_DB_PATH (highest priority)
# 2) config.yaml test_db_path (when running under tests)
# 3) config.yaml db_path (production default)
# 4) fallback: docspace.db in the project root
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "docspace.db")

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS space (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  refid TEXT NOT NULL,
  name TEXT NOT NULL DEFAULT '',
  orgid TEXT NOT NULL,
  userid TEXT NOT NULL DEFAULT '',
  type INTEGER NOT NULL DEFAULT 2 CHECK (type IN (1, 2, 3)),
  lifecycle INTEGER NOT NULL DEFAULT 1 CHECK (lifecycle IN (0, 1, 2)),
  likes INTEGER NOT NULL DEFAULT 0,
  created TEXT NOT NULL,
  revised TEXT NOT NULL,
  UNIQUE (orgid, refid)
);
CREATE INDEX IF NOT EXISTS idx_space_org_name ON space(orgid, name);

CREATE TABLE IF NOT EXISTS permission (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  orgid TEXT NOT NULL,
  who TEXT NOT NULL,
  whoid TEXT NOT NULL,
  action TEXT NOT NULL,
  scope TEXT NOT NULL DEFAULT 'object',
  location TEXT NOT NULL,
  refid TEXT NOT NULL,
  created TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
CREATE INDEX IF NOT EXISTS idx_permission_lookup ON permission(orgid, location, action, who, whoid);

CREATE TABLE IF NOT EXISTS group_member (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  orgid TEXT NOT NULL,
  groupid TEXT NOT NULL,
  userid TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_group_member_group ON group_member(groupid, userid);
"""


def _config_path() -> str:
    return os.environ.get("DOCSPACE_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")


def _read_config_yaml() -> dict:
    cfg_path = _config_path()
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("ignoring unreadable config %s: %s", cfg_path, e)
        return {}
    if not isinstance(cfg, dict):
        return {}
    out = {}
    for k in ("db_path", "test_db_path"):
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    return out


def get_db_path() -> str:
    env_path = os.environ.get("DOCSPACE_DB_PATH")
    cfg = _read_config_yaml()
    cfg_db = cfg.get("db_path")
    cfg_test = cfg.get("test_db_path")
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and cfg_test:
        path = cfg_test
    elif cfg_db:
        path = cfg_db
    else:
        path = _ROOT_DB

    if path != ":memory:":
        dirn = os.path.dirname(path) or "."
        os.makedirs(dirn, exist_ok=True)
    return path


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite connection. An explicit db_path wins over get_db_path().
    Autocommit mode; wrap writes in transaction() for atomicity.
    """
    path = db_path or get_db_path()
    conn = sqlite3.connect(
        path,
        timeout=15.0,
        check_same_thread=False,
        isolation_level=None,
    )
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """BEGIN on entry, COMMIT on success, ROLLBACK and re-raise on error."""
    conn.execute("BEGIN")
    try:
        yield conn
    except Exception:
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as exc:
            logger.warning("db rollback failed: %s", exc, exc_info=True)
        raise
    else:
        conn.execute("COMMIT")


def ensure_schema(conn: sqlite3.Connection | None = None):
    if conn is not None:
        conn.executescript(SCHEMA)
        return
    with get_conn() as c:
        c.executescript(SCHEMA)
