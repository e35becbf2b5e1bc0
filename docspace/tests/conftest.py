import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "docspace_test.db"
    # Point docspace to this temp DB
    os.environ["DOCSPACE_DB_PATH"] = str(path)
    # Initialize schema
    from docspace.db import ensure_schema
    from docspace.logs import ensure_log_schema
    ensure_schema()
    ensure_log_schema()
    return str(path)


@pytest.fixture()
def ctx():
    from docspace.domain.context import RequestContext
    return RequestContext(org_id="org1", user_id="u1")


@pytest.fixture()
def admin_ctx():
    from docspace.domain.context import RequestContext
    return RequestContext(org_id="org1", user_id="admin", administrator=True)


@pytest.fixture()
def conn(tmp_db_path):
    from docspace.db import get_conn
    with get_conn() as c:
        yield c


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Clean tables before each test for isolation
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("DOCSPACE_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    tables = ["space", "permission", "group_member", "operation_log"]
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in tables:
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield
