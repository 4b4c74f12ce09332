"""Database connection layer.

Supports two modes:
- PostgreSQL when DATABASE_URL is set
- In-memory fallback for local development without DB

Holds the ``projects`` collection and the ``system_settings`` key/value
store, whose ``portfolio`` key is the single global portfolio settings
document. There are no transactions spanning calls and no batch writes;
concurrent updates are last-write-wins.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DATABASE_URL = os.environ.get("DATABASE_URL", "")

PORTFOLIO_SETTINGS_KEY = "portfolio"
LLM_DEFAULT_KEY = "llm_default"

# SQLSTATE for insufficient_privilege
_PG_PERMISSION_DENIED = "42501"


class StorePermissionError(Exception):
    """The store refused the operation for lack of permissions."""

    def __init__(self, message: str = "Missing or insufficient permissions."):
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Connection pool (lazy init)
# ---------------------------------------------------------------------------

_pool = None
_pool_init_done = False  # True once we've attempted to connect (success or failure)


def _get_pool():
    global _pool, _pool_init_done
    if _pool is not None:
        return _pool
    if _pool_init_done:
        return None  # Already tried and failed; no retry on every request
    _pool_init_done = True
    if not DATABASE_URL:
        logger.info("No DATABASE_URL set — using in-memory fallback")
        return None
    try:
        import psycopg2
        from psycopg2 import pool as pg_pool

        _pool = pg_pool.ThreadedConnectionPool(
            minconn=1,
            maxconn=5,
            dsn=DATABASE_URL,
            connect_timeout=5,
        )
        logger.info("PostgreSQL connection pool created")
        _run_migrations(_pool)
        return _pool
    except Exception as e:
        logger.warning("Failed to create PostgreSQL pool: %s — using in-memory fallback", e)
        return None


def _run_migrations(pool):
    """Create the tables this service needs if they are missing."""
    try:
        conn = pool.getconn()
        try:
            cur = conn.cursor()
            cur.execute(
                "CREATE TABLE IF NOT EXISTS projects ("
                "  id UUID PRIMARY KEY DEFAULT gen_random_uuid(),"
                "  user_id TEXT NOT NULL,"
                "  user_email TEXT NOT NULL DEFAULT '',"
                "  user_name TEXT,"
                "  contact_email TEXT,"
                "  title TEXT NOT NULL,"
                "  description TEXT NOT NULL DEFAULT '',"
                "  budget DOUBLE PRECISION NOT NULL DEFAULT 0,"
                "  status TEXT NOT NULL DEFAULT 'PENDING',"
                "  payment_status TEXT NOT NULL DEFAULT 'UNPAID',"
                "  is_free_trial BOOLEAN NOT NULL DEFAULT FALSE,"
                "  payment_method TEXT,"
                "  sender_name TEXT,"
                "  transaction_id TEXT,"
                "  created_at TIMESTAMPTZ NOT NULL DEFAULT now(),"
                "  updated_at TIMESTAMPTZ NOT NULL DEFAULT now()"
                ")"
            )
            cur.execute("CREATE INDEX IF NOT EXISTS projects_user_id_idx ON projects (user_id)")
            cur.execute(
                "CREATE TABLE IF NOT EXISTS system_settings ("
                "  key TEXT PRIMARY KEY,"
                "  value JSONB NOT NULL,"
                "  updated_at TIMESTAMPTZ NOT NULL DEFAULT now()"
                ")"
            )
            conn.commit()
            logger.info("Migrations applied (projects, system_settings)")
        except Exception as e:
            conn.rollback()
            logger.warning("Migration failed (non-fatal): %s", e)
        finally:
            pool.putconn(conn)
    except Exception as e:
        logger.warning("Could not run migrations: %s", e)


@contextmanager
def get_conn():
    """Yield a PostgreSQL connection from the pool."""
    pool = _get_pool()
    if pool is None:
        yield None
        return
    conn = pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception as e:
        conn.rollback()
        if getattr(e, "pgcode", None) == _PG_PERMISSION_DENIED:
            raise StorePermissionError(str(e).strip()) from e
        raise
    finally:
        pool.putconn(conn)


# ---------------------------------------------------------------------------
# In-memory fallback stores
# ---------------------------------------------------------------------------

_mem_projects: Dict[str, dict] = {}
_mem_system_settings: Dict[str, Any] = {}


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _uuid() -> str:
    return str(uuid.uuid4())


def _use_pg() -> bool:
    return _get_pool() is not None


def _ts(value) -> str:
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


# ===================================================================
# Projects
# ===================================================================

_PROJECT_COLS = (
    "id, user_id, user_email, user_name, contact_email, title, description, "
    "budget, status, payment_status, is_free_trial, payment_method, "
    "sender_name, transaction_id, created_at, updated_at"
)

_CREATE_FIELDS = (
    "user_id", "user_email", "user_name", "contact_email", "title",
    "description", "budget", "status", "payment_status", "is_free_trial",
)

# Fields a partial update may touch. created_at and is_free_trial are
# fixed at creation.
_UPDATABLE_FIELDS = (
    "status", "payment_status", "payment_method", "sender_name", "transaction_id",
)


def create_project(**fields) -> dict:
    """Insert a new project; the store assigns ``id`` and ``created_at``."""
    values = {k: fields.get(k) for k in _CREATE_FIELDS}
    if _use_pg():
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute(
                f"INSERT INTO projects ({', '.join(_CREATE_FIELDS)}) "
                f"VALUES ({', '.join(['%s'] * len(_CREATE_FIELDS))}) "
                f"RETURNING {_PROJECT_COLS}",
                [values[k] for k in _CREATE_FIELDS],
            )
            return _project_row_to_dict(cur.fetchone())
    else:
        pid = _uuid()
        now = _now_iso()
        p = {
            "id": pid, **values,
            "payment_method": None, "sender_name": None, "transaction_id": None,
            "created_at": now, "updated_at": now,
        }
        _mem_projects[pid] = p
        return dict(p)


def get_project(project_id: str) -> Optional[dict]:
    if _use_pg():
        try:
            uuid.UUID(project_id)
        except ValueError:
            return None
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_PROJECT_COLS} FROM projects WHERE id = %s", (project_id,))
            row = cur.fetchone()
            return _project_row_to_dict(row) if row else None
    else:
        p = _mem_projects.get(project_id)
        return dict(p) if p else None


def list_projects() -> List[dict]:
    """All projects, newest first."""
    if _use_pg():
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_PROJECT_COLS} FROM projects ORDER BY created_at DESC")
            return [_project_row_to_dict(r) for r in cur.fetchall()]
    else:
        return _newest_first(_mem_projects.values())


def list_projects_by_owner(user_id: str) -> List[dict]:
    """A single user's projects, newest first."""
    if _use_pg():
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute(
                f"SELECT {_PROJECT_COLS} FROM projects WHERE user_id = %s "
                f"ORDER BY created_at DESC",
                (user_id,),
            )
            return [_project_row_to_dict(r) for r in cur.fetchall()]
    else:
        return _newest_first(p for p in _mem_projects.values() if p["user_id"] == user_id)


def count_projects_by_owner(user_id: str) -> int:
    if _use_pg():
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM projects WHERE user_id = %s", (user_id,))
            return int(cur.fetchone()[0])
    else:
        return sum(1 for p in _mem_projects.values() if p["user_id"] == user_id)


def update_project(project_id: str, **kwargs) -> Optional[dict]:
    """Partial update. Unknown fields are ignored; returns the updated record."""
    changes = {k: v for k, v in kwargs.items() if k in _UPDATABLE_FIELDS}
    if not changes:
        return get_project(project_id)

    if _use_pg():
        sets = [f"{k} = %s" for k in changes]
        vals: list = list(changes.values())
        sets.append("updated_at = now()")
        vals.append(project_id)
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute(
                f"UPDATE projects SET {', '.join(sets)} WHERE id = %s "
                f"RETURNING {_PROJECT_COLS}",
                vals,
            )
            row = cur.fetchone()
            return _project_row_to_dict(row) if row else None
    else:
        p = _mem_projects.get(project_id)
        if p is None:
            return None
        p.update(changes)
        p["updated_at"] = _now_iso()
        return dict(p)


def _newest_first(projects) -> List[dict]:
    # Later inserts win timestamp ties.
    latest_inserted = list(projects)[::-1]
    return [dict(p) for p in sorted(latest_inserted, key=lambda p: p["created_at"], reverse=True)]


def _project_row_to_dict(row) -> dict:
    if row is None:
        return {}
    return {
        "id": str(row[0]), "user_id": row[1], "user_email": row[2] or "",
        "user_name": row[3], "contact_email": row[4] or row[2] or "",
        "title": row[5], "description": row[6] or "",
        "budget": float(row[7] or 0), "status": row[8],
        "payment_status": row[9], "is_free_trial": bool(row[10]),
        "payment_method": row[11], "sender_name": row[12],
        "transaction_id": row[13],
        "created_at": _ts(row[14]), "updated_at": _ts(row[15]),
    }


# ===================================================================
# System Settings
# ===================================================================

def get_system_setting(key: str) -> Optional[Any]:
    """Get a system setting value by key."""
    if _use_pg():
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute("SELECT value FROM system_settings WHERE key = %s", (key,))
            row = cur.fetchone()
            return row[0] if row else None
    else:
        return _mem_system_settings.get(key)


def set_system_setting(key: str, value: Any) -> None:
    """Set a system setting value (upsert)."""
    if _use_pg():
        with get_conn() as conn:
            cur = conn.cursor()
            cur.execute(
                "INSERT INTO system_settings (key, value, updated_at) VALUES (%s, %s, now()) "
                "ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = now()",
                (key, json.dumps(value)),
            )
    else:
        _mem_system_settings[key] = value


def get_portfolio_settings() -> dict:
    """Read the global portfolio settings document (defaults when absent)."""
    val = get_system_setting(PORTFOLIO_SETTINGS_KEY)
    if not isinstance(val, dict):
        val = {}
    return {
        "hosting_token": val.get("hosting_token") or "",
        "hidden_site_ids": list(val.get("hidden_site_ids") or []),
    }


def save_portfolio_settings(settings: dict, actor_role: str) -> dict:
    """Overwrite the portfolio settings document. Admins only."""
    if actor_role != "admin":
        raise StorePermissionError("Only administrators may change portfolio settings.")
    val = {
        "hosting_token": settings.get("hosting_token") or "",
        "hidden_site_ids": list(dict.fromkeys(settings.get("hidden_site_ids") or [])),
    }
    set_system_setting(PORTFOLIO_SETTINGS_KEY, val)
    return val


def get_llm_default() -> dict:
    """Get the system-wide LLM provider/model used for budget estimates."""
    val = get_system_setting(LLM_DEFAULT_KEY)
    if isinstance(val, dict) and val.get("provider"):
        return val
    return {"provider": "google", "model": "gemini-2.5-flash"}


def set_llm_default(provider: str, model: str) -> dict:
    """Set the system-wide LLM provider/model."""
    val = {"provider": provider, "model": model}
    set_system_setting(LLM_DEFAULT_KEY, val)
    return val
