from typing import Any, Dict, List, Optional
from claimkin.utils.db import get_db_connection, row_to_dict, rows_to_dicts

ADMIN_COLS = """
    id, email, name, role, is_active, display_name, linkedin_url, bio, phone,
    invited_by, last_login_at, created_at, updated_at
"""

PROFILE_FIELDS = ("display_name", "linkedin_url", "bio", "phone")
MANAGED_FIELDS = ("name", "role", "is_active")


def get_admin_user(admin_id) -> Optional[Dict[str, Any]]:
    if not admin_id:
        return None
    sql = f"SELECT {ADMIN_COLS} FROM admin_users WHERE id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (admin_id,))
        return row_to_dict(cur, cur.fetchone())


def get_admin_by_email(email: str) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {ADMIN_COLS} FROM admin_users WHERE email = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, ((email or "").strip().lower(),))
        return row_to_dict(cur, cur.fetchone())


def list_admin_users() -> List[Dict[str, Any]]:
    sql = f"SELECT {ADMIN_COLS} FROM admin_users ORDER BY created_at ASC"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql)
        return rows_to_dicts(cur, cur.fetchall())


def list_active_admins() -> List[Dict[str, Any]]:
    sql = """
    SELECT id, email, name, role FROM admin_users
    WHERE is_active = true
    ORDER BY COALESCE(name, email)
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql)
        return rows_to_dicts(cur, cur.fetchall())


def create_admin_user(
    email: str, name: Optional[str], role: str, invited_by=None
) -> Dict[str, Any]:
    sql = f"""
    INSERT INTO admin_users (email, name, role, invited_by)
    VALUES (%s, %s, %s, %s)
    RETURNING {ADMIN_COLS}
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (email.strip().lower(), name, role, invited_by))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def _update(admin_id, allowed, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    sets, vals = [], []
    for k in allowed:
        if k in fields:
            sets.append(f"{k} = %s")
            vals.append(fields[k])
    if not sets:
        return get_admin_user(admin_id)
    sets.append("updated_at = now()")
    vals.append(admin_id)
    sql = f"UPDATE admin_users SET {', '.join(sets)} WHERE id = %s RETURNING {ADMIN_COLS}"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(vals))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def update_admin_user(admin_id, **fields) -> Optional[Dict[str, Any]]:
    return _update(admin_id, MANAGED_FIELDS, fields)


def update_profile(admin_id, **fields) -> Optional[Dict[str, Any]]:
    return _update(admin_id, PROFILE_FIELDS, fields)


def touch_last_login(admin_id) -> None:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            "UPDATE admin_users SET last_login_at = now() WHERE id = %s", (admin_id,)
        )
        conn.commit()


def count_campaigns_created_by(admin_id) -> int:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM campaigns WHERE created_by = %s", (admin_id,))
        return int(cur.fetchone()[0])


def delete_admin_user(admin_id) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM admin_users WHERE id = %s", (admin_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted
