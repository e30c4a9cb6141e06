from typing import Any, Dict, List, Optional
from claimkin.utils.db import get_db_connection, row_to_dict, rows_to_dicts

VISIBILITY_FIELDS = ("show_name", "show_linkedin", "show_bio", "show_phone", "show_email")
EDITABLE_FIELDS = ("label", "custom_message", "custom_display_name") + VISIBILITY_FIELDS


def list_gift_codes(admin_id, campaign_id) -> List[Dict[str, Any]]:
    sql = """
    SELECT * FROM admin_gift_codes
    WHERE admin_id = %s AND campaign_id = %s
    ORDER BY created_at ASC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (admin_id, campaign_id))
        return rows_to_dicts(cur, cur.fetchall())


def get_gift_code(gift_code_id) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT * FROM admin_gift_codes WHERE id = %s", (gift_code_id,))
        return row_to_dict(cur, cur.fetchone())


def find_gift_code(campaign_id, code: str) -> Optional[Dict[str, Any]]:
    """Gift code joined with its admin's profile."""
    sql = """
    SELECT g.*, a.email AS admin_email, a.name AS admin_name,
           a.display_name AS admin_display_name, a.linkedin_url AS admin_linkedin_url,
           a.bio AS admin_bio, a.phone AS admin_phone, a.is_active AS admin_is_active
    FROM admin_gift_codes g
    JOIN admin_users a ON a.id = g.admin_id
    WHERE g.campaign_id = %s AND g.code = %s
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, code))
        return row_to_dict(cur, cur.fetchone())


def insert_gift_code(admin_id, campaign_id, code: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    cols = ["admin_id", "campaign_id", "code"]
    vals = [admin_id, campaign_id, code]
    for k in EDITABLE_FIELDS:
        if k in fields:
            cols.append(k)
            vals.append(fields[k])
    placeholders = ", ".join(["%s"] * len(cols))
    sql = f"INSERT INTO admin_gift_codes ({', '.join(cols)}) VALUES ({placeholders}) RETURNING *"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(vals))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def update_gift_code(gift_code_id, **fields) -> Optional[Dict[str, Any]]:
    sets, vals = [], []
    for k in EDITABLE_FIELDS:
        if k in fields:
            sets.append(f"{k} = %s")
            vals.append(fields[k])
    if not sets:
        return get_gift_code(gift_code_id)
    sets.append("updated_at = now()")
    vals.append(gift_code_id)
    sql = f"UPDATE admin_gift_codes SET {', '.join(sets)} WHERE id = %s RETURNING *"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(vals))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def delete_gift_code(gift_code_id) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM admin_gift_codes WHERE id = %s", (gift_code_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted
