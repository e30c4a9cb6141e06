from typing import Any, Dict, List, Optional
from claimkin.utils.db import get_db_connection, row_to_dict, rows_to_dicts

COLS = "id, campaign_id, code, max_uses, uses, is_active, created_by, created_at"


def list_invite_codes(campaign_id) -> List[Dict[str, Any]]:
    sql = f"SELECT {COLS} FROM invite_codes WHERE campaign_id = %s ORDER BY created_at DESC"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id,))
        return rows_to_dicts(cur, cur.fetchall())


def get_invite_code(code_id) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(f"SELECT {COLS} FROM invite_codes WHERE id = %s", (code_id,))
        return row_to_dict(cur, cur.fetchone())


def find_invite_code(campaign_id, code: str) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {COLS} FROM invite_codes WHERE campaign_id = %s AND code = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, code.strip().upper()))
        return row_to_dict(cur, cur.fetchone())


def insert_invite_code(
    campaign_id, code: str, max_uses: Optional[int], created_by
) -> Dict[str, Any]:
    sql = f"""
    INSERT INTO invite_codes (campaign_id, code, max_uses, created_by)
    VALUES (%s, %s, %s, %s)
    RETURNING {COLS}
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, code.strip().upper(), max_uses, created_by))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def set_invite_code_active(code_id, is_active: bool) -> Optional[Dict[str, Any]]:
    sql = f"UPDATE invite_codes SET is_active = %s WHERE id = %s RETURNING {COLS}"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (is_active, code_id))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def delete_invite_code(code_id) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM invite_codes WHERE id = %s", (code_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted


def consume_invite_code(code_id) -> bool:
    """Take one use; False when the code was exhausted or switched off meanwhile."""
    sql = """
    UPDATE invite_codes SET uses = uses + 1
    WHERE id = %s AND is_active = true AND (max_uses IS NULL OR uses < max_uses)
    RETURNING uses
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (code_id,))
        row = cur.fetchone()
        conn.commit()
        return row is not None
