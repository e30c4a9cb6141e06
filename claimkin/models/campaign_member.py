from typing import Any, Dict, List, Optional
from claimkin.utils.db import get_db_connection, row_to_dict, rows_to_dicts


def get_member_role(campaign_id, user_id) -> Optional[str]:
    sql = "SELECT role FROM campaign_members WHERE campaign_id = %s AND user_id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, user_id))
        row = cur.fetchone()
        return row[0] if row else None


def list_members(campaign_id) -> List[Dict[str, Any]]:
    sql = """
    SELECT m.id, m.campaign_id, m.user_id, m.role, m.invited_by, m.created_at,
           a.email, a.name, a.role AS admin_role
    FROM campaign_members m
    JOIN admin_users a ON a.id = m.user_id
    WHERE m.campaign_id = %s
    ORDER BY CASE m.role WHEN 'owner' THEN 0 WHEN 'editor' THEN 1 ELSE 2 END,
             m.created_at ASC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id,))
        return rows_to_dicts(cur, cur.fetchall())


def upsert_member(campaign_id, user_id, role: str, invited_by=None) -> Dict[str, Any]:
    sql = """
    INSERT INTO campaign_members (campaign_id, user_id, role, invited_by)
    VALUES (%s, %s, %s, %s)
    ON CONFLICT (campaign_id, user_id) DO UPDATE SET role = EXCLUDED.role
    RETURNING id, campaign_id, user_id, role, invited_by, created_at
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, user_id, role, invited_by))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def remove_member(campaign_id, user_id) -> bool:
    sql = "DELETE FROM campaign_members WHERE campaign_id = %s AND user_id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, user_id))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted


def count_owners(campaign_id) -> int:
    sql = "SELECT COUNT(*) FROM campaign_members WHERE campaign_id = %s AND role = 'owner'"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id,))
        return int(cur.fetchone()[0])
