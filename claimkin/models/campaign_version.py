from typing import Any, Dict, List, Optional
from psycopg2.extras import Json
from claimkin.utils.db import get_db_connection, row_to_dict, rows_to_dicts


def list_versions(campaign_id) -> List[Dict[str, Any]]:
    sql = """
    SELECT v.id, v.version_number, v.status, v.data, v.change_summary,
           v.created_at, v.published_at, v.created_by, v.published_by,
           cr.email AS created_by_email, cr.name AS created_by_name,
           pb.email AS published_by_email, pb.name AS published_by_name
    FROM campaign_versions v
    LEFT JOIN admin_users cr ON cr.id = v.created_by
    LEFT JOIN admin_users pb ON pb.id = v.published_by
    WHERE v.campaign_id = %s
    ORDER BY v.version_number DESC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id,))
        return rows_to_dicts(cur, cur.fetchall())


def get_version(campaign_id, version_number: int) -> Optional[Dict[str, Any]]:
    sql = """
    SELECT * FROM campaign_versions
    WHERE campaign_id = %s AND version_number = %s
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, version_number))
        return row_to_dict(cur, cur.fetchone())


def get_draft(campaign_id) -> Optional[Dict[str, Any]]:
    sql = "SELECT * FROM campaign_versions WHERE campaign_id = %s AND status = 'draft'"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id,))
        return row_to_dict(cur, cur.fetchone())


def max_version_number(campaign_id) -> int:
    sql = "SELECT COALESCE(MAX(version_number), 0) FROM campaign_versions WHERE campaign_id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id,))
        return int(cur.fetchone()[0])


def insert_version(
    campaign_id,
    version_number: int,
    status: str,
    data: Dict[str, Any],
    change_summary: Optional[str],
    created_by,
) -> Dict[str, Any]:
    published = status == "published"
    sql = """
    INSERT INTO campaign_versions
      (campaign_id, version_number, status, data, change_summary,
       created_by, published_by, published_at)
    VALUES (%s, %s, %s, %s, %s, %s, %s, CASE WHEN %s THEN now() END)
    RETURNING *
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            sql,
            (
                campaign_id,
                version_number,
                status,
                Json(data),
                change_summary,
                created_by,
                created_by if published else None,
                published,
            ),
        )
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def update_draft(
    version_id, data: Dict[str, Any], change_summary: Optional[str], created_by
) -> Dict[str, Any]:
    sql = """
    UPDATE campaign_versions
    SET data = %s, change_summary = %s, created_by = %s, created_at = now()
    WHERE id = %s AND status = 'draft'
    RETURNING *
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (Json(data), change_summary, created_by, version_id))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def publish_version(
    version_id, published_by, data: Optional[Dict[str, Any]] = None,
    change_summary: Optional[str] = None,
) -> Dict[str, Any]:
    sets = ["status = 'published'", "published_by = %s", "published_at = now()"]
    vals = [published_by]
    if data is not None:
        sets.append("data = %s")
        vals.append(Json(data))
    if change_summary is not None:
        sets.append("change_summary = %s")
        vals.append(change_summary)
    vals.append(version_id)
    sql = f"UPDATE campaign_versions SET {', '.join(sets)} WHERE id = %s RETURNING *"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(vals))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def delete_drafts(campaign_id) -> int:
    sql = "DELETE FROM campaign_versions WHERE campaign_id = %s AND status = 'draft'"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id,))
        n = cur.rowcount
        conn.commit()
        return n
