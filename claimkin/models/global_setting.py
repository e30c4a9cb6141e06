from typing import Any, Dict, Iterable, List
from claimkin.utils.db import get_db_connection, rows_to_dicts


def list_settings() -> List[Dict[str, Any]]:
    sql = "SELECT key, value, description, updated_at FROM global_settings ORDER BY key"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql)
        return rows_to_dicts(cur, cur.fetchall())


def get_settings(keys: Iterable[str]) -> Dict[str, Any]:
    keys = list(keys)
    if not keys:
        return {}
    sql = "SELECT key, value FROM global_settings WHERE key = ANY(%s)"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (keys,))
        return {k: v for k, v in cur.fetchall()}


def upsert_settings(items: List[Dict[str, Any]], updated_by) -> None:
    sql = """
    INSERT INTO global_settings (key, value, description, updated_by, updated_at)
    VALUES (%s, %s, %s, %s, now())
    ON CONFLICT (key) DO UPDATE
      SET value = EXCLUDED.value,
          description = COALESCE(EXCLUDED.description, global_settings.description),
          updated_by = EXCLUDED.updated_by,
          updated_at = now()
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        for item in items:
            cur.execute(
                sql, (item["key"], item.get("value"), item.get("description"), updated_by)
            )
        conn.commit()
