from datetime import datetime
from typing import Any, Dict, Optional
from claimkin.utils.db import get_db_connection, row_to_dict


def insert_otp(email: str, otp_hash: str, expires_at: datetime, ip_hash: str) -> None:
    sql = """
    INSERT INTO admin_otp_requests (email, otp_hash, expires_at, ip_hash)
    VALUES (%s, %s, %s, %s)
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (email, otp_hash, expires_at, ip_hash))
        conn.commit()


def count_requests_since(since: datetime, email: str = None, ip_hash: str = None) -> int:
    if email is not None:
        where, arg = "email = %s", email
    else:
        where, arg = "ip_hash = %s", ip_hash
    sql = f"SELECT COUNT(*) FROM admin_otp_requests WHERE {where} AND created_at >= %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (arg, since))
        return int(cur.fetchone()[0])


def latest_unused_otp(email: str) -> Optional[Dict[str, Any]]:
    """Newest unused code for the email, expired or not."""
    sql = """
    SELECT id, email, otp_hash, expires_at, attempts, max_attempts
    FROM admin_otp_requests
    WHERE email = %s AND used_at IS NULL
    ORDER BY created_at DESC
    LIMIT 1
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (email,))
        return row_to_dict(cur, cur.fetchone())


def increment_attempts(otp_id) -> None:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            "UPDATE admin_otp_requests SET attempts = attempts + 1 WHERE id = %s",
            (otp_id,),
        )
        conn.commit()


def mark_used(otp_id) -> None:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            "UPDATE admin_otp_requests SET used_at = now() WHERE id = %s", (otp_id,)
        )
        conn.commit()
