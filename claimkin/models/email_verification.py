from datetime import datetime
from typing import Any, Dict, Optional
from claimkin.utils.db import get_db_connection, row_to_dict


def insert_verification(claim_id, token_hash: str, expires_at: datetime) -> None:
    sql = """
    INSERT INTO email_verifications (claim_id, token_hash, expires_at)
    VALUES (%s, %s, %s)
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (claim_id, token_hash, expires_at))
        conn.commit()


def find_open_verification(token_hash: str) -> Optional[Dict[str, Any]]:
    sql = """
    SELECT id, claim_id, expires_at FROM email_verifications
    WHERE token_hash = %s AND used_at IS NULL
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (token_hash,))
        return row_to_dict(cur, cur.fetchone())


def mark_verification_used(verification_id) -> None:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            "UPDATE email_verifications SET used_at = now() WHERE id = %s",
            (verification_id,),
        )
        conn.commit()
