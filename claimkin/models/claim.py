from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set
from claimkin.utils.db import get_db_connection, row_to_dict, rows_to_dicts

INSERT_FIELDS = (
    "campaign_id",
    "status",
    "is_test_claim",
    "first_name",
    "last_name",
    "email",
    "email_normalized",
    "company",
    "title",
    "phone",
    "linkedin_url",
    "address1",
    "address2",
    "city",
    "region",
    "postal_code",
    "country",
    "invite_code",
    "address_fingerprint",
    "location_fingerprint",
    "ip_hash",
    "user_agent",
    "consent_given",
    "consent_timestamp",
    "claim_token",
    "pre_created_by",
    "gift_note_to_recipient",
    "admin_notes",
    "confirmed_at",
    "shipped_at",
)

UPDATE_FIELDS = tuple(f for f in INSERT_FIELDS if f != "campaign_id")

# claim_token set and no address yet
PRE_CREATED_SQL = "(k.claim_token IS NOT NULL AND COALESCE(k.address1, '') = '')"


def insert_claim(fields: Dict[str, Any]) -> Dict[str, Any]:
    cols = [k for k in INSERT_FIELDS if k in fields]
    placeholders = ", ".join(["%s"] * len(cols))
    sql = f"INSERT INTO claims ({', '.join(cols)}) VALUES ({placeholders}) RETURNING *"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(fields[k] for k in cols))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def get_claim(claim_id) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT * FROM claims WHERE id = %s", (claim_id,))
        return row_to_dict(cur, cur.fetchone())


def get_claims(claim_ids: List[str]) -> List[Dict[str, Any]]:
    if not claim_ids:
        return []
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT * FROM claims WHERE id::text = ANY(%s)", (list(claim_ids),))
        return rows_to_dicts(cur, cur.fetchall())


def get_claim_by_token(campaign_id, token: str) -> Optional[Dict[str, Any]]:
    sql = "SELECT * FROM claims WHERE campaign_id = %s AND claim_token = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, token))
        return row_to_dict(cur, cur.fetchone())


def update_claim(claim_id, **fields) -> Optional[Dict[str, Any]]:
    sets, vals = [], []
    for k in UPDATE_FIELDS:
        if k in fields:
            sets.append(f"{k} = %s")
            vals.append(fields[k])
    if not sets:
        return get_claim(claim_id)
    sets.append("updated_at = now()")
    vals.append(claim_id)
    sql = f"UPDATE claims SET {', '.join(sets)} WHERE id = %s RETURNING *"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(vals))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def delete_claim(claim_id) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM claims WHERE id = %s", (claim_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted


def delete_claims(claim_ids: List[str]) -> int:
    if not claim_ids:
        return 0
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM claims WHERE id::text = ANY(%s)", (list(claim_ids),))
        n = cur.rowcount
        conn.commit()
        return n


def set_shipped(claim_ids: List[str], shipped_at: Optional[datetime]) -> int:
    if not claim_ids:
        return 0
    sql = """
    UPDATE claims SET shipped_at = %s, updated_at = now()
    WHERE id::text = ANY(%s)
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (shipped_at, list(claim_ids)))
        n = cur.rowcount
        conn.commit()
        return n


def list_claims(
    campaign_id: Optional[str] = None,
    status: Optional[str] = None,
    shipped: Optional[str] = None,
    pre_created: Optional[str] = None,
    include_test: bool = False,
) -> List[Dict[str, Any]]:
    """
    Claims newest first, with campaign slug and title.
    shipped: 'shipped' | 'not-shipped'; pre_created: 'pre-created' | 'regular'.
    """
    where, vals = [], []
    if campaign_id:
        where.append("k.campaign_id = %s")
        vals.append(campaign_id)
    if status:
        where.append("k.status = %s")
        vals.append(status)
    if shipped == "shipped":
        where.append("k.shipped_at IS NOT NULL")
    elif shipped == "not-shipped":
        where.append("k.shipped_at IS NULL")
    if pre_created == "pre-created":
        where.append(PRE_CREATED_SQL)
    elif pre_created == "regular":
        where.append(f"NOT {PRE_CREATED_SQL}")
    if not include_test:
        where.append("k.is_test_claim = false")
    sql = f"""
    SELECT k.*, c.slug AS campaign_slug, c.title AS campaign_title,
           a.email AS pre_created_by_email, a.name AS pre_created_by_name
    FROM claims k
    JOIN campaigns c ON c.id = k.campaign_id
    LEFT JOIN admin_users a ON a.id = k.pre_created_by
    {"WHERE " + " AND ".join(where) if where else ""}
    ORDER BY k.created_at DESC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(vals))
        return rows_to_dicts(cur, cur.fetchall())


def count_claims(campaign_id) -> int:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM claims WHERE campaign_id = %s", (campaign_id,))
        return int(cur.fetchone()[0])


def count_capacity_used(campaign_id, include_test: bool) -> int:
    """Claims holding a spot: pending or confirmed, test claims only in test mode."""
    sql = """
    SELECT COUNT(*) FROM claims
    WHERE campaign_id = %s AND status IN ('pending', 'confirmed')
      AND (%s OR is_test_claim = false)
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, include_test))
        return int(cur.fetchone()[0])


def claim_stats(campaign_id) -> Dict[str, int]:
    sql = """
    SELECT
      COUNT(*) FILTER (WHERE status = 'pending'),
      COUNT(*) FILTER (WHERE status = 'confirmed'),
      COUNT(*) FILTER (WHERE status = 'rejected'),
      COUNT(*) FILTER (WHERE shipped_at IS NOT NULL),
      COUNT(*) FILTER (WHERE is_test_claim)
    FROM claims WHERE campaign_id = %s
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id,))
        row = cur.fetchone()
        return {
            "pending": int(row[0]),
            "confirmed": int(row[1]),
            "rejected": int(row[2]),
            "shipped": int(row[3]),
            "test": int(row[4]),
        }


def count_ip_claims_since(campaign_id, ip_hash: str, since: datetime) -> int:
    sql = """
    SELECT COUNT(*) FROM claims
    WHERE campaign_id = %s AND ip_hash = %s AND created_at >= %s
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, ip_hash, since))
        return int(cur.fetchone()[0])


def person_claim_exists(campaign_id, fingerprint: str, exclude_id=None) -> bool:
    sql = """
    SELECT 1 FROM claims
    WHERE campaign_id = %s AND address_fingerprint = %s AND status <> 'rejected'
      AND (%s::uuid IS NULL OR id <> %s::uuid)
    LIMIT 1
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, fingerprint, exclude_id, exclude_id))
        return cur.fetchone() is not None


def count_location_claims(campaign_id, location_fp: str) -> int:
    sql = """
    SELECT COUNT(*) FROM claims
    WHERE campaign_id = %s AND location_fingerprint = %s AND status <> 'rejected'
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, location_fp))
        return int(cur.fetchone()[0])


def count_email_claims(campaign_id, email_normalized: str) -> int:
    sql = """
    SELECT COUNT(*) FROM claims
    WHERE campaign_id = %s AND email_normalized = %s AND status <> 'rejected'
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id, email_normalized))
        return int(cur.fetchone()[0])


def existing_fingerprints(fingerprints: Iterable[str]) -> Set[str]:
    """Fingerprints already present in any campaign."""
    fps = list(set(fingerprints))
    if not fps:
        return set()
    sql = "SELECT DISTINCT address_fingerprint FROM claims WHERE address_fingerprint = ANY(%s)"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (fps,))
        return {r[0] for r in cur.fetchall()}


def list_answers_for_claims(claim_ids: List[str]) -> List[Dict[str, Any]]:
    if not claim_ids:
        return []
    sql = """
    SELECT a.claim_id, a.question_id, q.question_text, a.answer_text, a.answer_option
    FROM claim_answers a
    JOIN campaign_questions q ON q.id = a.question_id
    WHERE a.claim_id::text = ANY(%s)
    ORDER BY q.display_order
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, ([str(i) for i in claim_ids],))
        return rows_to_dicts(cur, cur.fetchall())
