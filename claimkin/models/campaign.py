from typing import Any, Dict, List, Optional
from claimkin.utils.db import get_db_connection, row_to_dict, rows_to_dicts

# Fields captured in a version snapshot and restored on publish or revert.
CONFIG_FIELDS = (
    "title",
    "internal_title",
    "description",
    "capacity_total",
    "is_active",
    "starts_at",
    "ends_at",
    "require_email",
    "require_email_verification",
    "require_invite_code",
    "show_scarcity",
    "collect_company",
    "collect_phone",
    "collect_title",
    "test_mode",
    "show_banner",
    "show_logo",
    "kiosk_mode",
    "enable_questions",
    "privacy_blurb",
    "consent_text",
    "contact_email",
    "contact_text",
    "questions_intro_text",
    "banner_url",
    "notes",
    "max_claims_per_email",
    "max_claims_per_ip_per_day",
    "max_claims_per_address",
)

ADMIN_FLAGS = ("is_favorited", "is_hidden", "show_in_leaderboard")

# Columns written outside of the snapshot flow.
STATE_FIELDS = ("current_version", "has_draft", "updated_by")


def get_campaign(campaign_id) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT * FROM campaigns WHERE id = %s", (campaign_id,))
        return row_to_dict(cur, cur.fetchone())


def get_campaign_by_slug(slug: str) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT * FROM campaigns WHERE slug = %s", (slug,))
        return row_to_dict(cur, cur.fetchone())


def slug_exists(slug: str) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT 1 FROM campaigns WHERE slug = %s LIMIT 1", (slug,))
        return cur.fetchone() is not None


def list_campaigns(
    created_by: Optional[str] = None, include_hidden: bool = False
) -> List[Dict[str, Any]]:
    """Favorites first, then newest. Each row carries creator email and claim counts."""
    where, vals = [], []
    if created_by:
        where.append("c.created_by = %s")
        vals.append(created_by)
    if not include_hidden:
        where.append("c.is_hidden = false")
    sql = f"""
    SELECT c.*, a.email AS created_by_email,
      (SELECT COUNT(*) FROM claims k
        WHERE k.campaign_id = c.id AND k.status <> 'rejected'
          AND (c.test_mode OR k.is_test_claim = false)) AS claim_count,
      (SELECT COUNT(*) FROM claims k
        WHERE k.campaign_id = c.id AND k.shipped_at IS NOT NULL) AS shipped_count
    FROM campaigns c
    LEFT JOIN admin_users a ON a.id = c.created_by
    {"WHERE " + " AND ".join(where) if where else ""}
    ORDER BY c.is_favorited DESC, c.created_at DESC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(vals))
        return rows_to_dicts(cur, cur.fetchall())


def list_campaign_options() -> List[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT id, slug, title FROM campaigns ORDER BY title")
        return rows_to_dicts(cur, cur.fetchall())


def insert_campaign(slug: str, data: Dict[str, Any], created_by) -> Dict[str, Any]:
    cols = ["slug", "created_by", "updated_by"]
    vals = [slug, created_by, created_by]
    for k in CONFIG_FIELDS:
        if k in data:
            cols.append(k)
            vals.append(data[k])
    placeholders = ", ".join(["%s"] * len(cols))
    sql = f"INSERT INTO campaigns ({', '.join(cols)}) VALUES ({placeholders}) RETURNING *"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(vals))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def update_campaign(campaign_id, **fields) -> Optional[Dict[str, Any]]:
    sets, vals = [], []
    for k in CONFIG_FIELDS + ADMIN_FLAGS + STATE_FIELDS:
        if k in fields:
            sets.append(f"{k} = %s")
            vals.append(fields[k])
    if not sets:
        return get_campaign(campaign_id)
    sets.append("updated_at = now()")
    vals.append(campaign_id)
    sql = f"UPDATE campaigns SET {', '.join(sets)} WHERE id = %s RETURNING *"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(vals))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def delete_campaign(campaign_id) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM campaigns WHERE id = %s", (campaign_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted


def list_leaderboard_campaigns() -> List[Dict[str, Any]]:
    """Active, visible campaigns with their count of submitted, non-test claims."""
    sql = """
    SELECT c.id, c.slug, c.title, c.internal_title,
      (SELECT COUNT(*) FROM claims k
        WHERE k.campaign_id = c.id AND k.is_test_claim = false
          AND COALESCE(k.address1, '') <> '') AS claim_count
    FROM campaigns c
    WHERE c.is_active = true AND c.show_in_leaderboard = true AND c.is_hidden = false
    ORDER BY claim_count DESC, c.title ASC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql)
        return rows_to_dicts(cur, cur.fetchall())
