from typing import Any, Dict, List, Optional
from psycopg2.extras import Json
from claimkin.utils.db import get_db_connection, row_to_dict, rows_to_dicts

COLS = "id, campaign_id, question_text, question_type, options, is_required, display_order, created_at"
QUESTION_TYPES = ("text", "multiple_choice", "checkboxes")


def list_questions(campaign_id) -> List[Dict[str, Any]]:
    sql = f"""
    SELECT {COLS} FROM campaign_questions
    WHERE campaign_id = %s
    ORDER BY display_order ASC, created_at ASC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (campaign_id,))
        return rows_to_dicts(cur, cur.fetchall())


def get_question(question_id) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(f"SELECT {COLS} FROM campaign_questions WHERE id = %s", (question_id,))
        return row_to_dict(cur, cur.fetchone())


def insert_question(
    campaign_id,
    question_text: str,
    question_type: str,
    options: Optional[List[str]],
    is_required: bool,
) -> Dict[str, Any]:
    sql = f"""
    INSERT INTO campaign_questions
      (campaign_id, question_text, question_type, options, is_required, display_order)
    VALUES (%s, %s, %s, %s, %s,
      (SELECT COALESCE(MAX(display_order), -1) + 1
         FROM campaign_questions WHERE campaign_id = %s))
    RETURNING {COLS}
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            sql,
            (
                campaign_id,
                question_text,
                question_type,
                Json(options) if options is not None else None,
                is_required,
                campaign_id,
            ),
        )
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def update_question(question_id, **fields) -> Optional[Dict[str, Any]]:
    sets, vals = [], []
    for k in ("question_text", "question_type", "options", "is_required", "display_order"):
        if k in fields:
            v = fields[k]
            if k == "options" and v is not None:
                v = Json(v)
            sets.append(f"{k} = %s")
            vals.append(v)
    if not sets:
        return get_question(question_id)
    vals.append(question_id)
    sql = f"UPDATE campaign_questions SET {', '.join(sets)} WHERE id = %s RETURNING {COLS}"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, tuple(vals))
        row = row_to_dict(cur, cur.fetchone())
        conn.commit()
        return row


def delete_question(question_id) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM campaign_questions WHERE id = %s", (question_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted


def insert_answers(claim_id, answers: List[Dict[str, Any]]) -> None:
    if not answers:
        return
    sql = """
    INSERT INTO claim_answers (claim_id, question_id, answer_text, answer_option)
    VALUES (%s, %s, %s, %s)
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        for a in answers:
            cur.execute(
                sql,
                (claim_id, a["question_id"], a.get("answer_text"), a.get("answer_option")),
            )
        conn.commit()
