#!/usr/bin/env python3
"""
Seed database with a super admin and one demo campaign.

Usage: python scripts/seed.py [--force]
Requires: migrations applied (alembic upgrade head)

Env: SEED_ADMIN_EMAIL (default admin@example.com)
"""
import os
import sys

# Ensure the package is on path when run from a checkout
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from claimkin.models.admin_user import create_admin_user, get_admin_by_email
from claimkin.models.campaign import get_campaign_by_slug, insert_campaign
from claimkin.models.campaign_member import upsert_member
from claimkin.models.invite_code import insert_invite_code
from claimkin.models.question import insert_question
from claimkin.services.version_service import record_initial_version
from claimkin.utils.db import get_db_connection

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
DEMO_SLUG = "demo-campaign"


def seed():
    if get_campaign_by_slug(DEMO_SLUG):
        print(f"Already seeded ({DEMO_SLUG} exists). Use --force to re-seed.")
        return

    # 1. Super admin (logs in with an emailed one-time code)
    admin = get_admin_by_email(ADMIN_EMAIL) or create_admin_user(
        ADMIN_EMAIL, "Demo Admin", "super_admin"
    )

    # 2. Demo campaign, test mode so submissions stay out of the real counts
    campaign = insert_campaign(
        DEMO_SLUG,
        {
            "title": "Claim Your Cognitive Kin",
            "internal_title": "Demo campaign",
            "description": "Tell us where to send your copy.",
            "capacity_total": 100,
            "show_scarcity": True,
            "collect_company": True,
            "test_mode": True,
            "enable_questions": True,
            "questions_intro_text": "A couple of quick questions",
        },
        admin["id"],
    )
    upsert_member(campaign["id"], admin["id"], "owner", invited_by=admin["id"])
    record_initial_version(campaign, admin["id"])

    # 3. Invite code and questions
    insert_invite_code(campaign["id"], "KIN2025", 50, admin["id"])
    insert_question(campaign["id"], "What do you do?", "text", None, False)
    insert_question(
        campaign["id"],
        "How did you hear about us?",
        "multiple_choice",
        ["Friend", "Conference", "Social media", "Other"],
        True,
    )

    print("Seeded successfully.")
    print(f"  Super admin: {ADMIN_EMAIL} (sign in with an emailed code)")
    print(f"  Campaign: /c/{DEMO_SLUG} (test mode, capacity 100)")
    print("  Invite code: KIN2025 (50 uses)")


def force_seed():
    """Clear demo data and re-seed. Use with caution."""
    with get_db_connection() as conn, conn.cursor() as cur:
        # claims block campaign deletion
        cur.execute(
            "DELETE FROM claims WHERE campaign_id IN (SELECT id FROM campaigns WHERE slug = %s)",
            (DEMO_SLUG,),
        )
        cur.execute("DELETE FROM campaigns WHERE slug = %s", (DEMO_SLUG,))
        conn.commit()
    print("Cleared demo data. Seeding...")
    seed()


if __name__ == "__main__":
    if "--force" in sys.argv:
        force_seed()
    else:
        seed()
