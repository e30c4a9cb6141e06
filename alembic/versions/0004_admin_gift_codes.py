"""admin_gift_codes

Revision ID: 0004_admin_gift_codes
Revises: 0003_claims
Create Date: 2025-10-09

"""

from alembic import op

revision = "0004_admin_gift_codes"
down_revision = "0003_claims"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS admin_gift_codes (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      admin_id UUID NOT NULL REFERENCES admin_users(id) ON DELETE CASCADE,
      campaign_id UUID NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
      code TEXT NOT NULL UNIQUE,
      label TEXT NULL,
      custom_message TEXT NULL,
      custom_display_name TEXT NULL,
      show_name BOOLEAN NOT NULL DEFAULT true,
      show_linkedin BOOLEAN NOT NULL DEFAULT true,
      show_bio BOOLEAN NOT NULL DEFAULT false,
      show_phone BOOLEAN NOT NULL DEFAULT false,
      show_email BOOLEAN NOT NULL DEFAULT false,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_admin_gift_codes_admin_campaign
      ON admin_gift_codes(admin_id, campaign_id);
    """
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS admin_gift_codes")
