"""campaigns, versions, members, invite codes, questions

Revision ID: 0002_campaigns
Revises: 0001_admin_auth
Create Date: 2025-10-06

"""

from alembic import op

revision = "0002_campaigns"
down_revision = "0001_admin_auth"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS campaigns (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      slug TEXT NOT NULL,
      title TEXT NOT NULL,
      internal_title TEXT NULL,
      description TEXT NULL,
      capacity_total INT NULL,
      is_active BOOLEAN NOT NULL DEFAULT true,
      starts_at TIMESTAMPTZ NULL,
      ends_at TIMESTAMPTZ NULL,

      require_email BOOLEAN NOT NULL DEFAULT false,
      require_email_verification BOOLEAN NOT NULL DEFAULT false,
      require_invite_code BOOLEAN NOT NULL DEFAULT false,
      show_scarcity BOOLEAN NOT NULL DEFAULT false,
      collect_company BOOLEAN NOT NULL DEFAULT false,
      collect_phone BOOLEAN NOT NULL DEFAULT false,
      collect_title BOOLEAN NOT NULL DEFAULT false,
      test_mode BOOLEAN NOT NULL DEFAULT false,
      show_banner BOOLEAN NOT NULL DEFAULT false,
      show_logo BOOLEAN NOT NULL DEFAULT true,
      kiosk_mode BOOLEAN NOT NULL DEFAULT false,
      enable_questions BOOLEAN NOT NULL DEFAULT false,

      privacy_blurb TEXT NULL,
      consent_text TEXT NULL,
      contact_email TEXT NULL,
      contact_text TEXT NULL,
      questions_intro_text TEXT NULL,
      banner_url TEXT NULL,
      notes TEXT NULL,

      max_claims_per_email INT NOT NULL DEFAULT 1,
      max_claims_per_ip_per_day INT NOT NULL DEFAULT 5,
      max_claims_per_address INT NULL,

      is_favorited BOOLEAN NOT NULL DEFAULT false,
      is_hidden BOOLEAN NOT NULL DEFAULT false,
      show_in_leaderboard BOOLEAN NOT NULL DEFAULT true,

      current_version INT NOT NULL DEFAULT 1,
      has_draft BOOLEAN NOT NULL DEFAULT false,
      created_by UUID NULL REFERENCES admin_users(id) ON DELETE RESTRICT,
      updated_by UUID NULL REFERENCES admin_users(id) ON DELETE SET NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      CONSTRAINT campaigns_slug_unique UNIQUE (slug),
      CONSTRAINT campaigns_capacity_nonneg CHECK (capacity_total IS NULL OR capacity_total >= 0)
    );
    CREATE INDEX IF NOT EXISTS idx_campaigns_created_by ON campaigns(created_by);

    CREATE TABLE IF NOT EXISTS campaign_versions (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      campaign_id UUID NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
      version_number INT NOT NULL,
      status TEXT NOT NULL CHECK (status IN ('draft','published')),
      data JSONB NOT NULL,
      change_summary TEXT NULL,
      created_by UUID NULL REFERENCES admin_users(id) ON DELETE SET NULL,
      published_by UUID NULL REFERENCES admin_users(id) ON DELETE SET NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      published_at TIMESTAMPTZ NULL,
      CONSTRAINT campaign_versions_number_unique UNIQUE (campaign_id, version_number)
    );
    CREATE UNIQUE INDEX IF NOT EXISTS uq_campaign_versions_one_draft
      ON campaign_versions(campaign_id) WHERE status = 'draft';

    CREATE TABLE IF NOT EXISTS campaign_members (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      campaign_id UUID NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
      user_id UUID NOT NULL REFERENCES admin_users(id) ON DELETE CASCADE,
      role TEXT NOT NULL CHECK (role IN ('owner','editor','viewer')),
      invited_by UUID NULL REFERENCES admin_users(id) ON DELETE SET NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      CONSTRAINT campaign_members_unique UNIQUE (campaign_id, user_id)
    );
    CREATE INDEX IF NOT EXISTS idx_campaign_members_user ON campaign_members(user_id);

    CREATE TABLE IF NOT EXISTS invite_codes (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      campaign_id UUID NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
      code TEXT NOT NULL,
      max_uses INT NULL,
      uses INT NOT NULL DEFAULT 0,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_by UUID NULL REFERENCES admin_users(id) ON DELETE SET NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      CONSTRAINT invite_codes_campaign_code_unique UNIQUE (campaign_id, code)
    );

    CREATE TABLE IF NOT EXISTS campaign_questions (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      campaign_id UUID NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
      question_text TEXT NOT NULL,
      question_type TEXT NOT NULL
        CHECK (question_type IN ('text','multiple_choice','checkboxes')),
      options JSONB NULL,
      is_required BOOLEAN NOT NULL DEFAULT false,
      display_order INT NOT NULL DEFAULT 0,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_campaign_questions_order
      ON campaign_questions(campaign_id, display_order);
    """
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS campaign_questions")
    op.execute("DROP TABLE IF EXISTS invite_codes")
    op.execute("DROP TABLE IF EXISTS campaign_members")
    op.execute("DROP TABLE IF EXISTS campaign_versions")
    op.execute("DROP TABLE IF EXISTS campaigns")
