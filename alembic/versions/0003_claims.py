"""claims, claim_answers, email_verifications

Revision ID: 0003_claims
Revises: 0002_campaigns
Create Date: 2025-10-07

"""

from alembic import op

revision = "0003_claims"
down_revision = "0002_campaigns"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS claims (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      -- RESTRICT: a campaign cannot be deleted while it still has claims
      campaign_id UUID NOT NULL REFERENCES campaigns(id) ON DELETE RESTRICT,
      status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending','confirmed','rejected')),
      is_test_claim BOOLEAN NOT NULL DEFAULT false,

      first_name TEXT NULL,
      last_name TEXT NULL,
      email TEXT NULL,
      email_normalized TEXT NULL,
      company TEXT NULL,
      title TEXT NULL,
      phone TEXT NULL,
      linkedin_url TEXT NULL,

      address1 TEXT NULL,
      address2 TEXT NULL,
      city TEXT NULL,
      region TEXT NULL,
      postal_code TEXT NULL,
      country TEXT NULL,

      invite_code TEXT NULL,
      address_fingerprint TEXT NULL,
      location_fingerprint TEXT NULL,
      ip_hash TEXT NULL,
      user_agent TEXT NULL,
      consent_given BOOLEAN NOT NULL DEFAULT false,
      consent_timestamp TIMESTAMPTZ NULL,

      claim_token TEXT NULL UNIQUE,
      pre_created_by UUID NULL REFERENCES admin_users(id) ON DELETE SET NULL,
      gift_note_to_recipient TEXT NULL,
      admin_notes TEXT NULL,

      confirmed_at TIMESTAMPTZ NULL,
      shipped_at TIMESTAMPTZ NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_claims_campaign_created
      ON claims(campaign_id, created_at DESC);
    CREATE INDEX IF NOT EXISTS idx_claims_address_fp ON claims(address_fingerprint);
    CREATE INDEX IF NOT EXISTS idx_claims_location_fp
      ON claims(campaign_id, location_fingerprint);
    CREATE INDEX IF NOT EXISTS idx_claims_email_norm
      ON claims(campaign_id, email_normalized);
    CREATE INDEX IF NOT EXISTS idx_claims_ip_created
      ON claims(campaign_id, ip_hash, created_at);

    CREATE TABLE IF NOT EXISTS claim_answers (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      claim_id UUID NOT NULL REFERENCES claims(id) ON DELETE CASCADE,
      question_id UUID NOT NULL REFERENCES campaign_questions(id) ON DELETE CASCADE,
      answer_text TEXT NULL,
      answer_option TEXT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_claim_answers_claim ON claim_answers(claim_id);

    CREATE TABLE IF NOT EXISTS email_verifications (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      claim_id UUID NOT NULL REFERENCES claims(id) ON DELETE CASCADE,
      token_hash TEXT NOT NULL UNIQUE,
      expires_at TIMESTAMPTZ NOT NULL,
      used_at TIMESTAMPTZ NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS email_verifications")
    op.execute("DROP TABLE IF EXISTS claim_answers")
    op.execute("DROP TABLE IF EXISTS claims")
