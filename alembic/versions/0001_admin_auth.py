"""admin_users, admin_otp_requests, global_settings

Revision ID: 0001_admin_auth
Revises:
Create Date: 2025-10-06

"""

from alembic import op

revision = "0001_admin_auth"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
    CREATE EXTENSION IF NOT EXISTS "pgcrypto";

    CREATE TABLE IF NOT EXISTS admin_users (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      email TEXT NOT NULL UNIQUE,
      name TEXT NULL,
      role TEXT NOT NULL DEFAULT 'admin'
        CHECK (role IN ('super_admin','admin','viewer')),
      is_active BOOLEAN NOT NULL DEFAULT true,
      display_name TEXT NULL,
      linkedin_url TEXT NULL,
      bio TEXT NULL,
      phone TEXT NULL,
      invited_by UUID NULL REFERENCES admin_users(id) ON DELETE SET NULL,
      last_login_at TIMESTAMPTZ NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      CONSTRAINT admin_users_email_lower CHECK (email = lower(email))
    );

    CREATE TABLE IF NOT EXISTS admin_otp_requests (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      email TEXT NOT NULL,
      otp_hash TEXT NOT NULL,
      expires_at TIMESTAMPTZ NOT NULL,
      attempts INT NOT NULL DEFAULT 0,
      max_attempts INT NOT NULL DEFAULT 5,
      used_at TIMESTAMPTZ NULL,
      ip_hash TEXT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_admin_otp_email_created
      ON admin_otp_requests(email, created_at DESC);
    CREATE INDEX IF NOT EXISTS idx_admin_otp_ip_created
      ON admin_otp_requests(ip_hash, created_at DESC);

    CREATE TABLE IF NOT EXISTS global_settings (
      key TEXT PRIMARY KEY,
      value TEXT NULL,
      description TEXT NULL,
      updated_by UUID NULL REFERENCES admin_users(id) ON DELETE SET NULL,
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    INSERT INTO global_settings (key, value, description) VALUES
      ('default_consent_text',
       'I agree to share my shipping address for this campaign.',
       'Consent text used when a campaign does not set its own'),
      ('default_privacy_blurb',
       'We only use your address to ship your item. It is never sold or shared.',
       'Privacy note used when a campaign does not set its own'),
      ('leaderboard_enabled', 'false', 'Public leaderboard on/off'),
      ('leaderboard_key', NULL, 'Key required to view the public leaderboard'),
      ('leaderboard_title', 'Leaderboard', 'Public leaderboard heading')
    ON CONFLICT (key) DO NOTHING;
    """
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS global_settings")
    op.execute("DROP TABLE IF EXISTS admin_otp_requests")
    op.execute("DROP TABLE IF EXISTS admin_users")
