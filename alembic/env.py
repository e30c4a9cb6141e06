import os
from logging.config import fileConfig
from urllib.parse import quote_plus

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

load_dotenv()

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# migrations are raw SQL; no metadata to autogenerate from
target_metadata = None


def _database_url() -> str:
    """Same connection settings as claimkin.utils.db, in SQLAlchemy form."""
    url = os.getenv("DATABASE_URL")
    if url:
        # hosted providers hand out postgres:// which SQLAlchemy rejects
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        if url.startswith("postgresql://"):
            url = "postgresql+psycopg2://" + url[len("postgresql://"):]
        return url
    return "postgresql+psycopg2://{user}:{pwd}@{host}:{port}/{name}".format(
        user=os.getenv("DB_USER", "dev"),
        pwd=quote_plus(os.getenv("DB_PASSWORD", "dev")),
        host=os.getenv("DB_HOST", "127.0.0.1"),
        port=os.getenv("DB_PORT", "65432"),
        name=os.getenv("DB_NAME", "claimkin_dev"),
    )


config.set_main_option("sqlalchemy.url", _database_url().replace("%", "%%"))


def run_migrations_offline():
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
