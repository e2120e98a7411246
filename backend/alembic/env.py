import os
import sys
from logging.config import fileConfig

from alembic import context

# Make the flat backend modules importable when alembic runs from backend/
sys.path.insert(0, os.path.realpath(os.path.join(os.path.dirname(__file__), '..')))

from database import Base, SQLALCHEMY_DATABASE_URL, engine
import models.users  # noqa: F401
import models.drug  # noqa: F401
import models.sale  # noqa: F401
import models.audit_log  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# DATABASE_URL from the application settings wins over alembic.ini
config.set_main_option("sqlalchemy.url", SQLALCHEMY_DATABASE_URL)

target_metadata = Base.metadata


def _options(is_sqlite: bool) -> dict:
    # SQLite cannot ALTER constraints in place, so migrations copy tables instead
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": is_sqlite,
    }


def run_migrations_offline() -> None:
    """Emit the migration SQL for the configured URL without connecting."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_options(url.startswith("sqlite")),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations through the application's own engine."""
    with engine.connect() as connection:
        context.configure(connection=connection, **_options(connection.dialect.name == "sqlite"))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
