"""
Alembic ortamı. Bağlantı adresi uygulamanın DATABASE_URL'inden gelir.
Sadece push_* tabloları yönetilir; aynı veritabanında başka uygulamanın tabloları olabilir.
"""
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlmodel import SQLModel

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))

import app.models  # noqa: E402,F401
from app.core.database import DATABASE_URL  # noqa: E402

config = context.config
config.set_main_option("sqlalchemy.url", str(DATABASE_URL))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata
TABLE_PREFIX = "push_"


def include_object(obj, name, type_, reflected, compare_to):
    """Autogenerate bizim olmayan tabloları silmeye kalkmasın."""
    if type_ == "table":
        return bool(name) and name.startswith(TABLE_PREFIX)
    return True


def _configure(**kwargs) -> None:
    url = config.get_main_option("sqlalchemy.url") or ""
    context.configure(
        target_metadata=target_metadata,
        include_object=include_object,
        compare_type=True,
        # SQLite ALTER TABLE kısıtlı; tablo kopyalayarak değiştirir
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=config.get_main_option("sqlalchemy.url"), literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
