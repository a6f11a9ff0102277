from __future__ import annotations

import asyncio
from logging.config import fileConfig
from typing import Any, Literal

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from orgchart.config import get_settings
from orgchart.models import SQLModel

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _render_sqlmodel_type(type_: str, obj: object, autogen_context: object) -> str | Literal[False]:
    """Write SQLModel's ``AutoString`` as ``sa.String`` in generated revisions."""
    if type_ != "type":
        return False
    from sqlmodel.sql.sqltypes import AutoString

    if not isinstance(obj, AutoString):
        return False
    return f"sa.String(length={obj.length})" if obj.length else "sa.String()"


def _configure(**kwargs: Any) -> None:
    context.configure(target_metadata=SQLModel.metadata, render_item=_render_sqlmodel_type, **kwargs)


def _database_url() -> str:
    # An explicit sqlalchemy.url in alembic.ini wins over DATABASE_URL.
    return config.get_main_option("sqlalchemy.url") or get_settings().database_url


def _migrate(connection: Any) -> None:
    _configure(connection=connection, compare_type=True)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    engine = create_async_engine(_database_url(), poolclass=pool.NullPool)
    async with engine.connect() as connection:
        await connection.run_sync(_migrate)
    await engine.dispose()


if context.is_offline_mode():
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()
else:
    asyncio.run(_migrate_online())
