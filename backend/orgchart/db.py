from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from orgchart.config import get_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_sessions: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Lazily create the process-wide async engine from ``DATABASE_URL``."""
    global _engine
    if _engine is None:
        settings = get_settings()
        url = make_url(settings.database_url)
        logger.info("Connecting to %s", url.render_as_string(hide_password=True))
        _engine = create_async_engine(url, echo=settings.database_echo, pool_pre_ping=True)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _sessions
    if _sessions is None:
        # Records are returned after commit, so attributes must stay loaded.
        _sessions = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _sessions


async def get_session() -> AsyncIterator[AsyncSession]:
    """Request-scoped session; services commit or roll back themselves."""
    async with get_session_factory()() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine, e.g. on shutdown."""
    global _engine, _sessions
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _sessions = None
