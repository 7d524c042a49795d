"""Storage back-ends and the request-scoped FastAPI dependency that picks one."""
from collections.abc import AsyncIterator

from fastapi import Request

from storage.base import Storage
from storage.memory import MemoryStorage
from storage.sql import SqlStorage


async def get_storage(request: Request) -> AsyncIterator[Storage]:
    """
    Yield the app's MemoryStorage if one is installed, otherwise a SqlStorage on a fresh
    session that is committed after the handler returns and rolled back if it raises.
    """
    storage = getattr(request.app.state, "storage", None)
    if storage is not None:
        yield storage
        return

    async with request.app.state.session_factory() as session:
        try:
            yield SqlStorage(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


__all__ = ["MemoryStorage", "SqlStorage", "Storage", "get_storage"]
