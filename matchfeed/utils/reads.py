"""Fan-out helper for independent persistence reads.

An ``AsyncSession`` must not be used by two coroutines at once, so parallel
reads each get their own session from the factory.  Without a factory the
reads run one after another on the caller's session.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

Read = Callable[[AsyncSession], Awaitable[Any]]


async def gather_reads(
    session: AsyncSession,
    session_factory: Optional[async_sessionmaker[AsyncSession]],
    *reads: Read,
) -> list[Any]:
    if session_factory is None:
        return [await read(session) for read in reads]

    async def _isolated(read: Read) -> Any:
        async with session_factory() as own_session:
            return await read(own_session)

    return list(await asyncio.gather(*(_isolated(read) for read in reads)))
