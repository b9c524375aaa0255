"""Transaction boundary with a post-commit side-effect queue."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

AfterCommit = Callable[[], Awaitable[Any]]


class UnitOfWork:
    """Commit on clean exit, roll back on error.

    Callbacks registered with ``after_commit`` run only once the commit has
    succeeded, each followed by its own commit. A failing callback is logged
    and rolled back on its own; it never undoes the main transaction. On
    rollback the queued callbacks are discarded.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._after_commit: list[AfterCommit] = []

    def after_commit(self, callback: AfterCommit) -> None:
        self._after_commit.append(callback)

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            await self.session.rollback()
            self._after_commit.clear()
            return False

        await self.session.commit()
        await self._run_after_commit()
        return False

    async def _run_after_commit(self) -> None:
        callbacks, self._after_commit = self._after_commit, []
        for callback in callbacks:
            try:
                await callback()
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                logger.exception("Post-commit side effect %s failed", getattr(callback, "__name__", repr(callback)))
