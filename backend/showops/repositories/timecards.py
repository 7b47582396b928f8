"""SQL timecard signal for the post_show -> complete step."""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from showops.db.models import Timecard
from showops.repositories.errors import unavailable_on_error

TERMINAL_STATUSES = ("approved", "rejected")


class SqlTimecardRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def all_terminal(self, project_id: uuid.UUID) -> bool:
        """True when every timecard is approved or rejected (vacuously true with none)."""
        stmt = (
            select(func.count())
            .select_from(Timecard)
            .where(Timecard.project_id == project_id, Timecard.status.not_in(TERMINAL_STATUSES))
        )
        with unavailable_on_error("timecards"):
            async with self.session_factory() as session:
                pending = await session.scalar(stmt)
        return not pending
