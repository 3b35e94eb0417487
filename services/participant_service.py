from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.logger import logger
from models.participant import ParticipantSession
from services.lock_manager import LockManager, lock_manager as default_lock_manager
from services.session_store import SessionStore

MAX_NAME_LENGTH = 64


class ParticipantService:
    def __init__(self, db: AsyncSession, locks: Optional[LockManager] = None):
        self.store = SessionStore(db)
        self.locks = locks or default_lock_manager

    async def set_display_name(self, session_id: str, name: str) -> ParticipantSession:
        name = (name or "").strip()
        if not name or len(name) > MAX_NAME_LENGTH:
            raise ValueError(f"Display name must be 1-{MAX_NAME_LENGTH} characters")

        async with self.locks.hold(session_id):
            try:
                session = await self.store.get_or_create_for_update(session_id)
                self.store.set_display_name(session, name)
                await self.store.commit()
            except BaseException:
                await self.store.rollback()
                raise

        logger.info("Display name updated", session_id=session_id)
        return session
