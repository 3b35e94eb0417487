from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.participant import ParticipantSession
from core.logger import logger


class SessionStore:
    """
    Owns every mutation of a ParticipantSession row.

    Callers hold the per-session lock, call one of the load methods (which locks
    the row with SELECT ... FOR UPDATE), apply mutations through this class and
    finish with commit() or rollback(). Nothing is written until commit().
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, session_id: str) -> Optional[ParticipantSession]:
        result = await self.db.execute(
            select(ParticipantSession).filter(ParticipantSession.session_id == session_id)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, session_id: str) -> Optional[ParticipantSession]:
        result = await self.db.execute(
            select(ParticipantSession)
            .filter(ParticipantSession.session_id == session_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create_for_update(self, session_id: str) -> ParticipantSession:
        session = await self.get_for_update(session_id)
        if session:
            return session

        session = ParticipantSession(
            session_id=session_id,
            assigned_epoch=None,
            assigned_question_ids=[],
            answered_question_ids=[],
            cumulative_score=0,
        )
        self.db.add(session)
        try:
            await self.db.flush()
        except IntegrityError:
            # Another worker created the row first
            await self.db.rollback()
            session = await self.get_for_update(session_id)
            if session is None:
                raise
            return session

        logger.info("Participant session created", session_id=session_id)
        return session

    def replace_assignment(self, session: ParticipantSession, epoch: int, question_ids: List[int]):
        if len(set(question_ids)) != len(question_ids):
            raise ValueError("Assignment contains duplicate question ids")
        session.assigned_epoch = epoch
        session.assigned_question_ids = list(question_ids)
        session.answered_question_ids = []

    def record_answers(self, session: ParticipantSession, newly_answered: List[int], score_delta: int):
        if score_delta < 0:
            raise ValueError("Score delta cannot be negative")
        assigned = set(session.assigned_question_ids or [])
        if not set(newly_answered) <= assigned:
            raise ValueError("Answered questions must belong to the assignment")
        if not newly_answered and score_delta == 0:
            return
        session.answered_question_ids = list(session.answered_question_ids or []) + [
            qid for qid in newly_answered if qid not in (session.answered_question_ids or [])
        ]
        session.cumulative_score = (session.cumulative_score or 0) + score_delta

    def set_display_name(self, session: ParticipantSession, name: str):
        session.display_name = name

    async def commit(self):
        await self.db.commit()

    async def rollback(self):
        await self.db.rollback()
