from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc
from models.participant import ParticipantSession
from core.config import settings

class LeaderboardService:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _row(rank: int, session: ParticipantSession) -> dict:
        return {
            "rank": rank,
            "session_id": session.session_id,
            "name": session.display_name or session.session_id,
            "score": int(session.cumulative_score or 0),
        }

    async def top(self, limit: int = None) -> List[dict]:
        """
        Participants by cumulative score, highest first.
        Ties are broken by session id so the order is stable between reads.
        """
        limit = settings.LEADERBOARD_SIZE if limit is None else min(limit, settings.LEADERBOARD_SIZE)
        query = (
            select(ParticipantSession)
            .order_by(desc(ParticipantSession.cumulative_score), ParticipantSession.session_id.asc())
            .limit(max(limit, 0))
        )
        result = await self.db.execute(query)
        return [self._row(i, s) for i, s in enumerate(result.scalars().all(), 1)]

    async def rank_of(self, session_id: str) -> Optional[dict]:
        """Rank of one participant: 1 + number of participants with a strictly higher score."""
        result = await self.db.execute(
            select(ParticipantSession).filter(ParticipantSession.session_id == session_id)
        )
        session = result.scalar_one_or_none()
        if not session:
            return None

        higher = await self.db.execute(
            select(func.count()).select_from(ParticipantSession)
            .filter(ParticipantSession.cumulative_score > session.cumulative_score)
        )
        return self._row(int(higher.scalar() or 0) + 1, session)
