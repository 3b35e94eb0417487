from sqlalchemy import Column, Integer, String, BigInteger, JSON, Index
from models.base import Base, TimestampMixin

class ParticipantSession(Base, TimestampMixin):
    __tablename__ = "participant_sessions"

    session_id = Column(String(128), primary_key=True)
    display_name = Column(String(64), nullable=True)

    # Assignment for one epoch. Lists are always replaced, never mutated in place,
    # so the ORM picks up the change without MutableList.
    assigned_epoch = Column(BigInteger, nullable=True)
    assigned_question_ids = Column(JSON, nullable=False, default=list)
    answered_question_ids = Column(JSON, nullable=False, default=list)

    cumulative_score = Column(Integer, default=0, nullable=False)

# Leaderboard ordering
Index("idx_participant_score", ParticipantSession.cumulative_score.desc(), ParticipantSession.session_id)
