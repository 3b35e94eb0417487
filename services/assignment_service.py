from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.epoch import EpochClock
from core.exceptions import InsufficientPoolError, PoolExhaustedError
from core.logger import logger
from core.sampler import Sampler, default_sampler
from models.participant import ParticipantSession
from services.lock_manager import LockManager, lock_manager as default_lock_manager
from services.question_bank import QuestionBank, QuestionView
from services.session_store import SessionStore


@dataclass
class Assignment:
    epoch: int
    questions: List[QuestionView]
    answered_question_ids: List[int]
    cumulative_score: int
    next_epoch_at: datetime

    @property
    def completed(self) -> bool:
        """All assigned questions answered; nothing more to do until next_epoch_at."""
        return bool(self.questions) and set(self.answered_question_ids) >= {q.id for q in self.questions}


def has_valid_assignment(session: ParticipantSession, epoch: int, size: Optional[int] = None) -> bool:
    """
    Assignment exists for `epoch` and is well-formed: unique ids, exactly `size`
    of them when a size is given, otherwise at least one.
    """
    ids = session.assigned_question_ids or []
    if size is None:
        size = len(ids)
    return (
        session.assigned_epoch == epoch
        and size > 0
        and len(ids) == size
        and len(set(ids)) == size
    )


class AssignmentService:
    """Resolves the epoch-scoped question assignment for a participant, minting one when needed."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[EpochClock] = None,
        sampler: Optional[Sampler] = None,
        locks: Optional[LockManager] = None,
        assignment_size: Optional[int] = None,
    ):
        self.db = db
        self.bank = QuestionBank(db)
        self.store = SessionStore(db)
        self.clock = clock or EpochClock()
        self.sampler = sampler or default_sampler
        self.locks = locks or default_lock_manager
        self.size = assignment_size or settings.ASSIGNMENT_SIZE

    async def get_assignment(self, session_id: str, now: datetime) -> Assignment:
        epoch = self.clock.current_epoch(now)

        async with self.locks.hold(session_id):
            try:
                session = await self.store.get_or_create_for_update(session_id)

                questions = None
                if has_valid_assignment(session, epoch, self.size):
                    questions = await self.bank.by_ids(session.assigned_question_ids)
                    if len(questions) != self.size:
                        logger.warning("Assigned questions missing from catalog, re-minting",
                                       session_id=session_id, epoch=epoch)
                        questions = None
                elif session.assigned_epoch == epoch:
                    logger.warning("Malformed assignment, re-minting", session_id=session_id, epoch=epoch,
                                   stored=len(session.assigned_question_ids or []))

                if questions is None:
                    questions = await self._mint(session, epoch)

                result = Assignment(
                    epoch=epoch,
                    questions=questions,
                    answered_question_ids=list(session.answered_question_ids or []),
                    cumulative_score=session.cumulative_score or 0,
                    next_epoch_at=self.clock.next_epoch_start(now),
                )
                # Releases the row lock; persists a lazily created session or a new mint
                await self.store.commit()
            except BaseException:
                await self.store.rollback()
                raise

        return result

    async def _mint(self, session: ParticipantSession, epoch: int) -> List[QuestionView]:
        pool = await self.bank.all_ids()
        try:
            ids = self.sampler.sample(pool, self.size)
        except InsufficientPoolError as e:
            logger.error("Question pool exhausted", required=self.size, available=e.available)
            raise PoolExhaustedError(self.size, e.available) from e

        previous = session.assigned_epoch
        self.store.replace_assignment(session, epoch, ids)
        logger.info("Assignment minted", session_id=session.session_id, epoch=epoch, previous_epoch=previous)
        return await self.bank.by_ids(ids)
