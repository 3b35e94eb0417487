from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from core.epoch import EpochClock
from core.exceptions import NoActiveAssignmentError, UnknownQuestionError
from core.logger import logger
from services.assignment_service import has_valid_assignment
from services.lock_manager import LockManager, lock_manager as default_lock_manager
from services.question_bank import QuestionBank
from services.session_store import SessionStore


@dataclass
class ScoreResult:
    score_delta: int
    cumulative_score: int
    answered_question_ids: List[int]
    assigned_question_ids: List[int]

    @property
    def completed(self) -> bool:
        return set(self.answered_question_ids) >= set(self.assigned_question_ids)


class ScoringService:
    """Scores a submission against the current epoch's assignment, each question at most once."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[EpochClock] = None,
        locks: Optional[LockManager] = None,
    ):
        self.db = db
        self.bank = QuestionBank(db)
        self.store = SessionStore(db)
        self.clock = clock or EpochClock()
        self.locks = locks or default_lock_manager

    async def submit(self, session_id: str, now: datetime, answers: Iterable[Tuple[int, int]]) -> ScoreResult:
        answers = list(answers)
        epoch = self.clock.current_epoch(now)

        async with self.locks.hold(session_id):
            try:
                session = await self.store.get_for_update(session_id)
                if session is None or not has_valid_assignment(session, epoch):
                    logger.info("Submission without active assignment", session_id=session_id, epoch=epoch,
                                assigned_epoch=session.assigned_epoch if session else None)
                    raise NoActiveAssignmentError(session_id, epoch)

                assigned = set(session.assigned_question_ids)
                unknown = [qid for qid, _ in answers if qid not in assigned]
                if unknown:
                    logger.info("Submission rejected: unknown questions", session_id=session_id, question_ids=unknown)
                    raise UnknownQuestionError(unknown)

                answered = set(session.answered_question_ids or [])
                pending = [(qid, selected) for qid, selected in answers if qid not in answered]
                correct = await self.bank.correct_options({qid for qid, _ in pending})

                score_delta = 0
                newly_answered = []
                for qid, selected in pending:
                    # Repeats later in the same payload are ignored like resubmissions
                    if qid in answered:
                        continue
                    if selected == correct.get(qid):
                        score_delta += 1
                    answered.add(qid)
                    newly_answered.append(qid)

                self.store.record_answers(session, newly_answered, score_delta)
                result = ScoreResult(
                    score_delta=score_delta,
                    cumulative_score=session.cumulative_score,
                    answered_question_ids=list(session.answered_question_ids),
                    assigned_question_ids=list(session.assigned_question_ids),
                )
                await self.store.commit()
            except BaseException:
                await self.store.rollback()
                raise

        logger.info("Submission scored", session_id=session_id, epoch=epoch, score_delta=score_delta,
                    new_answers=len(newly_answered), ignored=len(answers) - len(newly_answered))
        return result
