from dataclasses import dataclass
from typing import Dict, Iterable, List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from models.question import Question
from core.logger import logger


@dataclass(frozen=True)
class QuestionView:
    """Question as served to participants. Never carries the correct option."""
    id: int
    prompt: str
    options: List[str]


class QuestionBank:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def all_ids(self) -> List[int]:
        result = await self.db.execute(select(Question.id).order_by(Question.id))
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(Question.id)))
        return int(result.scalar() or 0)

    async def by_ids(self, ids: Iterable[int]) -> List[QuestionView]:
        """Questions in the order of `ids`. Unknown ids are left out."""
        ids = list(ids)
        if not ids:
            return []
        result = await self.db.execute(select(Question).filter(Question.id.in_(ids)))
        found = {q.id: q for q in result.scalars().all()}
        return [
            QuestionView(id=found[qid].id, prompt=found[qid].prompt, options=list(found[qid].options))
            for qid in ids if qid in found
        ]

    async def correct_options(self, ids: Iterable[int]) -> Dict[int, int]:
        ids = list(ids)
        if not ids:
            return {}
        result = await self.db.execute(
            select(Question.id, Question.correct_option_index).filter(Question.id.in_(ids))
        )
        return {row.id: row.correct_option_index for row in result.all()}

    async def seed_if_empty(self, catalog: List[dict]) -> int:
        """Insert `catalog` when the table is empty. Returns the number inserted."""
        if await self.count() > 0:
            return 0

        for item in catalog:
            options = list(item["options"])
            if len(options) < 2 or not 0 <= item["correct_option_index"] < len(options):
                raise ValueError(f"Invalid catalog entry {item.get('id')}")
            self.db.add(Question(
                id=item["id"],
                prompt=item["prompt"],
                options=options,
                correct_option_index=item["correct_option_index"],
            ))
        await self.db.commit()
        logger.info("Seeded questions into DB", count=len(catalog))
        return len(catalog)
