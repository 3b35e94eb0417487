from fastapi import FastAPI, HTTPException, Depends, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from contextlib import asynccontextmanager
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional

from core.config import settings
from core.epoch import EpochClock, utcnow
from core.exceptions import QuizError
from core.logger import logger, setup_logging
from db.session import AsyncSessionLocal, get_db, init_models
from db.seed import load_catalog
from services.assignment_service import AssignmentService
from services.leaderboard_service import LeaderboardService
from services.lock_manager import LockManager, lock_manager
from services.participant_service import ParticipantService, MAX_NAME_LENGTH
from services.question_bank import QuestionBank
from services.scoring_service import ScoringService

# API Documentation
API_DESCRIPTION = """
## Hourly Quiz API

Every participant gets a fixed random set of questions per epoch (one hour by default).

### Sessions

Participants are identified by an opaque `sessionId` generated by the client and kept
between visits. It is not authenticated.

### Flow

1. `GET /api/questions` returns this epoch's questions, minting a new set on the first
   request of an epoch. Repeated calls in the same epoch return the same set.
2. `POST /api/submit` scores answers. Each question counts once per epoch, so replaying
   a submission is safe.
3. When `completed` is true the participant waits until `nextEpochAt`.
"""

TAGS_METADATA = [
    {
        "name": "quiz",
        "description": "Question assignment and answer submission.",
    },
    {
        "name": "leaderboard",
        "description": "Cumulative score ranking.",
    },
    {
        "name": "info",
        "description": "Participant profile and service health.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if settings.CREATE_SCHEMA_ON_STARTUP:
        await init_models()
    if settings.SEED_ON_STARTUP:
        async with AsyncSessionLocal() as db:
            await QuestionBank(db).seed_if_empty(load_catalog())
    logger.info("API started", env=settings.ENV, assignment_size=settings.ASSIGNMENT_SIZE,
                epoch_seconds=settings.EPOCH_SECONDS)
    yield
    await lock_manager.close()
    logger.info("API stopped")


app = FastAPI(
    title="Hourly Quiz API",
    description=API_DESCRIPTION,
    version="1.0.0",
    openapi_tags=TAGS_METADATA,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# === Dependencies (overridden in tests) ===

def get_now() -> datetime:
    return utcnow()


def get_clock() -> EpochClock:
    return EpochClock()


def get_locks() -> LockManager:
    return lock_manager


# === Pydantic Models with Documentation ===

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuestionOut(CamelModel):
    """A question as shown to participants. The correct option is never included."""
    id: int = Field(..., description="Stable question ID")
    prompt: str = Field(..., description="Question text")
    options: List[str] = Field(..., description="Answer options in display order")


class AssignmentOut(CamelModel):
    """This epoch's questions for a participant."""
    epoch: int = Field(..., description="Epoch identifier the assignment belongs to")
    questions: List[QuestionOut]
    answered_question_ids: List[int] = Field(..., description="Questions already answered in this epoch")
    completed: bool = Field(..., description="True when every assigned question has been answered")
    next_epoch_at: datetime = Field(..., description="When the next epoch (and a new question set) starts")
    cumulative_score: int


class AnswerIn(CamelModel):
    question_id: int
    selected_option_index: int = Field(..., ge=0, description="Index of the chosen option (0-based)")


class SubmitIn(CamelModel):
    """Request body for submitting answers."""
    session_id: str = Field(..., min_length=1, max_length=128)
    answers: List[AnswerIn] = Field(..., max_length=100)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "sessionId": "3f1c2a9e-6d1b-4c55-9a0e-1f1b8f1f2d3c",
                "answers": [{"questionId": 17, "selectedOptionIndex": 0}],
            }
        },
    )


class SubmitOut(CamelModel):
    score_delta: int = Field(..., description="Points gained by this submission")
    cumulative_score: int
    answered_question_ids: List[int]
    completed: bool


class LeaderboardRow(CamelModel):
    rank: int
    session_id: str
    name: str = Field(..., description="Display name, or the session ID when none was set")
    score: int


class UserIn(CamelModel):
    session_id: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)


class SuccessResponse(BaseModel):
    """Generic success response."""
    status: str = Field(default="success", description="Operation status")


@app.get(
    "/api/questions",
    response_model=AssignmentOut,
    response_model_by_alias=True,
    tags=["quiz"],
    summary="Get this epoch's questions",
    responses={
        200: {"description": "Assigned questions (new or re-served)"},
        503: {"description": "Catalog smaller than the assignment size (PoolExhaustedError)"},
    },
)
async def get_questions(
    session_id: str = Query(..., alias="sessionId", min_length=1, max_length=128),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
    clock: EpochClock = Depends(get_clock),
    locks: LockManager = Depends(get_locks),
):
    assignment = await AssignmentService(db, clock=clock, locks=locks).get_assignment(session_id, now)
    return AssignmentOut(
        epoch=assignment.epoch,
        questions=[QuestionOut(id=q.id, prompt=q.prompt, options=q.options) for q in assignment.questions],
        answered_question_ids=assignment.answered_question_ids,
        completed=assignment.completed,
        next_epoch_at=assignment.next_epoch_at,
        cumulative_score=assignment.cumulative_score,
    )


@app.post(
    "/api/submit",
    response_model=SubmitOut,
    response_model_by_alias=True,
    tags=["quiz"],
    summary="Submit answers",
    description="Scores answers for this epoch's questions. Already answered questions are ignored.",
    responses={
        200: {"description": "Submission scored"},
        400: {"description": "Answer references a question outside the assignment (UnknownQuestionError)"},
        409: {"description": "No assignment for the current epoch (NoActiveAssignmentError)"},
    },
)
async def submit_answers(
    payload: SubmitIn,
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
    clock: EpochClock = Depends(get_clock),
    locks: LockManager = Depends(get_locks),
):
    result = await ScoringService(db, clock=clock, locks=locks).submit(
        payload.session_id,
        now,
        [(a.question_id, a.selected_option_index) for a in payload.answers],
    )
    return SubmitOut(
        score_delta=result.score_delta,
        cumulative_score=result.cumulative_score,
        answered_question_ids=result.answered_question_ids,
        completed=result.completed,
    )


@app.get(
    "/api/leaderboard",
    response_model=List[LeaderboardRow],
    response_model_by_alias=True,
    tags=["leaderboard"],
    summary="Top participants",
)
async def get_leaderboard(
    limit: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    rows = await LeaderboardService(db).top(limit)
    return [LeaderboardRow(**row) for row in rows]


@app.get(
    "/api/leaderboard/me",
    response_model=LeaderboardRow,
    response_model_by_alias=True,
    tags=["leaderboard"],
    summary="A participant's own rank",
    responses={404: {"description": "Unknown session"}},
)
async def get_my_rank(
    session_id: str = Query(..., alias="sessionId", min_length=1, max_length=128),
    db: AsyncSession = Depends(get_db),
):
    row = await LeaderboardService(db).rank_of(session_id)
    if not row:
        raise HTTPException(status_code=404, detail="Session not found")
    return LeaderboardRow(**row)


@app.post(
    "/api/user",
    response_model=SuccessResponse,
    tags=["info"],
    summary="Set display name",
    description="Sets the name shown on the leaderboard for a session.",
)
async def set_user(
    payload: UserIn,
    db: AsyncSession = Depends(get_db),
    locks: LockManager = Depends(get_locks),
):
    try:
        await ParticipantService(db, locks=locks).set_display_name(payload.session_id, payload.name)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"status": "success"}


@app.get("/api/health", tags=["info"], summary="Health check")
async def health(db: AsyncSession = Depends(get_db)):
    return {"status": "ok", "questions": await QuestionBank(db).count()}


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)
