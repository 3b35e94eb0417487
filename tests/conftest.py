"""
Pytest configuration and fixtures for the quiz service tests.
"""
import sys
import os
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.epoch import EpochClock
from db.seed import default_catalog
from db.session import init_models
from services.lock_manager import LockManager
from services.question_bank import QuestionBank

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)

# 12:15 UTC; the hourly epoch runs 12:00-13:00
NOW = datetime(2026, 10, 19, 12, 15, tzinfo=timezone.utc)
NEXT_HOUR = datetime(2026, 10, 19, 13, 5, tzinfo=timezone.utc)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'quiz_test.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return EpochClock(window_seconds=3600, offset_seconds=0)


@pytest.fixture
def locks():
    return LockManager(timeout=5)


@pytest.fixture
def catalog():
    """100 questions, correct option is always index 0."""
    return default_catalog(100)


@pytest.fixture
async def seeded(session_factory, catalog):
    async with session_factory() as session:
        await QuestionBank(session).seed_if_empty(catalog)
    return catalog


@pytest.fixture
def sample_questions():
    """Sample quiz questions for testing"""
    return [
        {
            "question": "What is 2+2?",
            "options": ["3", "4", "5", "6"],
            "correct_option_id": 1
        },
        {
            "question": "What is the capital of Uzbekistan?",
            "options": ["Tashkent", "Samarkand", "Bukhara", "Khiva"],
            "correct_option_id": 0
        }
    ]


@pytest.fixture
def legacy_format_lines():
    """Sample lines in legacy format"""
    return [
        "?What is Python?",
        "+A programming language",
        "=A snake",
        "=A movie",
        "?What is 1+1?",
        "+2",
        "=1",
        "=3"
    ]


@pytest.fixture
def block_format_lines():
    """Sample lines in block format"""
    return [
        "What is the largest planet?",
        "====",
        "Earth",
        "====",
        "#Jupiter",
        "====",
        "Mars",
        "++++",
        "What is H2O?",
        "====",
        "#Water",
        "====",
        "Salt",
        "++++",
    ]
