import pytest
from httpx import ASGITransport, AsyncClient

from api.main import app, get_clock, get_locks, get_now
from db.seed import default_catalog
from db.session import get_db
from services.lock_manager import LockManager
from services.question_bank import QuestionBank
from conftest import NOW, NEXT_HOUR


class Clock:
    """Mutable 'now' shared with the app through dependency overrides."""
    def __init__(self, now):
        self.now = now


@pytest.fixture
def wall():
    return Clock(NOW)


@pytest.fixture
async def client(session_factory, clock, locks, wall):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: wall.now
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_locks] = lambda: locks

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def test_questions_flow(seeded, client, wall, clock):
    resp = await client.get("/api/questions", params={"sessionId": "alice"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["epoch"] == clock.current_epoch(NOW)
    assert len(data["questions"]) == 5
    assert data["answeredQuestionIds"] == []
    assert data["completed"] is False
    assert data["cumulativeScore"] == 0
    for q in data["questions"]:
        assert set(q) == {"id", "prompt", "options"}

    ids = [q["id"] for q in data["questions"]]
    answers = [{"questionId": qid, "selectedOptionIndex": 0 if i < 3 else 1} for i, qid in enumerate(ids)]

    resp = await client.post("/api/submit", json={"sessionId": "alice", "answers": answers})
    assert resp.status_code == 200
    assert resp.json()["scoreDelta"] == 3
    assert resp.json()["cumulativeScore"] == 3
    assert resp.json()["completed"] is True

    resp = await client.post("/api/submit", json={"sessionId": "alice", "answers": answers})
    assert resp.json()["scoreDelta"] == 0
    assert resp.json()["cumulativeScore"] == 3

    # Re-serve shows the participant is done for this epoch
    resp = await client.get("/api/questions", params={"sessionId": "alice"})
    data = resp.json()
    assert [q["id"] for q in data["questions"]] == ids
    assert data["completed"] is True

    wall.now = NEXT_HOUR
    resp = await client.get("/api/questions", params={"sessionId": "alice"})
    data = resp.json()
    assert data["epoch"] == clock.current_epoch(NEXT_HOUR)
    assert data["answeredQuestionIds"] == []
    assert data["cumulativeScore"] == 3


async def test_submit_without_assignment(seeded, client):
    resp = await client.post("/api/submit", json={"sessionId": "ghost", "answers": []})
    assert resp.status_code == 409
    assert resp.json()["error"] == "NoActiveAssignmentError"


async def test_submit_unknown_question(seeded, client):
    resp = await client.get("/api/questions", params={"sessionId": "alice"})
    ids = [q["id"] for q in resp.json()["questions"]]
    outside = next(qid for qid in range(1, 101) if qid not in ids)

    resp = await client.post("/api/submit", json={
        "sessionId": "alice",
        "answers": [{"questionId": outside, "selectedOptionIndex": 0}],
    })
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "UnknownQuestionError"
    assert body["questionIds"] == [outside]


async def test_pool_exhausted(session_factory, client):
    async with session_factory() as db:
        await QuestionBank(db).seed_if_empty(default_catalog(3))

    resp = await client.get("/api/questions", params={"sessionId": "alice"})
    assert resp.status_code == 503
    assert resp.json()["error"] == "PoolExhaustedError"
    assert resp.json()["available"] == 3


async def test_validation_errors(seeded, client):
    resp = await client.get("/api/questions")
    assert resp.status_code == 422

    resp = await client.post("/api/submit", json={
        "sessionId": "alice",
        "answers": [{"questionId": 1, "selectedOptionIndex": -1}],
    })
    assert resp.status_code == 422


async def test_leaderboard_and_names(seeded, client):
    for sid in ("alice", "bob"):
        resp = await client.get("/api/questions", params={"sessionId": sid})
        ids = [q["id"] for q in resp.json()["questions"]]
        correct = 2 if sid == "alice" else 4
        answers = [{"questionId": qid, "selectedOptionIndex": 0 if i < correct else 1} for i, qid in enumerate(ids)]
        await client.post("/api/submit", json={"sessionId": sid, "answers": answers})

    resp = await client.post("/api/user", json={"sessionId": "bob", "name": "Bob"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "success"}

    resp = await client.get("/api/leaderboard")
    assert resp.json() == [
        {"rank": 1, "sessionId": "bob", "name": "Bob", "score": 4},
        {"rank": 2, "sessionId": "alice", "name": "alice", "score": 2},
    ]

    resp = await client.get("/api/leaderboard/me", params={"sessionId": "alice"})
    assert resp.json()["rank"] == 2

    resp = await client.get("/api/leaderboard/me", params={"sessionId": "nobody"})
    assert resp.status_code == 404


async def test_user_name_too_long(client):
    resp = await client.post("/api/user", json={"sessionId": "bob", "name": "x" * 65})
    assert resp.status_code == 422


async def test_health(seeded, client):
    resp = await client.get("/api/health")
    assert resp.json() == {"status": "ok", "questions": 100}


async def test_busy_session_returns_503(seeded, client):
    busy = LockManager(timeout=0.05)
    app.dependency_overrides[get_locks] = lambda: busy

    async with busy.hold("alice"):
        resp = await client.get("/api/questions", params={"sessionId": "alice"})
        assert resp.status_code == 503
        body = resp.json()
        assert body["error"] == "LockTimeoutError"
        assert body["retryable"] is True

        resp = await client.post("/api/submit", json={"sessionId": "alice", "answers": []})
        assert resp.status_code == 503

    resp = await client.get("/api/questions", params={"sessionId": "alice"})
    assert resp.status_code == 200
