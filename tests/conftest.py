import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="quiz-logs-")
os.environ["MEDIA_DIR"] = tempfile.mkdtemp(prefix="quiz-media-")
os.environ["TEST_BOT_ANSWER_DELAY_SEC"] = "0"
os.environ["BOT_TOKEN"] = "123456:test-token"
for key in ("GEMINI_API_KEY", "GROQ_API_KEY", "OPENROUTER_API_KEY"):
    os.environ.pop(key, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db, get_session_factory
from app.core.websocket import manager
from app.models.admin_db.admin_crud import create_admin
from main import app

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_USERNAME = "host"
ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db_session):
    return create_admin(db_session, ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture
def admin_client(client, admin):
    response = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def events(monkeypatch):
    """Broadcasts recorded as (event, data) instead of going to sockets."""
    recorded = []

    async def record(event_name, data):
        recorded.append((event_name, data))

    monkeypatch.setattr(manager, "broadcast", record)
    return recorded


def event_names(recorded):
    return [name for name, _ in recorded]


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

@pytest.fixture
def make_quiz(admin_client):
    def _make(title="Pub night", **fields):
        response = admin_client.post("/api/quizzes", json={"title": title, **fields})
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_question(admin_client):
    def _make(quiz_id, **fields):
        body = {
            "text": "Capital of France?",
            "options": ["Rome", "Paris", "Berlin", "Madrid"],
            "correctAnswer": "B",
            **fields,
        }
        response = admin_client.post(f"/api/quizzes/{quiz_id}/questions", json=body)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_team(client):
    def _make(quiz_id, name="Owls", telegram_chat_id=None):
        response = client.post(
            f"/api/quizzes/{quiz_id}/teams",
            json={"name": name, "telegramChatId": telegram_chat_id},
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def running_quiz(admin_client, make_quiz, make_question):
    """A quiz with two choice questions and one text question, started into the lobby."""
    quiz = make_quiz()
    q1 = make_question(quiz["id"])
    q2 = make_question(quiz["id"], text="2 + 2?", options=["3", "4", "5"], correctAnswer="B", weight=2)
    q3 = make_question(
        quiz["id"],
        text="Name two primary colours",
        options=[],
        questionType="text",
        correctAnswer="Red, Blue",
    )
    response = admin_client.post("/api/game/start", json={"quizId": quiz["id"]})
    assert response.status_code == 200, response.text
    return {"quiz": quiz, "questions": [q1, q2, q3], "join_code": response.json()["joinCode"]}
