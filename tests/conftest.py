import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fineflex.db.database import Base, get_db, init_db
from fineflex.db.ledger import LedgerStore
from fineflex.main import app
from fineflex.routers.deps import get_chat_orchestrator
from fineflex.utils.chat import AIFallback, ChatOrchestrator


class FakeAIClient:
    """Stands in for GeminiClient; returns a canned result and records prompts."""

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else AIFallback("offline")
        self.error = error
        self.prompts = []
        self.api_keys = []

    def generate(self, prompt, api_key=None):
        self.prompts.append(prompt)
        self.api_keys.append(api_key)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def ledger(session):
    return LedgerStore(session)


@pytest.fixture
def fake_ai():
    return FakeAIClient()


@pytest.fixture
def client(engine, fake_ai):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_chat_orchestrator] = lambda: ChatOrchestrator(client=fake_ai, currency="₹")
    # No context manager: the lifespan would create tables in the real database file
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    response = client.post(
        "/api/register",
        json={
            "username": "asha",
            "email": "asha@example.com",
            "password": "s3cret",
            "monthly_income": 50000,
            "savings_goal": 20000,
        },
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}

