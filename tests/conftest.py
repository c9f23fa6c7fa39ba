import asyncio
import os
import tempfile

# Settings are read at import time, so the environment is fixed before any wartek import.
_DB_DIR = tempfile.mkdtemp(prefix="wartek-tests-")
os.environ["DB_PATH"] = os.path.join(_DB_DIR, "test.db")
os.environ["JWT_SECRET"] = "test-secret"
os.environ["NEWSAPI_AI_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["GOOGLE_CLIENT_ID"] = ""

import pytest
from fastapi.testclient import TestClient

from wartek.core.db import create_tables, drop_tables
from wartek.core.errors import UpstreamServiceError
from wartek.main import app
from wartek.services.generator import get_text_generator


class FakeGenerator:
    """Stands in for the text generation service; replies are consumed in order."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else (self.replies[0] if self.replies else "")
        if isinstance(reply, BaseException):
            raise reply
        return reply


async def _reset_db():
    await drop_tables()
    await create_tables()


@pytest.fixture
def fake_generator():
    return FakeGenerator


@pytest.fixture
def fresh_db():
    asyncio.run(_reset_db())


@pytest.fixture
def generator():
    # Default: the AI service is down, everything degrades to keyword results
    return FakeGenerator(UpstreamServiceError("Text generation API key missing"))


@pytest.fixture
def client(fresh_db, generator):
    app.dependency_overrides[get_text_generator] = lambda: generator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register a user and return the Authorization header for them."""

    def _signup(username, password="password123"):
        resp = client.post(
            "/users/register",
            json={"username": username, "email": f"{username}@x.com", "password": password},
        )
        assert resp.status_code == 201, resp.text
        resp = client.post("/users/login", json={"emailOrUsername": username, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _signup


@pytest.fixture
def alice(signup):
    return signup("alice")


@pytest.fixture
def bob(signup):
    return signup("bob")