import pytest
from fastapi.testclient import TestClient

from receipt_reader.config import Settings
from receipt_reader.errors import Unauthorized
from receipt_reader.main import create_app
from receipt_reader.schemas import CallerIdentity

ALDI_REPLY = '{"totalAmount":22.25,"date":"2025-04-26T12:34:56.789Z","description":"Aldi groceries"}'


class FakeVerifier:
    """Accepts tokens listed in ``users``; everything else is rejected as expired."""

    def __init__(self, users=None):
        self.users = users if users is not None else {"good-token": "user-123"}
        self.calls = []

    async def verify(self, token: str) -> CallerIdentity:
        self.calls.append(token)
        if token not in self.users:
            raise Unauthorized("ExpiredIdTokenError: Token expired")
        return CallerIdentity(uid=self.users[token])


class FakeGenerator:
    def __init__(self, reply: str = ALDI_REPLY, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def settings():
    return Settings(cors_origins=["http://testserver"])


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def client(settings, verifier, generator):
    app = create_app(settings, verifier=verifier, generator=generator)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_header():
    return {"Authorization": "Bearer good-token"}
