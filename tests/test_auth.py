import threading
import time

import firebase_admin
import pytest
from firebase_admin import auth as firebase_auth

from receipt_reader.auth import AuthorizationGate, FirebaseTokenVerifier
from receipt_reader.config import Settings
from receipt_reader.errors import UNAUTHORIZED_MESSAGE, Unauthorized
from tests.conftest import FakeVerifier


class TestBearerToken:

    def test_extracts_token(self):
        assert AuthorizationGate.bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "abc.def", "Basic dXNlcjpwYXNz", "bearer abc", "Bearer ", "Bearer    "])
    def test_rejects_missing_or_malformed(self, header):
        with pytest.raises(Unauthorized) as exc:
            AuthorizationGate.bearer_token(header)
        assert exc.value.message == UNAUTHORIZED_MESSAGE


class TestAuthorizationGate:

    @pytest.mark.asyncio
    async def test_authorize_returns_identity(self):
        verifier = FakeVerifier()
        identity = await AuthorizationGate(verifier).authorize("Bearer good-token")

        assert identity.uid == "user-123"
        assert verifier.calls == ["good-token"]

    @pytest.mark.asyncio
    async def test_malformed_header_never_reaches_verifier(self):
        verifier = FakeVerifier()
        with pytest.raises(Unauthorized):
            await AuthorizationGate(verifier).authorize("Token good-token")
        assert verifier.calls == []

    @pytest.mark.asyncio
    async def test_rejected_token_is_unauthorized(self):
        with pytest.raises(Unauthorized):
            await AuthorizationGate(FakeVerifier()).authorize("Bearer expired-token")


class TestFirebaseTokenVerifier:

    def _verifier(self, **settings):
        return FirebaseTokenVerifier(Settings(**settings), app=object())

    @pytest.mark.asyncio
    async def test_returns_uid(self, monkeypatch):
        seen = {}

        def fake_verify(token, app=None, check_revoked=False):
            seen.update(token=token, check_revoked=check_revoked)
            return {"uid": "user-9", "email": "someone@example.com"}

        monkeypatch.setattr(firebase_auth, "verify_id_token", fake_verify)
        identity = await self._verifier(check_revoked=True).verify("tok")

        assert identity.uid == "user-9"
        assert seen == {"token": "tok", "check_revoked": True}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            firebase_auth.ExpiredIdTokenError("Token expired", cause=None),
            firebase_auth.InvalidIdTokenError("Invalid signature"),
            ValueError("Illegal ID token provided"),
        ],
    )
    async def test_rejections_become_unauthorized(self, monkeypatch, error):
        def fake_verify(token, app=None, check_revoked=False):
            raise error

        monkeypatch.setattr(firebase_auth, "verify_id_token", fake_verify)
        with pytest.raises(Unauthorized) as exc:
            await self._verifier().verify("tok")

        assert exc.value.message == UNAUTHORIZED_MESSAGE
        assert type(error).__name__ in exc.value.detail

    @pytest.mark.asyncio
    async def test_missing_uid_is_unauthorized(self, monkeypatch):
        monkeypatch.setattr(firebase_auth, "verify_id_token", lambda token, app=None, check_revoked=False: {})
        with pytest.raises(Unauthorized):
            await self._verifier().verify("tok")


class TestFirebaseAppInit:

    def test_concurrent_first_use_creates_one_app(self, monkeypatch):
        apps = {}
        created = []

        def fake_get_app():
            if "default" not in apps:
                raise ValueError("The default Firebase app does not exist.")
            return apps["default"]

        def fake_initialize_app():
            if "default" in apps:
                raise ValueError("The default Firebase app already exists.")
            time.sleep(0.05)
            app = object()
            created.append(app)
            apps["default"] = app
            return app

        monkeypatch.setattr(firebase_admin, "get_app", fake_get_app)
        monkeypatch.setattr(firebase_admin, "initialize_app", fake_initialize_app)

        verifiers = [FirebaseTokenVerifier(Settings()), FirebaseTokenVerifier(Settings())]
        results, errors = [], []
        start = threading.Barrier(len(verifiers))

        def resolve(verifier):
            start.wait()
            try:
                results.append(verifier.app)
            except ValueError as e:
                errors.append(e)

        threads = [threading.Thread(target=resolve, args=(v,)) for v in verifiers]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(created) == 1
        assert results == [created[0], created[0]]
