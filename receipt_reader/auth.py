import logging
import threading
from typing import Protocol

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions
from starlette.concurrency import run_in_threadpool

from receipt_reader.config import Settings
from receipt_reader.errors import Unauthorized
from receipt_reader.schemas import CallerIdentity

logger = logging.getLogger("receipt_reader")

BEARER_PREFIX = "Bearer "

# Guards creation of the default Firebase app across threadpool workers.
_firebase_init_lock = threading.Lock()


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> CallerIdentity: ...


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens with the Admin SDK."""

    def __init__(self, settings: Settings, app: firebase_admin.App | None = None):
        self.settings = settings
        self._app = app

    @property
    def app(self) -> firebase_admin.App:
        if self._app is None:
            with _firebase_init_lock:
                if self._app is None:
                    try:
                        self._app = firebase_admin.get_app()
                    except ValueError:
                        self._app = firebase_admin.initialize_app()
        return self._app

    def _verify(self, token: str) -> dict:
        return firebase_auth.verify_id_token(
            token, app=self.app, check_revoked=self.settings.check_revoked
        )

    async def verify(self, token: str) -> CallerIdentity:
        try:
            decoded = await run_in_threadpool(self._verify, token)
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            raise Unauthorized(f"{type(e).__name__}: {e}") from e

        uid = decoded.get("uid")
        if not uid:
            raise Unauthorized("decoded token carries no uid")
        return CallerIdentity(uid=uid)


class AuthorizationGate:
    """Turns an Authorization header into a CallerIdentity or raises Unauthorized."""

    def __init__(self, verifier: TokenVerifier):
        self.verifier = verifier

    @staticmethod
    def bearer_token(header: str | None) -> str:
        """Extract the token locally; nothing malformed is sent to the verifier."""
        if not header or not header.startswith(BEARER_PREFIX):
            raise Unauthorized("missing or malformed Authorization header")
        token = header[len(BEARER_PREFIX):].strip()
        if not token:
            raise Unauthorized("empty bearer token")
        return token

    async def verify(self, token: str) -> CallerIdentity:
        return await self.verifier.verify(token)

    async def authorize(self, header: str | None) -> CallerIdentity:
        """Parse and verify in one step.

        The read-receipt route calls ``bearer_token`` and ``verify`` separately so
        the method and body checks can run between them.
        """
        return await self.verify(self.bearer_token(header))
