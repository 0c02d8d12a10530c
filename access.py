import hashlib
import hmac
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import Header, Request

from config import Settings
from errors import Unauthorized

logger = logging.getLogger(__name__)


class SessionManager:
    """Admin session tokens, kept in memory for the life of the process."""

    def __init__(self):
        self._tokens: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def issue(self) -> str:
        token = str(uuid.uuid4())
        with self._lock:
            self._tokens[token] = datetime.now(timezone.utc)
        return token

    def is_valid(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return token in self._tokens

    def revoke(self, token: str) -> None:
        with self._lock:
            self._tokens.pop(token, None)

    def issued_at(self, token: str) -> Optional[datetime]:
        with self._lock:
            return self._tokens.get(token)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


class AccessGateway:
    def __init__(self, settings: Settings, sessions: SessionManager):
        self.settings = settings
        self.sessions = sessions

    def login(self, login: Optional[str], password: Optional[str]) -> str:
        login_ok = hmac.compare_digest(
            (login or "").encode("utf-8"), self.settings.admin_login.encode("utf-8")
        )
        password_ok = hmac.compare_digest(
            hash_password(password or "").encode("utf-8"),
            self.settings.admin_password_sha256.encode("utf-8"),
        )
        # Same answer for a bad login and a bad password
        if not (login_ok and password_ok):
            logger.warning("Admin login failed")
            raise Unauthorized("Invalid credentials")

        token = self.sessions.issue()
        logger.info(f"Admin login succeeded ({len(self.sessions)} active sessions)")
        return token

    def check(self, token: Optional[str]) -> str:
        if not self.sessions.is_valid(token):
            raise Unauthorized("Unauthorized")
        return token

    def logout(self, token: str) -> None:
        issued = self.sessions.issued_at(token)
        self.sessions.revoke(token)
        if issued is not None:
            logger.info(f"Admin logged out (session issued at {issued:%Y-%m-%d %H:%M:%S} UTC)")


def get_gateway(request: Request) -> AccessGateway:
    return request.app.state.gateway


def require_admin(request: Request, authorization: Optional[str] = Header(None)) -> str:
    """FastAPI dependency: the caller's admin token, or 401."""
    return get_gateway(request).check(bearer_token(authorization))
