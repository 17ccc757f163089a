import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask_login import login_user, logout_user

from ...models import SessionToken, utcnow


@dataclass
class SessionContext:
    """What the cookie carries for an authenticated principal."""
    user_id: int
    principal_name: str
    role: str
    auth_provider: str
    session_token: str = None

    def to_dict(self):
        return {
            "id": self.user_id,
            "username": self.principal_name,
            "role": self.role,
            "authProvider": self.auth_provider,
        }


class SessionManager:
    """Issues sessions: a persisted token row plus the cookie context.

    ``cookie`` is the request's server-side session mapping (``flask.session``).
    """

    def __init__(self, session, cookie, ttl_seconds):
        self.session = session
        self.cookie = cookie
        self.ttl = timedelta(seconds=ttl_seconds)

    def create_session(self, principal, role, auth_provider):
        token = secrets.token_hex(64)
        expires_at = utcnow() + self.ttl
        self.session.add(SessionToken(
            session_token=token,
            principal_id=principal.id,
            role=role,
            expires_at=expires_at,
        ))
        self.session.commit()

        self.cookie.clear()
        login_user(principal)
        self.cookie.permanent = True
        self.cookie["user_id"] = principal.id
        self.cookie["principal_name"] = principal.principal_name
        self.cookie["role"] = role
        self.cookie["auth_provider"] = auth_provider
        self.cookie["session_token"] = token
        return token, expires_at

    def current(self):
        if not self.cookie.get("user_id"):
            return None
        return SessionContext(
            user_id=self.cookie["user_id"],
            principal_name=self.cookie.get("principal_name"),
            role=self.cookie.get("role", "user"),
            auth_provider=self.cookie.get("auth_provider"),
            session_token=self.cookie.get("session_token"),
        )

    def destroy_session(self):
        token = self.cookie.get("session_token")
        if token:
            SessionToken.query.filter_by(session_token=token).delete()
            self.session.commit()
        logout_user()
        self.cookie.clear()
