"""Resolve bearer tokens to user identifiers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import jwt
from jwt import ExpiredSignatureError
from jwt import InvalidTokenError as PyJWTInvalidTokenError
import structlog


logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(tz=timezone.utc)


class AuthError(Exception):
    """Base class for auth failures."""


class InvalidTokenError(AuthError):
    """Raised when token cannot be decoded or has no subject."""


class TokenExpiredError(AuthError):
    """Raised when token is expired."""


@dataclass(slots=True)
class IdentityService:
    """Validate HS256 tokens whose ``sub`` claim is the user id."""

    signing_key: str
    algorithms: tuple[str, ...] = field(default=("HS256",))

    def resolve_user_id(self, token: str) -> str:
        try:
            claims = jwt.decode(token, self.signing_key, algorithms=list(self.algorithms))
        except ExpiredSignatureError as exc:
            logger.info("auth.token.expired")
            raise TokenExpiredError("Token expired") from exc
        except PyJWTInvalidTokenError as exc:
            logger.info("auth.token.invalid", error=str(exc))
            raise InvalidTokenError("Invalid token") from exc

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError("Token has no subject")
        return subject

    def issue_token(self, user_id: str, *, ttl: timedelta = timedelta(hours=1)) -> str:
        """Mint a token for ``user_id`` (used by tooling and tests)."""
        issued_at = _utcnow()
        claims = {
            "sub": user_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + ttl).timestamp()),
        }
        return jwt.encode(claims, self.signing_key, algorithm=self.algorithms[0])
