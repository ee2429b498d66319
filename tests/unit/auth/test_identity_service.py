from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from src.photo_studio.auth.auth_service import (
    IdentityService,
    InvalidTokenError,
    TokenExpiredError,
)


def test_issued_token_resolves_to_subject() -> None:
    service = IdentityService(signing_key="secret")

    assert service.resolve_user_id(service.issue_token("user-42")) == "user-42"


def test_expired_token_is_rejected() -> None:
    service = IdentityService(signing_key="secret")
    token = service.issue_token("user-42", ttl=timedelta(seconds=-1))

    with pytest.raises(TokenExpiredError):
        service.resolve_user_id(token)


def test_wrong_signature_is_invalid() -> None:
    token = IdentityService(signing_key="other").issue_token("user-42")

    with pytest.raises(InvalidTokenError):
        IdentityService(signing_key="secret").resolve_user_id(token)


def test_token_without_subject_is_invalid() -> None:
    token = jwt.encode({"scope": "studio"}, "secret", algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        IdentityService(signing_key="secret").resolve_user_id(token)
