from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

from app.auth.utils import create_access_token, create_member_token, verify_token


class TestJWT:
    def test_create_access_token(self):
        token = create_access_token({"sub": "member123"})
        assert isinstance(token, str)
        assert len(token) > 0

    def test_verify_token_success(self):
        token = create_access_token({"sub": "member123", "role": "admin"})
        payload = verify_token(token)
        assert payload is not None
        assert payload["sub"] == "member123"
        assert payload["role"] == "admin"
        assert payload["type"] == "access"

    def test_tokens_are_unique(self):
        assert create_access_token({"sub": "a"}) != create_access_token({"sub": "a"})

    def test_verify_token_invalid(self):
        assert verify_token("invalid.token.here") is None

    def test_verify_token_expired(self):
        token = create_access_token({"sub": "member123"}, timedelta(seconds=-1))
        assert verify_token(token) is None


class TestMemberToken:
    def test_member_token_claims(self):
        member_id = uuid4()
        payload = verify_token(create_member_token(member_id, "group_leader"))
        assert payload["sub"] == str(member_id)
        assert payload["role"] == "group_leader"
