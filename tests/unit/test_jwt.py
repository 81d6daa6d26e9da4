"""Unit tests for provider access-token verification."""

import uuid
from datetime import timedelta

from jose import jwt

from noteacher.kernel.identity.jwt import JWTManager, UserRole

SECRET = "unit-test-secret-key-at-least-32-characters"


class TestJWTManager:
    def setup_method(self):
        self.manager = JWTManager(secret_key=SECRET, algorithm="HS256", access_token_expire_minutes=5)

    def test_round_trip(self):
        """A minted token verifies to the same subject and role."""
        user_id = uuid.uuid4()
        token, _ = self.manager.create_access_token(user_id, email="a@example.com", role=UserRole.ADMIN)
        payload = self.manager.verify_access_token(token)
        assert payload is not None
        assert payload.sub == user_id
        assert payload.email == "a@example.com"
        assert payload.role == UserRole.ADMIN

    def test_default_role_is_user(self):
        token, _ = self.manager.create_access_token(uuid.uuid4())
        assert self.manager.verify_access_token(token).role == UserRole.USER

    def test_expired_token_rejected(self):
        token, _ = self.manager.create_access_token(uuid.uuid4(), expires_delta=timedelta(seconds=-10))
        assert self.manager.verify_access_token(token) is None

    def test_wrong_secret_rejected(self):
        other = JWTManager(secret_key="another-secret-key-also-32-characters-long")
        token, _ = other.create_access_token(uuid.uuid4())
        assert self.manager.verify_access_token(token) is None

    def test_refresh_token_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "exp": 9999999999, "type": "refresh"},
            SECRET,
            algorithm="HS256",
        )
        assert self.manager.verify_access_token(token) is None

    def test_token_without_type_accepted(self):
        """Provider tokens may omit the type claim."""
        user_id = uuid.uuid4()
        token = jwt.encode({"sub": str(user_id), "exp": 9999999999}, SECRET, algorithm="HS256")
        assert self.manager.verify_access_token(token).sub == user_id

    def test_non_uuid_subject_rejected(self):
        token = jwt.encode({"sub": "not-a-uuid", "exp": 9999999999}, SECRET, algorithm="HS256")
        assert self.manager.verify_access_token(token) is None

    def test_garbage_rejected(self):
        assert self.manager.verify_access_token("not.a.token") is None
