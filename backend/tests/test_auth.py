"""
Authentication tests: tokens, register, login, refresh.
"""

from datetime import timedelta

import pytest
from jose import jwt

from config import settings
from models.users import Role
from utils.errors import (
    TokenMalformedError, TokenExpiredError, TokenSignatureError, TokenTypeError,
)
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import (
    create_access_token, create_refresh_token, decode_token, ACCESS, REFRESH,
)
from conftest import make_user, auth_headers, PASSWORD


class TestPasswordHashing:

    def test_hash_verifies(self):
        hashed = get_password_hash("s3cret!")
        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)

    def test_garbage_hash_does_not_verify(self):
        assert not verify_password("s3cret!", "not-a-bcrypt-hash")


class TestTokens:

    def test_access_token_claims(self, db_session):
        user = make_user(db_session, "claims@possystem.com", Role.MANAGER)
        payload = decode_token(create_access_token(user), ACCESS)
        assert payload["sub"] == str(user.id)
        assert payload["email"] == "claims@possystem.com"
        assert payload["role"] == "MANAGER"
        assert payload["type"] == "access"

    def test_malformed_token(self):
        with pytest.raises(TokenMalformedError):
            decode_token("definitely.not-a.jwt", ACCESS)

    def test_expired_token(self, db_session):
        user = make_user(db_session, "expired@possystem.com")
        token = create_access_token(user, expires_delta=timedelta(seconds=-10))
        with pytest.raises(TokenExpiredError):
            decode_token(token, ACCESS)

    def test_bad_signature(self):
        token = jwt.encode({"sub": "1", "type": "access"}, "some-other-secret", algorithm=settings.ALGORITHM)
        with pytest.raises(TokenSignatureError):
            decode_token(token, ACCESS)

    def test_refresh_token_is_not_an_access_token(self, db_session):
        user = make_user(db_session, "refresh@possystem.com")
        with pytest.raises((TokenSignatureError, TokenTypeError)):
            decode_token(create_refresh_token(user), ACCESS)

    def test_wrong_type_with_valid_signature(self):
        token = jwt.encode({"sub": "1", "type": "refresh"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        with pytest.raises(TokenTypeError):
            decode_token(token, ACCESS)


class TestAuthEndpoints:

    def test_register_returns_user_and_tokens(self, client):
        resp = client.post("/auth/register", json={
            "email": "New.User@Example.com", "password": "secret123", "first_name": "New",
        })
        assert resp.status_code == 201
        body = resp.json()
        assert body["user"]["email"] == "new.user@example.com"
        assert body["user"]["role"] == "USER"
        assert body["access_token"] and body["refresh_token"]

    def test_register_duplicate_email_conflicts(self, client, db_session):
        make_user(db_session, "taken@possystem.com")
        resp = client.post("/auth/register", json={
            "email": "taken@possystem.com", "password": "secret123", "first_name": "Dup",
        })
        assert resp.status_code == 409

    def test_register_rejects_password_over_bcrypt_limit(self, client):
        resp = client.post("/auth/register", json={
            "email": "long.pass@possystem.com", "password": "x" * 80, "first_name": "Long",
        })
        assert resp.status_code == 422

    def test_register_counts_password_bytes_not_characters(self, client):
        # 36 two-byte characters are 72 bytes, one more goes over
        ok = client.post("/auth/register", json={
            "email": "fits@possystem.com", "password": "\u00e9" * 36, "first_name": "Fits",
        })
        assert ok.status_code == 201
        too_long = client.post("/auth/register", json={
            "email": "over@possystem.com", "password": "\u00e9" * 37, "first_name": "Over",
        })
        assert too_long.status_code == 422

    def test_register_cannot_choose_role(self, client):
        resp = client.post("/auth/register", json={
            "email": "sneaky@possystem.com", "password": "secret123", "first_name": "S", "role": "ADMIN",
        })
        assert resp.status_code == 201
        assert resp.json()["user"]["role"] == "USER"

    def test_login_success(self, client, db_session):
        make_user(db_session, "login@possystem.com", Role.CASHIER)
        resp = client.post("/auth/login", json={"email": "login@possystem.com", "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["user"]["role"] == "CASHIER"

    def test_login_wrong_password(self, client, db_session):
        make_user(db_session, "login@possystem.com")
        resp = client.post("/auth/login", json={"email": "login@possystem.com", "password": "nope"})
        assert resp.status_code == 401

    def test_login_inactive_user(self, client, db_session):
        make_user(db_session, "inactive@possystem.com", is_active=False)
        resp = client.post("/auth/login", json={"email": "inactive@possystem.com", "password": PASSWORD})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Account is deactivated"

    def test_failed_login_is_audited(self, client, db_session):
        from models.log import Log
        client.post("/auth/login", json={"email": "ghost@possystem.com", "password": "x"})
        entry = db_session.query(Log).filter(Log.action == "LOGIN").one()
        assert entry.status == "FAIL"

    def test_refresh_issues_new_pair(self, client, db_session):
        user = make_user(db_session, "refresh@possystem.com")
        resp = client.post("/auth/refresh", json={"refresh_token": create_refresh_token(user)})
        assert resp.status_code == 200
        assert resp.json()["user"]["id"] == user.id

    def test_refresh_rejects_access_token(self, client, db_session):
        user = make_user(db_session, "refresh@possystem.com")
        resp = client.post("/auth/refresh", json={"refresh_token": create_access_token(user)})
        assert resp.status_code == 401

    def test_me(self, client, db_session):
        user = make_user(db_session, "me@possystem.com", Role.MANAGER)
        resp = client.get("/auth/me", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.json()["email"] == "me@possystem.com"

    def test_me_without_token(self, client):
        assert client.get("/auth/me").status_code == 401

    def test_me_with_expired_token(self, client, db_session):
        user = make_user(db_session, "me@possystem.com")
        token = create_access_token(user, expires_delta=timedelta(seconds=-5))
        resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Token has expired"
