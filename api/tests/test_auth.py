import logging
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException

from heartconnect.auth import security
from heartconnect.config import SESSION_COOKIE_NAME
from heartconnect.errors import ValidationError


def test_missing_credentials_is_401(client):
    r = client.get("/api/auth/user")
    assert r.status_code == 401
    assert r.json() == {"message": "Authentication required"}


def test_malformed_authorization_header(client):
    r = client.get("/api/auth/user", headers={"Authorization": "Token abc"})
    assert r.status_code == 401
    assert r.json() == {"message": "Invalid Authorization header"}


def test_token_signed_with_other_secret_is_rejected(client):
    forged = jwt.encode({"sub": "alice"}, "some-other-secret-that-is-long-enough", algorithm="HS256")
    r = client.get("/api/auth/user", headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 401
    assert r.json() == {"message": "Invalid token"}


def test_expired_token_is_rejected(client):
    now = datetime.now(timezone.utc)
    stale = jwt.encode(
        {"sub": "alice", "iat": int((now - timedelta(hours=2)).timestamp()), "exp": int((now - timedelta(hours=1)).timestamp())},
        security.JWT_SECRET,
        algorithm="HS256",
    )
    r = client.get("/api/auth/user", headers={"Authorization": f"Bearer {stale}"})
    assert r.status_code == 401
    assert r.json() == {"message": "Token expired"}


def test_token_without_subject_is_rejected(client):
    anonymous = jwt.encode({"email": "x@example.com"}, security.JWT_SECRET, algorithm="HS256")
    r = client.get("/api/auth/user", headers={"Authorization": f"Bearer {anonymous}"})
    assert r.status_code == 401


def test_first_request_upserts_user_from_claims(client, auth_headers, storage):
    assert storage.get_user("alice") is None

    r = client.get(
        "/api/auth/user",
        headers=auth_headers("alice", last_name="Liddell", profile_image_url="https://img.example.com/a.jpg"),
    )

    assert r.status_code == 200
    body = r.json()
    assert body["email"] == "alice@example.com"
    assert body["lastName"] == "Liddell"
    assert body["profileImageUrl"] == "https://img.example.com/a.jpg"
    assert storage.get_user("alice")["first_name"] == "Alice"


def test_changed_claims_refresh_the_user_row(client, auth_headers, storage):
    client.get("/api/auth/user", headers=auth_headers("alice"))
    client.get("/api/auth/user", headers=auth_headers("alice", first_name="Ally"))

    assert storage.get_user("alice")["first_name"] == "Ally"


def test_session_cookie_is_accepted(client, token_for):
    client.cookies.set(SESSION_COOKIE_NAME, token_for("bob"))
    r = client.get("/api/auth/user")
    assert r.status_code == 200
    assert r.json()["id"] == "bob"


def test_missing_secret_is_a_server_error(monkeypatch):
    monkeypatch.setattr(security, "JWT_SECRET", "")
    with pytest.raises(HTTPException) as exc:
        security.decode_access_token("anything")
    assert exc.value.status_code == 500


def test_token_round_trip_carries_identity_claims(monkeypatch):
    monkeypatch.setattr(security, "JWT_SECRET", "round-trip-secret-for-token-claims")
    token = security.create_access_token("alice", email="alice@example.com", first_name="", ttl_minutes=5)
    payload = security.decode_access_token(token)

    assert payload["sub"] == "alice"
    assert security.identity_claims(payload) == {
        "email": "alice@example.com",
        "first_name": None,
        "last_name": None,
        "profile_image_url": None,
    }


def test_token_without_subject_logs_one_failure(client, caplog):
    anonymous = jwt.encode({"email": "x@example.com"}, security.JWT_SECRET, algorithm="HS256")
    with caplog.at_level(logging.WARNING, logger="heartconnect.auth.deps"):
        client.get("/api/auth/user", headers={"Authorization": f"Bearer {anonymous}"})

    failures = [r for r in caplog.records if "FAILURE" in r.getMessage()]
    assert len(failures) == 1
    assert "reason=token_missing_subject" in failures[0].getMessage()


def test_email_owned_by_another_user_is_401(client, auth_headers, storage):
    storage.upsert_user("bob", email="shared@example.com")

    r = client.get("/api/auth/user", headers=auth_headers("alice", email="shared@example.com"))

    assert r.status_code == 401
    assert r.json() == {"message": "Email is already linked to another account"}
    assert storage.get_user("alice") is None


def test_changing_email_to_a_taken_one_is_401(client, auth_headers, storage):
    client.get("/api/auth/user", headers=auth_headers("alice"))
    storage.upsert_user("bob", email="bob@example.com")

    r = client.get("/api/auth/user", headers=auth_headers("alice", email="bob@example.com"))

    assert r.status_code == 401
    assert storage.get_user("alice")["email"] == "alice@example.com"


def test_upsert_user_rejects_email_owned_by_another_user(storage):
    storage.upsert_user("bob", email="shared@example.com")

    with pytest.raises(ValidationError):
        storage.upsert_user("alice", email="shared@example.com")
    assert storage.get_user("alice") is None
    assert storage.get_user("bob")["email"] == "shared@example.com"
