"""Registration, email verification, login, token lifecycle, profiles."""

from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from chronos.core.exceptions import ConflictError
from chronos.models import Calendar, EventCategory, User
from chronos.services import accounts

from conftest import PASSWORD


@pytest.fixture(autouse=True)
def sent_mail(monkeypatch):
    sent = []
    monkeypatch.setattr(
        accounts,
        "send_verification_email",
        lambda user: sent.append(("verify", user.email, user.email_verification_token)),
    )
    monkeypatch.setattr(
        accounts,
        "send_email_change_email",
        lambda user: sent.append(("change", user.pending_email, user.email_change_token)),
    )
    return sent


def _login(client, username, password=PASSWORD):
    return client.post("/auth/login", json={"username": username, "password": password})


class TestRegistration:
    def test_register_creates_main_calendar(self, client, session):
        response = client.post(
            "/auth/register",
            json={
                "username": "nina",
                "email": "Nina@Acme.io",
                "password": "s3cret-enough",
                "full_name": "Nina N",
                "region": "EU",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == "nina@acme.io"
        assert "hashed_password" not in data

        user = session.exec(select(User).where(User.username == "nina")).one()
        [main] = session.exec(select(Calendar).where(Calendar.owner_id == user.id)).all()
        assert main.is_main
        assert len(
            session.exec(select(EventCategory).where(EventCategory.calendar_id == main.id)).all()
        ) == 3

    def test_duplicate_email_is_rejected(self, client, owner):
        response = client.post(
            "/auth/register",
            json={"username": "another", "email": owner.email, "password": "s3cret-enough"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Email is already registered"

    def test_duplicate_username_is_rejected(self, client, owner):
        response = client.post(
            "/auth/register",
            json={"username": owner.username, "email": "fresh@acme.io", "password": "s3cret-enough"},
        )
        assert response.status_code == 400


class TestEmailVerification:
    def _register(self, client, username="nina"):
        return client.post(
            "/auth/register",
            json={
                "username": username,
                "email": f"{username}@acme.io",
                "password": "s3cret-enough",
            },
        )

    def test_login_is_refused_until_verified(self, client, sent_mail):
        registered = self._register(client)
        assert registered.json()["data"]["is_email_verified"] is False
        [(kind, to, token)] = sent_mail
        assert (kind, to) == ("verify", "nina@acme.io")

        refused = _login(client, "nina", "s3cret-enough")
        assert refused.status_code == 403
        assert refused.json()["message"] == "Please verify your email before logging in"

        verified = client.get("/auth/verify-email", params={"token": token})
        assert verified.status_code == 200
        assert verified.json()["data"]["is_email_verified"] is True

        assert _login(client, "nina", "s3cret-enough").status_code == 200
        # Tokens are single use
        again = client.get("/auth/verify-email", params={"token": token})
        assert again.status_code == 400

    def test_unknown_token(self, client):
        response = client.get("/auth/verify-email", params={"token": "nope"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid verification token"

    def test_missing_token_is_400(self, client):
        assert client.get("/auth/verify-email").status_code == 400

    def test_expired_token(self, session, sent_mail, client):
        self._register(client)
        [(_, _, token)] = sent_mail
        later = datetime.utcnow() + timedelta(minutes=16)

        with pytest.raises(ConflictError, match="expired"):
            accounts.verify_email(session, token, now=later)

    def test_resend_replaces_token(self, client, sent_mail):
        self._register(client)
        [(_, _, first)] = sent_mail

        response = client.post("/auth/resend-verification", json={"email": "Nina@acme.io"})
        assert response.status_code == 200
        [_, (kind, to, second)] = sent_mail
        assert (kind, to) == ("verify", "nina@acme.io")
        assert second != first

        assert client.get("/auth/verify-email", params={"token": first}).status_code == 400
        assert client.get("/auth/verify-email", params={"token": second}).status_code == 200

    def test_resend_for_verified_or_unknown_address_sends_nothing(
        self, client, owner, sent_mail
    ):
        for email in (owner.email, "ghost@acme.io"):
            response = client.post("/auth/resend-verification", json={"email": email})
            assert response.status_code == 200
        assert sent_mail == []


class TestEmailChange:
    def test_change_is_applied_after_confirmation(
        self, client, owner, auth_headers, sent_mail, session
    ):
        old_email = owner.email
        response = client.post(
            "/auth/change-email",
            json={"new_email": "Olivia.New@Acme.io", "password": PASSWORD},
            headers=auth_headers(owner),
        )
        assert response.status_code == 200
        [(kind, to, token)] = sent_mail
        assert (kind, to) == ("change", "olivia.new@acme.io")

        profile = client.get("/users/profile", headers=auth_headers(owner)).json()["data"]
        assert profile["email"] == old_email
        assert profile["pending_email"] == "olivia.new@acme.io"

        confirmed = client.get("/auth/verify-email-change", params={"token": token})
        assert confirmed.status_code == 200
        assert confirmed.json()["data"]["email"] == "olivia.new@acme.io"
        assert confirmed.json()["data"]["pending_email"] is None

        assert _login(client, "olivia.new@acme.io").status_code == 200
        assert _login(client, old_email).status_code == 401

    def test_wrong_password(self, client, owner, auth_headers, sent_mail):
        response = client.post(
            "/auth/change-email",
            json={"new_email": "other@acme.io", "password": "wrong-password"},
            headers=auth_headers(owner),
        )
        assert response.status_code == 400
        assert sent_mail == []

    def test_address_in_use(self, client, owner, guest, auth_headers):
        response = client.post(
            "/auth/change-email",
            json={"new_email": guest.email, "password": PASSWORD},
            headers=auth_headers(owner),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Email is already in use"

    def test_address_taken_before_confirmation(
        self, client, owner, make_user, auth_headers, sent_mail
    ):
        client.post(
            "/auth/change-email",
            json={"new_email": "wanted@acme.io", "password": PASSWORD},
            headers=auth_headers(owner),
        )
        [(_, _, token)] = sent_mail
        make_user("wanda", email="wanted@acme.io")

        response = client.get("/auth/verify-email-change", params={"token": token})
        assert response.status_code == 400

    def test_expired_token(self, session, owner, sent_mail):
        accounts.request_email_change(session, owner, "later@acme.io", PASSWORD)
        [(_, _, token)] = sent_mail

        with pytest.raises(ConflictError, match="expired"):
            accounts.confirm_email_change(
                session, token, now=datetime.utcnow() + timedelta(hours=1)
            )

    def test_requires_authentication(self, client):
        response = client.post(
            "/auth/change-email",
            json={"new_email": "x@acme.io", "password": PASSWORD},
        )
        assert response.status_code == 401


class TestLogin:
    def test_login_with_username_or_email(self, client, owner):
        by_username = _login(client, owner.username)
        by_email = _login(client, owner.email.upper())

        assert by_username.status_code == 200
        assert by_email.status_code == 200
        assert by_username.json()["data"]["token_type"] == "bearer"

    def test_wrong_password(self, client, owner):
        response = _login(client, owner.username, "wrong-password")
        assert response.status_code == 401
        assert response.json()["status"] == "error"

    def test_garbage_token(self, client):
        response = client.get(
            "/users/profile", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401


class TestTokenLifecycle:
    def test_logout_revokes_access_and_refresh_tokens(self, client, owner, revocation_store):
        tokens = _login(client, owner.username).json()["data"]
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}
        assert client.get("/users/profile", headers=headers).status_code == 200

        response = client.post(
            "/auth/logout",
            json={"refresh_token": tokens["refresh_token"]},
            headers=headers,
        )

        assert response.status_code == 200
        assert client.get("/users/profile", headers=headers).status_code == 401
        refreshed = client.post(
            "/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert refreshed.status_code == 401

    def test_refresh_rotates_tokens(self, client, owner):
        tokens = _login(client, owner.username).json()["data"]

        first = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert first.status_code == 200
        new_access = first.json()["data"]["access_token"]
        assert client.get(
            "/users/profile", headers={"Authorization": f"Bearer {new_access}"}
        ).status_code == 200

        replay = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert replay.status_code == 401

    def test_access_token_cannot_refresh(self, client, owner):
        tokens = _login(client, owner.username).json()["data"]
        response = client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert response.status_code == 401

    def test_change_password(self, client, owner, auth_headers):
        headers = auth_headers(owner)
        wrong = client.put(
            "/auth/change-password",
            json={"current_password": "nope", "new_password": "brand-new-pass"},
            headers=headers,
        )
        assert wrong.status_code == 400

        changed = client.put(
            "/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "brand-new-pass"},
            headers=headers,
        )
        assert changed.status_code == 200
        assert _login(client, owner.username, "brand-new-pass").status_code == 200


class TestProfiles:
    def test_update_profile(self, client, owner, auth_headers):
        response = client.put(
            "/users/profile", json={"region": "APAC"}, headers=auth_headers(owner)
        )
        assert response.status_code == 200
        assert response.json()["data"]["region"] == "APAC"
        assert response.json()["data"]["full_name"] == owner.full_name

    def test_public_profile_hides_email(self, client, owner, guest, auth_headers):
        response = client.get(f"/users/{guest.id}", headers=auth_headers(owner))
        assert response.status_code == 200
        assert "email" not in response.json()["data"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
