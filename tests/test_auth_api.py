"""Tests for login, signup, session verification and logout."""

from datetime import timedelta

from jose import jwt

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, bearer, login, make_user
from rbac_console.core.config import settings
from rbac_console.core.exceptions import AuthenticationError
from rbac_console.core.security import create_access_token, identity_from_token
from rbac_console.models.audit_log import AuditEvent
from rbac_console.models.user import User
from rbac_console.services.auth_service import AuthService, auth_service
from rbac_console.services.user_service import UserService


def events(db, action):
    db.expire_all()
    return db.query(AuditEvent).filter(AuditEvent.action == action).order_by(AuditEvent.id).all()


class TestLogin:
    """POST /api/auth/login"""

    def test_login_by_email(self, client, db):
        resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        assert resp.status_code == 200
        data = resp.json()
        assert data["token"]
        assert data["user"]["email"] == ADMIN_EMAIL
        assert data["user"]["role"] == "Admin"
        assert "view_audit_logs" in data["user"]["permissions"]
        assert "password" not in data["user"]
        assert "hashed_password" not in data["user"]

    def test_login_by_username(self, client, db):
        resp = client.post("/api/auth/login", json={"email": "admin", "password": ADMIN_PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["user"]["email"] == ADMIN_EMAIL

    def test_token_carries_identity(self, client, db):
        make_user(db, "viewer@example.com", "Viewer")
        identity = identity_from_token(login(client, "viewer@example.com", "secret123"))
        assert identity.email == "viewer@example.com"
        assert identity.role == "Viewer"
        assert identity.name == "Viewer"

    def test_viewer_permissions_in_response(self, client, db):
        make_user(db, "viewer@example.com", "Viewer")
        resp = client.post("/api/auth/login", json={"email": "viewer@example.com", "password": "secret123"})
        assert resp.json()["user"]["permissions"] == ["view_analytics", "view_reports"]

    def test_unknown_and_wrong_password_look_the_same(self, client, db):
        """Both failures return the same status and body."""
        unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "x"})
        wrong = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong"})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"error": "Invalid email or password"}

    def test_failed_login_is_audited(self, client, db):
        client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "x"})

        failed = events(db, "Failed Login")
        assert len(failed) == 1
        assert failed[0].user_email == "ghost@example.com"
        assert failed[0].severity == "Warning"
        assert failed[0].resource == "Auth"

    def test_successful_login_is_audited(self, client, db):
        login(client, ADMIN_EMAIL, ADMIN_PASSWORD)

        logins = events(db, "Login")
        assert [e.user_email for e in logins] == [ADMIN_EMAIL]
        assert logins[0].severity == "Info"

    def test_inactive_account_gets_no_token(self, client, db):
        make_user(db, "gone@example.com", "Viewer", status="Inactive")
        resp = client.post("/api/auth/login", json={"email": "gone@example.com", "password": "secret123"})
        assert resp.status_code == 403
        assert "token" not in resp.json()
        assert resp.json()["error"] == "Account is inactive. Contact administrator."

    def test_missing_fields(self, client, db):
        assert client.post("/api/auth/login", json={"email": ADMIN_EMAIL}).status_code == 400
        assert client.post("/api/auth/login", json={"password": "x"}).status_code == 400
        assert client.post("/api/auth/login", json={"email": "", "password": ""}).status_code == 400


class TestSignup:
    """POST /api/auth/signup"""

    def test_signup_defaults_to_viewer(self, client, db):
        resp = client.post("/api/auth/signup", json={
            "name": "New Person", "email": "new@example.com", "password": "pw123456",
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["token"]
        assert data["user"]["role"] == "Viewer"
        assert data["user"]["status"] == "Active"

        # The new account can sign in straight away
        assert login(client, "new@example.com", "pw123456")

    def test_signup_is_audited(self, client, db):
        client.post("/api/auth/signup", json={
            "name": "New Person", "email": "new@example.com", "password": "pw123456",
        })
        created = events(db, "Create")
        assert created[-1].resource == "Auth"
        assert created[-1].user_email == "new@example.com"

    def test_duplicate_email(self, client, db):
        resp = client.post("/api/auth/signup", json={
            "name": "Dup", "email": ADMIN_EMAIL, "password": "pw123456",
        })
        assert resp.status_code == 409
        assert resp.json()["error"] == "Email or username already exists"

    def test_duplicate_username(self, client, db):
        resp = client.post("/api/auth/signup", json={
            "name": "Dup", "email": "other@example.com", "password": "pw", "username": "admin",
        })
        assert resp.status_code == 409

    def test_password_over_72_bytes_is_rejected(self, client, db):
        resp = client.post("/api/auth/signup", json={
            "name": "Long", "email": "long@example.com", "password": "p" * 80,
        })
        assert resp.status_code == 400
        assert resp.json() == {"error": "Password must be at most 72 bytes"}

    def test_password_of_exactly_72_bytes_is_accepted(self, client, db):
        resp = client.post("/api/auth/signup", json={
            "name": "Edge", "email": "edge@example.com", "password": "p" * 72,
        })
        assert resp.status_code == 201
        assert login(client, "edge@example.com", "p" * 72)

    def test_duplicate_that_slips_past_the_check_is_a_conflict(self, client, db, monkeypatch):
        """A concurrent signup that wins the race surfaces as 409, not 500."""
        monkeypatch.setattr(UserService, "_check_unique", staticmethod(lambda *args, **kwargs: None))

        resp = client.post("/api/auth/signup", json={
            "name": "Racer", "email": ADMIN_EMAIL, "password": "pw123456",
        })
        assert resp.status_code == 409
        assert resp.json() == {"error": "Email or username already exists"}

    def test_password_is_hashed(self, client, db):
        client.post("/api/auth/signup", json={
            "name": "Hashed", "email": "hash@example.com", "password": "plain-text",
        })
        db.expire_all()
        user = db.query(User).filter(User.email == "hash@example.com").one()
        assert user.hashed_password != "plain-text"
        assert user.hashed_password.startswith("$2")


class TestSession:
    """GET /api/auth/me and POST /api/auth/logout"""

    def test_me(self, client, admin_headers):
        resp = client.get("/api/auth/me", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["email"] == ADMIN_EMAIL
        assert "hashed_password" not in resp.json()

    def test_verify_session(self, client, db):
        identity = auth_service.verify_session(login(client, "admin", ADMIN_PASSWORD))
        assert identity.email == ADMIN_EMAIL
        assert identity.is_superuser

    def test_bearer_header_is_checked_by_verify_session(self, client, admin_headers, monkeypatch):
        """Protected routes reject whatever verify_session rejects."""
        def revoked(token):
            raise AuthenticationError("Invalid or expired token")

        monkeypatch.setattr(AuthService, "verify_session", staticmethod(revoked))

        assert client.get("/api/auth/me", headers=admin_headers).status_code == 401

    def test_missing_token(self, client, db):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_garbage_token(self, client, db):
        assert client.get("/api/auth/me", headers=bearer("not-a-token")).status_code == 401

    def test_expired_token(self, client, db):
        token = create_access_token(
            {"sub": "1", "id": 1, "email": ADMIN_EMAIL, "role": "Admin", "name": "Admin"},
            expires_delta=timedelta(seconds=-10),
        )
        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid or expired token"

    def test_token_signed_with_another_secret(self, client, db):
        token = jwt.encode(
            {"sub": "1", "email": ADMIN_EMAIL, "role": "Admin", "type": "access"},
            "some-other-secret", algorithm=settings.JWT_ALGORITHM,
        )
        assert client.get("/api/auth/me", headers=bearer(token)).status_code == 401

    def test_deleted_user_is_not_found(self, client, db):
        user = make_user(db, "temp@example.com", "Viewer")
        headers = bearer(login(client, "temp@example.com", "secret123"))
        db.delete(user)
        db.commit()

        resp = client.get("/api/auth/me", headers=headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "User not found"

    def test_logout_is_audited(self, client, admin_headers, db):
        resp = client.post("/api/auth/logout", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Logged out"

        logouts = events(db, "Logout")
        assert [e.user_email for e in logouts] == [ADMIN_EMAIL]

    def test_logout_requires_token(self, client, db):
        assert client.post("/api/auth/logout").status_code == 401


class TestHealth:
    def test_health(self, client, db):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "OK"
        assert resp.json()["database"] == "ok"
        assert resp.json()["timestamp"]
