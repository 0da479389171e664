"""Tests for the users API."""

from conftest import ADMIN_EMAIL, bearer, login, make_user
from rbac_console.core.config import settings
from rbac_console.models.audit_log import AuditEvent
from rbac_console.services.user_service import UserService


class TestUserReads:
    """Any authenticated caller may list and read users."""

    def test_list_requires_auth(self, client, db):
        assert client.get("/api/users").status_code == 401

    def test_viewer_can_list(self, client, viewer_headers):
        resp = client.get("/api/users", headers=viewer_headers)
        assert resp.status_code == 200
        emails = [u["email"] for u in resp.json()]
        assert emails == [ADMIN_EMAIL, "viewer@example.com"]
        assert all("hashed_password" not in u for u in resp.json())

    def test_get_missing_user(self, client, admin_headers):
        resp = client.get("/api/users/9999", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "User not found"}


class TestUserMutations:
    """Create, update and delete are Admin-only."""

    def test_create_with_default_password(self, client, admin_headers):
        resp = client.post("/api/users", headers=admin_headers, json={
            "name": "Staff", "email": "staff@example.com", "role": "Editor",
        })
        assert resp.status_code == 201
        assert resp.json()["role"] == "Editor"

        assert login(client, "staff@example.com", settings.DEFAULT_USER_PASSWORD)

    def test_create_defaults_role_and_status(self, client, admin_headers):
        resp = client.post("/api/users", headers=admin_headers, json={
            "name": "Plain", "email": "plain@example.com", "password": "pw",
        })
        assert resp.json()["role"] == "Viewer"
        assert resp.json()["status"] == "Active"

    def test_create_with_unknown_role(self, client, admin_headers):
        resp = client.post("/api/users", headers=admin_headers, json={
            "name": "X", "email": "x@example.com", "role": "Ghost",
        })
        assert resp.status_code == 400

    def test_create_duplicate_email(self, client, admin_headers):
        resp = client.post("/api/users", headers=admin_headers, json={
            "name": "Dup", "email": ADMIN_EMAIL,
        })
        assert resp.status_code == 409

    def test_create_with_multibyte_password_over_limit(self, client, admin_headers):
        """40 two-byte characters is 80 bytes."""
        resp = client.post("/api/users", headers=admin_headers, json={
            "name": "Accent", "email": "accent@example.com", "password": "\u00e9" * 40,
        })
        assert resp.status_code == 400
        assert resp.json() == {"error": "Password must be at most 72 bytes"}

    def test_password_change_over_limit(self, client, admin_headers, db):
        user = make_user(db, "limit@example.com", "Viewer")
        resp = client.put(f"/api/users/{user.id}", headers=admin_headers, json={"password": "x" * 73})
        assert resp.status_code == 400
        assert login(client, "limit@example.com", "secret123")

    def test_rename_race_is_a_conflict(self, client, admin_headers, db, monkeypatch):
        monkeypatch.setattr(UserService, "_check_unique", staticmethod(lambda *args, **kwargs: None))
        user = make_user(db, "racer@example.com", "Viewer")

        resp = client.put(f"/api/users/{user.id}", headers=admin_headers, json={"email": ADMIN_EMAIL})
        assert resp.status_code == 409

    def test_editor_cannot_create_users(self, client, editor_headers):
        """manage_users is granted to Editor, but user mutations need the Admin role."""
        resp = client.post("/api/users", headers=editor_headers, json={
            "name": "Nope", "email": "nope@example.com",
        })
        assert resp.status_code == 403
        assert resp.json()["error"] == "Admin access required"

    def test_update_role_and_status(self, client, admin_headers, db):
        user = make_user(db, "someone@example.com", "Viewer")
        resp = client.put(f"/api/users/{user.id}", headers=admin_headers, json={
            "role": "Editor", "status": "Inactive",
        })
        assert resp.status_code == 200
        assert resp.json()["role"] == "Editor"
        assert resp.json()["status"] == "Inactive"
        assert resp.json()["email"] == "someone@example.com"

        denied = client.post("/api/auth/login", json={"email": "someone@example.com", "password": "secret123"})
        assert denied.status_code == 403

    def test_blank_password_keeps_current(self, client, admin_headers, db):
        user = make_user(db, "keep@example.com", "Viewer")
        client.put(f"/api/users/{user.id}", headers=admin_headers, json={"password": "", "name": "Kept"})
        assert login(client, "keep@example.com", "secret123")

    def test_password_change(self, client, admin_headers, db):
        user = make_user(db, "change@example.com", "Viewer")
        client.put(f"/api/users/{user.id}", headers=admin_headers, json={"password": "new-pass"})
        assert login(client, "change@example.com", "new-pass")

    def test_update_to_taken_email(self, client, admin_headers, db):
        user = make_user(db, "first@example.com", "Viewer")
        resp = client.put(f"/api/users/{user.id}", headers=admin_headers, json={"email": ADMIN_EMAIL})
        assert resp.status_code == 409

    def test_update_missing_user(self, client, admin_headers):
        resp = client.put("/api/users/9999", headers=admin_headers, json={"name": "X"})
        assert resp.status_code == 404

    def test_delete_keeps_audit_history(self, client, admin_headers, db):
        user = make_user(db, "leaving@example.com", "Viewer")
        login(client, "leaving@example.com", "secret123")

        resp = client.delete(f"/api/users/{user.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["message"] == "User deleted successfully"
        assert client.delete(f"/api/users/{user.id}", headers=admin_headers).status_code == 404

        db.expire_all()
        actors = {e.user_email for e in db.query(AuditEvent).all()}
        assert "leaving@example.com" in actors

    def test_mutations_are_audited_with_actor(self, client, admin_headers, db):
        client.post("/api/users", headers=admin_headers, json={"name": "A", "email": "a@example.com"})

        db.expire_all()
        event = db.query(AuditEvent).order_by(AuditEvent.id.desc()).first()
        assert event.user_email == ADMIN_EMAIL
        assert (event.action, event.resource) == ("Create", "User")
        assert event.details == "Created user: a@example.com"

    def test_role_change_takes_effect_on_next_login(self, client, admin_headers, db):
        """Tokens carry the role they were issued with."""
        user = make_user(db, "promo@example.com", "Viewer")
        old = bearer(login(client, "promo@example.com", "secret123"))
        client.put(f"/api/users/{user.id}", headers=admin_headers, json={"role": "Admin"})

        assert client.post("/api/users", headers=old, json={"name": "n", "email": "n@example.com"}).status_code == 403
        new = bearer(login(client, "promo@example.com", "secret123"))
        assert client.post("/api/users", headers=new, json={"name": "n", "email": "n@example.com"}).status_code == 201
