"""
Tests for roles, users and role assignment.
"""
import json

from django.contrib.auth import get_user_model
from django.test import TestCase

from .models import Role, UserRole

User = get_user_model()


class AccountApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user("admin", "admin@example.com", "pw")
        cls.role = Role.objects.create(role_name="Manager", description="Runs the shop")

    def setUp(self):
        self.client.force_login(self.admin)

    def _json(self, method, url, body):
        return getattr(self.client, method)(url, data=json.dumps(body), content_type="application/json")

    def test_role_duplicate_name(self):
        resp = self._json("post", "/api/roles", {"roleName": "Manager"})
        self.assertEqual(resp.status_code, 409)

    def test_role_in_use_cannot_be_deleted(self):
        UserRole.objects.create(user=self.admin, role=self.role)
        self.assertEqual(self.client.get(f"/api/roles/{self.role.id}/users/count").json()["count"], 1)
        resp = self.client.delete(f"/api/roles/{self.role.id}")
        self.assertEqual(resp.status_code, 400)
        self.assertTrue(Role.objects.filter(pk=self.role.pk).exists())

    def test_role_users_count_missing_role(self):
        self.assertEqual(self.client.get("/api/roles/999/users/count").status_code, 404)

    def test_create_user_and_assign_roles(self):
        resp = self._json("post", "/api/users", {
            "username": "sam", "email": "sam@example.com", "password": "s3cret",
            "firstname": "Sam", "lastname": "Lee", "city": "Lyon",
        })
        self.assertEqual(resp.status_code, 201)
        user_id = resp.json()["id"]

        resp = self._json("put", f"/api/users/{user_id}/roles", {"roleIds": [self.role.id]})
        self.assertEqual([r["roleName"] for r in resp.json()], ["Manager"])

        data = self.client.get(f"/api/users/{user_id}").json()
        self.assertEqual(data["city"], "Lyon")
        self.assertEqual(data["roles"], ["Manager"])
        self.assertTrue(data["actived"])

    def test_create_user_requires_password(self):
        resp = self._json("post", "/api/users", {"username": "kim", "email": "kim@example.com"})
        self.assertEqual(resp.status_code, 400)

    def test_duplicate_username(self):
        resp = self._json("post", "/api/users", {
            "username": "admin", "email": "other@example.com", "password": "x",
        })
        self.assertEqual(resp.status_code, 409)

    def test_unknown_role_ids(self):
        resp = self._json("put", f"/api/users/{self.admin.id}/roles", {"roleIds": [404]})
        self.assertEqual(resp.status_code, 400)

    def test_cannot_delete_self(self):
        resp = self.client.delete(f"/api/users/{self.admin.id}")
        self.assertEqual(resp.status_code, 400)

    def test_me(self):
        self.assertEqual(self.client.get("/api/users/me").json()["username"], "admin")
        self.client.logout()
        self.assertEqual(self.client.get("/api/users/me").status_code, 401)

    def test_partial_update_keeps_profile(self):
        resp = self._json("post", "/api/users", {
            "username": "sam", "email": "sam@example.com", "password": "s3cret", "city": "Lyon",
        })
        user_id = resp.json()["id"]
        resp = self._json("put", f"/api/users/{user_id}", {"lastname": "Lee"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["lastname"], "Lee")
        self.assertEqual(data["city"], "Lyon")
        self.assertEqual(data["email"], "sam@example.com")
        self.assertTrue(User.objects.get(pk=user_id).check_password("s3cret"))


class SessionApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user("clerk", "clerk@example.com", "s3cret")

    def _login(self, body):
        return self.client.post("/api/auth/login", data=json.dumps(body), content_type="application/json")

    def test_login_opens_a_session(self):
        self.assertEqual(self.client.get("/api/products").status_code, 401)
        resp = self._login({"username": "clerk", "password": "s3cret"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["username"], "clerk")
        self.assertEqual(self.client.get("/api/products").status_code, 200)
        self.assertEqual(self.client.get("/api/users/me").json()["username"], "clerk")

    def test_wrong_password(self):
        resp = self._login({"username": "clerk", "password": "nope"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "Invalid username or password")

    def test_missing_fields(self):
        resp = self._login({"username": "clerk"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("password", resp.json()["fields"])

    def test_inactive_user_cannot_log_in(self):
        User.objects.filter(pk=self.user.pk).update(is_active=False)
        self.assertEqual(self._login({"username": "clerk", "password": "s3cret"}).status_code, 401)

    def test_logout_ends_the_session(self):
        self._login({"username": "clerk", "password": "s3cret"})
        resp = self.client.post("/api/auth/logout")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.client.get("/api/users/me").status_code, 401)
