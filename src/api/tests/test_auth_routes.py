"""Tests for the magic link routes and the session counter."""

import unittest
from datetime import timedelta
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient

from adapter.fake.user_store import FakeUserStore
from api.dependencies import get_magic_link, get_settings
from api.main import app
from domain.model.errors import UnsupportedOperationError
from domain.model.user import UserRecord
from services import token_codec
from services.magic_link import MagicLinkAuth
from utils.settings import Settings

SECRET = "route-test-secret-0123456789"


class RouteTestCase(unittest.TestCase):

    def setUp(self):
        self.settings = Settings(
            secret_key=SECRET,
            challenge_expiry=timedelta(hours=1),
            session_expiry=timedelta(days=1),
            public_base_url="http://testserver",
        )
        self.store = FakeUserStore()
        self.auth = MagicLinkAuth.create(SECRET, timedelta(hours=1), timedelta(days=1), self.store)
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[get_magic_link] = lambda: self.auth
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def request_challenge(self, email: str) -> str:
        response = self.client.post("/auth/challenge", json={"email": email})
        self.assertEqual(response.status_code, 201)
        url = urlparse(response.json()["verify_url"])
        return parse_qs(url.query)["challenge"][0]

    def login(self, email: str):
        challenge = self.request_challenge(email)
        return self.client.get("/auth/verify", params={"challenge": challenge}, follow_redirects=False)


class TestChallengeRoute(RouteTestCase):

    def test_returns_verify_url(self):
        response = self.client.post("/auth/challenge", json={"email": "User@Example.com"})

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["email"], "user@example.com")
        self.assertEqual(data["expires_in"], 3600)
        self.assertTrue(data["verify_url"].startswith("http://testserver/auth/verify?challenge=9"))

    def test_challenge_does_not_create_user(self):
        self.request_challenge("user@example.com")
        self.assertFalse(self.store.users_exist())

    def test_rejects_non_address(self):
        response = self.client.post("/auth/challenge", json={"email": "not-an-address"})
        self.assertEqual(response.status_code, 422)

    def test_rejects_bare_at_sign(self):
        for email in ("@", "user@", "@example.com"):
            with self.subTest(email=email):
                response = self.client.post("/auth/challenge", json={"email": email})
                self.assertEqual(response.status_code, 422)


class TestVerifyRoute(RouteTestCase):

    def test_login_sets_cookie_and_redirects(self):
        response = self.login("user@example.com")

        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/")
        cookie = response.headers["set-cookie"]
        self.assertIn("MLCOOKIE=S", cookie)
        self.assertIn("HttpOnly", cookie)

        user = self.store.get_user_by_email("user@example.com")
        self.assertEqual(user.custom_data, {"visits": 0, "is_admin": True})

    def test_only_first_user_is_admin(self):
        self.login("first@example.com")
        self.login("second@example.com")
        self.assertFalse(self.store.get_user_by_email("second@example.com").custom_data["is_admin"])

    def test_store_without_counting_makes_nobody_admin(self):
        with patch.object(self.auth, 'users_exist', side_effect=UnsupportedOperationError("user counting")):
            self.login("user@example.com")
        user = self.store.get_user_by_email("user@example.com")
        self.assertEqual(user.custom_data, {"visits": 0, "is_admin": False})

    def test_second_login_keeps_user(self):
        self.login("user@example.com")
        first = self.store.get_user_by_email("user@example.com")
        self.login("user@example.com")
        again = self.store.get_user_by_email("user@example.com")
        self.assertEqual(again.id, first.id)
        self.assertEqual(self.store.get_user_count(), 1)

    def test_missing_challenge(self):
        response = self.client.get("/auth/verify", follow_redirects=False)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Missing challenge")

    def test_malformed_challenge(self):
        response = self.client.get("/auth/verify", params={"challenge": "garbage"}, follow_redirects=False)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid challenge")

    def test_tampered_challenge(self):
        challenge = self.request_challenge("user@example.com")
        head, expiry, mac = challenge.rsplit("-", 2)
        forged = f"{head}-{int(expiry) + 1}-{mac}"

        response = self.client.get("/auth/verify", params={"challenge": forged}, follow_redirects=False)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Broken challenge")
        self.assertFalse(self.store.users_exist())

    def test_expired_challenge(self):
        with patch.object(token_codec, 'current_unix_time', return_value=1_000_000):
            challenge = self.auth.generate_challenge("user@example.com")

        response = self.client.get("/auth/verify", params={"challenge": challenge}, follow_redirects=False)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Expired challenge")

    def test_session_token_is_not_a_challenge(self):
        self.login("user@example.com")
        session_id = self.client.cookies.get("MLCOOKIE")

        response = self.client.get("/auth/verify", params={"challenge": session_id}, follow_redirects=False)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid challenge")


class TestSessionRoutes(RouteTestCase):

    def test_counter_counts_visits(self):
        self.login("user@example.com")

        first = self.client.get("/")
        second = self.client.get("/")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json(), {"email": "user@example.com", "visits": 1, "is_admin": True})
        self.assertEqual(second.json()["visits"], 2)
        self.assertEqual(self.store.get_user_by_email("user@example.com").custom_data["visits"], 2)

    def test_counter_without_cookie(self):
        self.assertEqual(self.client.get("/").status_code, 401)

    def test_counter_with_bad_cookie_clears_it(self):
        self.client.cookies.set("MLCOOKIE", "Sgarbage")

        response = self.client.get("/")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid session")
        self.assertIn("MLCOOKIE=", response.headers["set-cookie"])
        self.assertIn("Max-Age=0", response.headers["set-cookie"])

    def test_counter_for_deleted_user(self):
        session_id = self.auth.generate_session_id(UserRecord.new("ghost@example.com"))
        self.client.cookies.set("MLCOOKIE", session_id)

        response = self.client.get("/")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Unknown user")

    def test_me_with_cookie(self):
        self.login("user@example.com")

        response = self.client.get("/auth/me")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["email"], "user@example.com")
        self.assertEqual(data["id"], str(self.store.get_user_by_email("user@example.com").id))

    def test_me_with_bearer_token(self):
        user = UserRecord.new("user@example.com")
        self.auth.store_user(user)
        session_id = self.auth.generate_session_id(user)

        response = self.client.get("/auth/me", headers={"Authorization": f"Bearer {session_id}"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], str(user.id))

    def test_me_without_session(self):
        response = self.client.get("/auth/me")
        self.assertEqual(response.status_code, 401)

    def test_logout_clears_cookie(self):
        self.login("user@example.com")

        response = self.client.post("/auth/logout", follow_redirects=False)

        self.assertEqual(response.status_code, 303)
        self.assertIn("Max-Age=0", response.headers["set-cookie"])
        self.assertEqual(self.client.get("/").status_code, 401)


class TestHealthRoute(RouteTestCase):

    def test_healthy(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status"], "healthy")
        self.assertEqual(data["services"]["storage"]["backend"], "FakeUserStore")

    def test_storage_failure_is_degraded(self):
        with patch.object(self.store, 'user_exists_by_email', side_effect=OSError("disk gone")):
            response = self.client.get("/health")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["status"], "degraded")


if __name__ == '__main__':
    unittest.main()
