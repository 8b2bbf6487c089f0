"""Tests for the auth blueprint."""

import unittest
from unittest.mock import patch

from proximitylink.user.models import UserSession
from tests.helpers import MOCK_USER_ID, FirestoreTestCase

MOCK_USER_PAYLOAD = {"uid": MOCK_USER_ID, "email": "user1@example.com"}


class AuthRoutesTestCase(FirestoreTestCase):
    def setUp(self):
        super().setUp()
        patcher = patch("firebase_admin.auth.verify_id_token")
        self.mock_verify = patcher.start()
        self.addCleanup(patcher.stop)

    def test_session_login_missing_token(self):
        response = self.client.post("/auth/session_login", json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["status"], "error")

    def test_session_login_success(self):
        self.add_user(MOCK_USER_ID, username="Ana")
        self.mock_verify.return_value = MOCK_USER_PAYLOAD

        response = self.client.post("/auth/session_login", json={"idToken": "token"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"status": "success"})
        with self.client.session_transaction() as sess:
            self.assertEqual(sess["user_id"], MOCK_USER_ID)

    def test_session_login_unknown_user(self):
        self.mock_verify.return_value = {"uid": "nobody"}

        response = self.client.post("/auth/session_login", json={"idToken": "token"})

        self.assertEqual(response.status_code, 404)
        with self.client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)

    def test_session_login_invalid_token(self):
        self.mock_verify.side_effect = ValueError("bad token")

        response = self.client.post("/auth/session_login", json={"idToken": "token"})

        self.assertEqual(response.status_code, 401)

    def test_login_page_redirects_signed_in_user(self):
        self.login()
        response = self.client.get("/auth/login")
        self.assertEqual(response.status_code, 302)
        self.assertIn("/user/dashboard", response.location)

    def test_protected_json_request_gets_401(self):
        response = self.client.get("/unread/counts", headers={"Accept": "application/json"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json(), {"ok": False, "error": "Sign in required."})

    def test_logout_clears_session(self):
        self.login()
        response = self.client.get("/auth/logout", follow_redirects=True)

        self.assertEqual(response.status_code, 200)
        self.assertIn(b"You have been logged out.", response.data)
        with self.client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)


class UserSessionTestCase(unittest.TestCase):
    def test_get_id_and_display_name(self):
        user = UserSession({"uid": "u1", "username": "Ana"})
        self.assertEqual(user.get_id(), "u1")
        self.assertEqual(user.display_name, "Ana")

    def test_display_name_fallback(self):
        user = UserSession({"uid": "u1"})
        self.assertEqual(user.display_name, "Unnamed User")


if __name__ == "__main__":
    unittest.main()
