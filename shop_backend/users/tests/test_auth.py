from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient

from users.models import User


class RegisterAndMeTests(TestCase):
    """
    GUARANTEES:
    - Registration creates a customer (never staff) with a hashed password
    - Duplicate e-mails are refused case-insensitively
    - /me/ needs a JWT and returns the caller's profile
    """

    def setUp(self):
        cache.clear()
        self.client = APIClient()

    def _register(self, email="new@example.com", password="long-enough-1"):
        return self.client.post(
            "/api/auth/register/",
            {"email": email, "password": password, "first_name": "Ravi"},
            format="json",
        )

    def test_register(self):
        res = self._register()

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["email"], "new@example.com")
        self.assertFalse(res.data["isStaff"])

        user = User.objects.get(email="new@example.com")
        self.assertTrue(user.check_password("long-enough-1"))

    def test_duplicate_email(self):
        self._register()
        res = self._register(email="NEW@example.com")

        self.assertEqual(res.status_code, 400)
        self.assertIn("email", res.data)

    def test_short_password(self):
        res = self._register(password="short")
        self.assertEqual(res.status_code, 400)

    def test_me_with_token(self):
        self._register()
        tokens = self.client.post(
            "/api/auth/jwt/create/",
            {"email": "new@example.com", "password": "long-enough-1"},
            format="json",
        )
        self.assertEqual(tokens.status_code, 200)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens.data['access']}")
        res = self.client.get("/api/auth/me/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["firstName"], "Ravi")

    def test_me_anonymous(self):
        self.assertEqual(self.client.get("/api/auth/me/").status_code, 401)
