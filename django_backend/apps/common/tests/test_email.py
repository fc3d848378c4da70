from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase
from rest_framework_simplejwt.tokens import RefreshToken

from apps.users.models import UserRole

User = get_user_model()


class EmailTestAPITest(APITestCase):
    """Test cases for the SMTP check endpoint"""

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="user@example.com", password="testpass123", name="User")
        self.admin = User.objects.create_user(
            email="admin@example.com", password="testpass123", name="Admin", role=UserRole.ADMIN
        )

    def authenticate(self, user):
        refresh = RefreshToken.for_user(user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")

    def test_admin_sends_test_email(self):
        self.authenticate(self.admin)

        response = self.client.post(reverse("email-test"), {"email": "ops@example.com"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["ops@example.com"])
        self.assertIn("ops@example.com", response.data["message"])

    def test_email_required(self):
        self.authenticate(self.admin)

        response = self.client.post(reverse("email-test"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(len(mail.outbox), 0)

    def test_plain_user_forbidden(self):
        self.authenticate(self.user)

        response = self.client.post(reverse("email-test"), {"email": "ops@example.com"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(len(mail.outbox), 0)

    def test_smtp_failure_is_generic_500(self):
        self.authenticate(self.admin)

        with mock.patch("apps.common.api.views.send_mail", side_effect=OSError("connection refused")):
            with self.assertLogs("apps.common.exceptions", level="ERROR"):
                response = self.client.post(reverse("email-test"), {"email": "ops@example.com"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {"detail": "Internal server error."})
