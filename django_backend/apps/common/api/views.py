import logging

from django.conf import settings
from django.core.mail import send_mail
from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.exceptions import InternalError
from apps.users.api.permissions import IsAdminRole
from .serializers import EmailTestSerializer

logger = logging.getLogger(__name__)


class EmailTestAPIView(APIView):
    """Send a test message so operators can check the SMTP settings reminders rely on."""

    permission_classes = [permissions.IsAuthenticated, IsAdminRole]

    def post(self, request):
        ser = EmailTestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        email = ser.validated_data["email"]

        try:
            send_mail(
                "Test email",
                "This is a test email sent by the task manager.",
                settings.DEFAULT_FROM_EMAIL,
                [email],
                html_message="<p><strong>This is a test email</strong> sent by the task manager.</p>",
            )
        except OSError as exc:
            raise InternalError("Could not send test email.") from exc

        logger.info("Test email sent to %s by user %s", email, request.user.id)
        return Response({"message": f"Email sent to {email}"})
