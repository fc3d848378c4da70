from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError

from apps.common.exceptions import InternalError, api_exception_handler


class ApiExceptionHandlerTest(SimpleTestCase):
    """Test cases for the DRF exception handler"""

    def test_client_errors_pass_through(self):
        response = api_exception_handler(ValidationError({"title": ["required"]}), {"view": None})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["title"][0], "required")

    def test_not_found(self):
        response = api_exception_handler(NotFound("Task not found."), {"view": None})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "Task not found.")

    def test_internal_error_hides_detail(self):
        try:
            try:
                raise OSError("disk full at /var/media")
            except OSError as exc:
                raise InternalError("Could not store uploaded file.") from exc
        except InternalError as err:
            with self.assertLogs("apps.common.exceptions", level="ERROR"):
                response = api_exception_handler(err, {"view": None})

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {"detail": "Internal server error."})

    def test_unexpected_exception_becomes_500(self):
        with self.assertLogs("apps.common.exceptions", level="ERROR"):
            response = api_exception_handler(RuntimeError("boom"), {"view": None})

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertNotIn("boom", str(response.data))
