from django.test import SimpleTestCase


class HealthCheckTest(SimpleTestCase):
    def test_healthz(self):
        response = self.client.get("/healthz/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content, b"ok")
