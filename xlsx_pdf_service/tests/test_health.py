import unittest
from unittest.mock import patch

import httpx

from ..tests.test_convert_api import ConvertApiTestCase
from ..tests.utils_helpers import RendererStub


class TestHealthApi(ConvertApiTestCase):

    ENDPOINT_HEALTH = "/health"

    def test_health_ok_when_renderer_reachable(self):
        self.make_client(RendererStub(content=b'{"status":"up"}'))
        response = self.client.get(self.ENDPOINT_HEALTH)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status"], "ok")
        self.assertEqual(data["gotenberg"], "reachable")
        self.assertGreater(data["uptime"], 0)
        self.assertIsInstance(data["memoryMB"], float)
        self.assertEqual(str(self.stub.requests[0].url), "http://gotenberg.test/health")

    def test_health_degraded_when_renderer_unreachable(self):
        self.make_client(RendererStub(error=httpx.ConnectError("Connection refused")))
        response = self.client.get(self.ENDPOINT_HEALTH)

        self.assertEqual(response.status_code, 503)
        data = response.json()
        self.assertEqual(data["status"], "degraded")
        self.assertEqual(data["gotenberg"], "unreachable")

    def test_health_degraded_when_renderer_unhealthy(self):
        self.make_client(RendererStub(status_code=500))
        response = self.client.get(self.ENDPOINT_HEALTH)

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["gotenberg"], "unhealthy")

    @patch("xlsx_pdf_service.api.health.get_process_memory_mb", return_value=123.456)
    def test_health_reports_rounded_memory(self, _memory_mock):
        self.make_client()
        response = self.client.get(self.ENDPOINT_HEALTH)

        self.assertEqual(response.json()["memoryMB"], 123.5)

    def test_health_does_not_take_a_conversion_slot(self):
        self.make_client(XLSX_PDF_SERVICE_MAX_CONCURRENT=1)
        self.client.get(self.ENDPOINT_HEALTH)

        limiter = self.app.state.processor.limiter
        self.assertEqual(limiter.active, 0)
        self.assertEqual(limiter.pending, 0)


if __name__ == "__main__":
    unittest.main()
