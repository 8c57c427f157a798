import io
import types
import unittest
from unittest import mock

from google.api_core import exceptions as api_exceptions
from PIL import Image

from progresslog import gemini_client
from progresslog.config import GeminiSettings
from progresslog.errors import AnalyzerError, AnalyzerUnavailable

from tests.support import quiet_logger


def _png() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), "white").save(buffer, format="PNG")
    return buffer.getvalue()


class GeminiVisionAnalyzerTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch.object(gemini_client, "genai")
        self.addCleanup(patcher.stop)
        self.genai = patcher.start()
        self.model = self.genai.GenerativeModel.return_value
        sleep_patcher = mock.patch.object(gemini_client.time, "sleep")
        self.addCleanup(sleep_patcher.stop)
        self.sleep = sleep_patcher.start()
        self.analyzer = gemini_client.GeminiVisionAnalyzer(
            GeminiSettings(api_key="AIza-test", max_retries=2, retry_buffer_seconds=0.0), quiet_logger()
        )

    def test_returns_response_text(self) -> None:
        self.model.generate_content.return_value = types.SimpleNamespace(text='{"activity": "Design"}')

        self.assertEqual(self.analyzer("PROMPT", "goal", _png()), '{"activity": "Design"}')
        self.genai.configure.assert_called_once_with(api_key="AIza-test")
        parts = self.model.generate_content.call_args.args[0]
        self.assertEqual(parts[0], "PROMPT")

    def test_rate_limit_waits_for_suggested_delay_then_retries(self) -> None:
        self.model.generate_content.side_effect = [
            api_exceptions.ResourceExhausted("Quota exceeded. Please retry in 2.5s"),
            types.SimpleNamespace(text="ok"),
        ]

        self.assertEqual(self.analyzer("p", "g", _png()), "ok")
        self.sleep.assert_called_once_with(2.5)

    def test_rate_limit_exhaustion_is_unavailable(self) -> None:
        self.model.generate_content.side_effect = api_exceptions.ResourceExhausted("429 rate limit")

        with self.assertRaises(AnalyzerUnavailable):
            self.analyzer("p", "g", _png())
        self.assertEqual(self.model.generate_content.call_count, 3)

    def test_service_unavailable_is_unavailable(self) -> None:
        self.model.generate_content.side_effect = api_exceptions.ServiceUnavailable("backend down")

        with self.assertRaises(AnalyzerUnavailable):
            self.analyzer("p", "g", _png())

    def test_other_api_errors_are_analyzer_errors(self) -> None:
        self.model.generate_content.side_effect = api_exceptions.InvalidArgument("bad request")

        with self.assertRaises(AnalyzerError):
            self.analyzer("p", "g", _png())

    def test_unreadable_image_is_analyzer_error(self) -> None:
        with self.assertRaises(AnalyzerError):
            self.analyzer("p", "g", b"not an image")
        self.model.generate_content.assert_not_called()


if __name__ == "__main__":
    unittest.main()
