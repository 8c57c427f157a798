import unittest

from progresslog.analysis_client import AnalysisClient, build_prompt
from progresslog.errors import AnalyzerError, AnalyzerUnavailable

from tests.support import FIXED_NOW, JSON_REPLY, quiet_logger


class AnalysisClientTests(unittest.IsolatedAsyncioTestCase):
    def _client(self, analyzer) -> AnalysisClient:
        return AnalysisClient(analyzer, quiet_logger(), clock=lambda: FIXED_NOW)

    async def test_structured_reply_is_parsed(self) -> None:
        calls = []

        def analyzer(prompt, goal, image_data):
            calls.append((prompt, goal, image_data))
            return JSON_REPLY

        analysis = await self._client(analyzer).analyze(b"jpeg", "Ship the parser")

        self.assertEqual(analysis.productivity_score, 82)
        self.assertEqual(analysis.activity, "Coding")
        self.assertEqual(analysis.focus_level, 77)
        self.assertEqual(analysis.goal_alignment, 64)
        self.assertEqual(analysis.recommendations, ["Commit more often"])
        prompt, goal, image_data = calls[0]
        self.assertIn('"Ship the parser"', prompt)
        self.assertIn("productivityScore", prompt)
        self.assertEqual(goal, "Ship the parser")
        self.assertEqual(image_data, b"jpeg")

    async def test_async_transport_is_awaited(self) -> None:
        async def analyzer(prompt, goal, image_data):
            return '{"activity": "Planning"}'

        analysis = await self._client(analyzer).analyze(b"jpeg", "goal")

        self.assertEqual(analysis.activity, "Planning")
        self.assertEqual(analysis.productivity_score, 50)

    async def test_prose_reply_falls_back_to_heuristics(self) -> None:
        def analyzer(prompt, goal, image_data):
            return "Steady session overall, focus: 73. recommend you take breaks."

        analysis = await self._client(analyzer).analyze(b"jpeg", "goal")

        self.assertEqual(analysis.focus_level, 73)
        self.assertEqual(analysis.recommendations, ["recommend you take breaks"])
        self.assertEqual(analysis.productivity_score, 50)
        self.assertEqual(analysis.time_of_day, "morning")

    async def test_any_text_shape_yields_a_complete_analysis(self) -> None:
        replies = ["", "{", "}{", "[1, 2, 3]", '{"productivityScore": 999}', "productivity: 250!!!", "\x00\x01"]
        for reply in replies:
            analysis = await self._client(lambda p, g, i, r=reply: r).analyze(b"jpeg", "goal")
            for score in (analysis.productivity_score, analysis.focus_level, analysis.goal_alignment):
                self.assertGreaterEqual(score, 0, reply)
                self.assertLessEqual(score, 100, reply)
            self.assertTrue(analysis.activity)
            self.assertIn(analysis.time_of_day, ("morning", "afternoon", "evening"))
            self.assertIsInstance(analysis.insights, list)

    async def test_transport_errors_propagate(self) -> None:
        for error in (AnalyzerUnavailable("offline"), AnalyzerError("HTTP 500")):

            def analyzer(prompt, goal, image_data, error=error):
                raise error

            with self.assertRaises(type(error)):
                await self._client(analyzer).analyze(b"jpeg", "goal")

    async def test_non_text_reply_is_an_analyzer_error(self) -> None:
        with self.assertRaises(AnalyzerError):
            await self._client(lambda p, g, i: None).analyze(b"jpeg", "goal")


class BuildPromptTests(unittest.TestCase):
    def test_prompt_lists_every_field(self) -> None:
        prompt = build_prompt("Write docs")

        for key in (
            "productivityScore",
            "activity",
            "insights",
            "focusLevel",
            "distractions",
            "goalAlignment",
            "recommendations",
            "applications",
            "timeOfDay",
            "workPattern",
        ):
            self.assertIn(f'"{key}"', prompt)
        self.assertIn('The user\'s goal is: "Write docs"', prompt)


if __name__ == "__main__":
    unittest.main()
