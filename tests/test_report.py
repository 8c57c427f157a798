import json
import unittest
from datetime import datetime

from progresslog.models import Analysis, AnalysisLogEntry, CumulativeProgress, Session, SessionSummary, TriggerReason
from progresslog.report import format_duration, render_markdown, to_dict
from progresslog.storage import AnalysisLog

WHEN = datetime(2024, 5, 6, 9, 5, 7)


class ReportTests(unittest.TestCase):
    def _session(self, with_summary=True) -> Session:
        log = AnalysisLog()
        log.append(
            AnalysisLogEntry(
                timestamp=WHEN,
                trigger=TriggerReason.CLICK,
                productivity=80,
                activity="Writing",
                analysis=Analysis(productivity_score=80, activity="Writing"),
            )
        )
        session = Session(id="abc", started_at=WHEN, goal="Write docs", analysis_log=log, duration_seconds=125)
        if with_summary:
            session.summary = SessionSummary(
                efficiency=80,
                focus_score=50,
                goal_progress=50,
                insights=["Docs open"],
                recommendations=[],
                next_steps=["Maintain current high productivity momentum"],
                activity_breakdown={"Writing": 1},
                session_summary="Analyzed 1 AI insights with 80% average productivity",
                capture_breakdown={"clicks": 1, "keystrokes": 0, "windowChanges": 0},
            )
        return session

    def test_format_duration(self) -> None:
        self.assertEqual(format_duration(0), "00:00")
        self.assertEqual(format_duration(125), "02:05")
        self.assertEqual(format_duration(3600), "60:00")

    def test_markdown_includes_summary_and_feed(self) -> None:
        text = render_markdown(self._session(), CumulativeProgress(today_progress=26.04, efficiency=80))

        self.assertIn("- Duration: 02:05", text)
        self.assertIn("Analyzed 1 AI insights with 80% average productivity", text)
        self.assertIn("| 09:05:07 | click | Writing | 80% |", text)
        self.assertIn("- Today: 26%", text)
        self.assertNotIn("## Recommendations", text)

    def test_markdown_without_summary(self) -> None:
        text = render_markdown(self._session(with_summary=False), CumulativeProgress())

        self.assertIn("no summary produced", text)

    def test_dict_is_json_serializable(self) -> None:
        payload = to_dict(self._session(), CumulativeProgress())

        decoded = json.loads(json.dumps(payload))
        self.assertEqual(decoded["summary"]["efficiency"], 80)
        self.assertEqual(decoded["analysis_log"][0]["analysis"]["activity"], "Writing")


if __name__ == "__main__":
    unittest.main()
