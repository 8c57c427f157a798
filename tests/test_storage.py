import unittest
from datetime import datetime, timedelta

from progresslog.models import Analysis, AnalysisLogEntry, TriggerReason
from progresslog.storage import AnalysisLog, CaptureStore


class _Clock:
    def __init__(self):
        self.now = datetime(2024, 5, 6, 14, 0)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


class CaptureStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = CaptureStore(_Clock())

    def test_append_assigns_monotonic_ids_in_fire_order(self) -> None:
        first = self.store.append(b"one", TriggerReason.CLICK)
        second = self.store.append(b"two", TriggerReason.PERIODIC)

        self.assertLess(first.id, second.id)
        self.assertLess(first.captured_at, second.captured_at)
        self.assertEqual([c.trigger for c in self.store], [TriggerReason.CLICK, TriggerReason.PERIODIC])
        self.assertFalse(first.analyzed)

    def test_mark_analyzed_attaches_result(self) -> None:
        capture = self.store.append(b"img", TriggerReason.KEYSTROKES)
        analysis = Analysis(productivity_score=66)

        self.assertTrue(self.store.mark_analyzed(capture.id, analysis))
        self.assertTrue(self.store.mark_analyzed(capture.id, analysis))

        self.assertTrue(capture.analyzed)
        self.assertIs(capture.analysis, analysis)

    def test_mark_analyzed_after_reset_is_a_no_op(self) -> None:
        stale = self.store.append(b"img", TriggerReason.CLICK)
        self.store.reset()
        fresh = self.store.append(b"img2", TriggerReason.CLICK)

        self.assertFalse(self.store.mark_analyzed(stale.id, Analysis()))
        self.assertNotEqual(stale.id, fresh.id)
        self.assertFalse(fresh.analyzed)
        self.assertEqual(len(self.store), 1)

    def test_reset_binds_the_store_to_one_session(self) -> None:
        self.assertTrue(self.store.tracks("anything"))
        self.store.reset(owner="s2")

        self.assertEqual(self.store.owner, "s2")
        self.assertTrue(self.store.tracks("s2"))
        self.assertFalse(self.store.tracks("s1"))

        minted = self.store.mint(b"late", TriggerReason.CLICK)
        self.assertEqual(len(self.store), 0)
        self.assertIsNone(self.store.get(minted.id))

    def test_recent_windows_without_dropping(self) -> None:
        for i in range(30):
            self.store.append(bytes([i]), TriggerReason.PERIODIC)

        recent = self.store.recent(24)

        self.assertEqual(len(recent), 24)
        self.assertEqual(recent[-1].image_data, bytes([29]))
        self.assertEqual(len(self.store), 30)
        self.assertEqual(self.store.recent(0), [])


class AnalysisLogTests(unittest.TestCase):
    def test_failure_then_success_kept_in_completion_order(self) -> None:
        log = AnalysisLog()
        when = datetime(2024, 5, 6, 14, 0)
        failure = AnalysisLogEntry.failure(
            timestamp=when,
            trigger=TriggerReason.CLICK,
            activity="Analysis Failed",
            message="AI analysis failed: timeout",
            error="timeout",
            capture_id=1,
        )
        success = AnalysisLogEntry(
            timestamp=when, trigger=TriggerReason.PERIODIC, productivity=75, activity="Coding", capture_id=2
        )

        log.append(failure)
        log.append(success)

        self.assertEqual(log.entries, (failure, success))
        self.assertEqual(log.entries[0].productivity, 0)
        self.assertEqual(log.valid(), [success])
        self.assertEqual(len(log), 2)
        self.assertEqual(log.recent(1), [success])


if __name__ == "__main__":
    unittest.main()
