import unittest
from datetime import timedelta

from crud.attempt_crud import create_attempt
from crud.fraud_crud import list_alerts
from services import fraud_monitor
from services.token_service import issue_token
from services.verification_service import ScanContext, verify_token

from factories import OWNER, T0, add_event, add_ticket, make_session_factory


class TestFraudMonitor(unittest.TestCase):
    def setUp(self):
        self.engine, self.SessionLocal = make_session_factory()
        self.db = self.SessionLocal()
        self.scanner = ScanContext(scanner_id="gate-2")

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _scan(self, token, seconds):
        return verify_token(self.db, token, self.scanner, now=T0 + timedelta(seconds=seconds))

    def test_three_unknown_scans_raise_nothing(self):
        for seconds in (0, 60, 120):
            self._scan("forged-token", seconds)
        self.assertEqual(list_alerts(self.db), [])

    def test_fourth_unknown_scan_raises_alert(self):
        for seconds in (0, 60, 120):
            self._scan("forged-token", seconds)
        result = self._scan("forged-token", 180)
        self.assertEqual(len(result.fraud_alerts), 1)

        alerts = list_alerts(self.db)
        self.assertEqual(len(alerts), 1)
        self.assertEqual(alerts[0].category, "suspicious_activity")
        self.assertEqual(alerts[0].token, "forged-token")
        self.assertIsNone(alerts[0].ticket_id)
        self.assertIn("(4)", alerts[0].description)

    def test_window_slides_with_each_attempt(self):
        # Old attempts fall out of the trailing window
        for seconds in (0, 100, 200, 310):
            self._scan("forged-token", seconds)
        self.assertEqual(list_alerts(self.db), [])
        # A fifth attempt still inside the window of the previous three trips it
        self._scan("forged-token", 320)
        self.assertEqual(len(list_alerts(self.db)), 1)

    def test_every_qualifying_attempt_is_evaluated(self):
        for seconds in range(0, 6):
            self._scan("forged-token", seconds)
        self.assertEqual(len(list_alerts(self.db)), 3)

    def test_repeated_expired_scans_reference_the_ticket(self):
        event = add_event(self.db)
        ticket = add_ticket(self.db, event)
        token = issue_token(self.db, ticket.id, OWNER, now=T0).token
        for seconds in (40, 50, 60, 70):
            self._scan(token, seconds)
        alerts = list_alerts(self.db, category="suspicious_activity")
        self.assertEqual(len(alerts), 1)
        self.assertEqual(alerts[0].ticket_id, ticket.id)

    def test_rescans_of_a_used_ticket_raise_alerts(self):
        event = add_event(self.db)
        ticket = add_ticket(self.db, event)
        token = issue_token(self.db, ticket.id, OWNER, now=T0).token
        self.assertEqual(self._scan(token, 1).outcome.value, "valid")

        outcomes = [self._scan(token, seconds).outcome.value for seconds in (2, 3, 4, 5)]
        self.assertEqual(outcomes, ["already_used"] * 4)

        # The valid scan counts toward the window, so the 4th and 5th attempts trip it
        alerts = list_alerts(self.db, category="suspicious_activity")
        self.assertEqual(len(alerts), 2)
        for alert in alerts:
            self.assertEqual(alert.ticket_id, ticket.id)
            self.assertEqual(alert.token, token)

    def test_window_ignores_attempts_after_evaluation_time(self):
        for seconds in (0, 1, 2, 10, 11):
            create_attempt(self.db, token="forged-token", outcome="not_found", attempted_at=T0 + timedelta(seconds=seconds))
        alerts = fraud_monitor.evaluate_pattern(self.db, "forged-token", None, T0 + timedelta(seconds=2))
        self.assertEqual(alerts, [])
        self.assertEqual(list_alerts(self.db), [])

    def test_late_retry_sees_the_original_window(self):
        for seconds in (0, 1, 2, 10, 11):
            create_attempt(self.db, token="forged-token", outcome="not_found", attempted_at=T0 + timedelta(seconds=seconds))
        fraud_monitor.retry_evaluation(self.SessionLocal, "forged-token", None, T0 + timedelta(seconds=2))
        self.assertEqual(list_alerts(self.db), [])

    def test_distinct_tokens_are_counted_separately(self):
        for i in range(4):
            self._scan(f"forged-{i}", i)
        self.assertEqual(list_alerts(self.db), [])

    def test_retry_evaluation_uses_its_own_session(self):
        for seconds in range(4):
            create_attempt(self.db, token="forged-token", outcome="not_found", attempted_at=T0 + timedelta(seconds=seconds))
        fraud_monitor.retry_evaluation(self.SessionLocal, "forged-token", None, T0 + timedelta(seconds=3))
        self.assertEqual(len(list_alerts(self.db)), 1)


if __name__ == "__main__":
    unittest.main()
