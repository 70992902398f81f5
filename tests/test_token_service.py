import re
import unittest
from datetime import timedelta

from core.exceptions import AlreadyUsed, Unauthorized
from crud.fraud_crud import list_alerts
from crud.ticket_crud import get_ticket, set_ticket_used, swap_ticket_token
from schemas.qr_schema import GeoPoint
from services.token_service import derive_token, issue_token
from services.verification_service import verify_token

from factories import OTHER_OWNER, OWNER, T0, VENUE_LAT, VENUE_LNG, add_event, add_ticket, make_session_factory


class TokenServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.engine, self.SessionLocal = make_session_factory()
        self.db = self.SessionLocal()
        self.event = add_event(self.db)
        self.ticket = add_ticket(self.db, self.event)
        self.ticket_id = self.ticket.id

    def tearDown(self):
        self.db.close()
        self.engine.dispose()


class TestDeriveToken(unittest.TestCase):
    def test_hex_sha256_digest(self):
        token = derive_token("ticket-1", T0)
        self.assertRegex(token, r"^[0-9a-f]{64}$")

    def test_fresh_nonce_every_time(self):
        self.assertNotEqual(derive_token("ticket-1", T0), derive_token("ticket-1", T0))

    def test_does_not_embed_ticket_id(self):
        token = derive_token("ticket-abcdef", T0)
        self.assertIsNone(re.search("ticket|abcdef", token))


class TestIssueToken(TokenServiceTestCase):
    def test_new_token_defaults_to_thirty_seconds(self):
        issued = issue_token(self.db, self.ticket_id, OWNER, now=T0)
        self.assertEqual(issued.seconds_remaining, 30)
        self.assertEqual(issued.expires_at, T0 + timedelta(seconds=30))
        self.assertEqual(issued.qr_type, "standard")
        self.assertEqual(issued.ticket_id, self.ticket_id)
        self.assertEqual(issued.event_id, self.event.id)

        stored = get_ticket(self.db, self.ticket_id)
        self.assertEqual(stored.current_verification_token, issued.token)
        self.assertIsNotNone(stored.last_token_generation)

    def test_reissue_within_window_is_idempotent(self):
        first = issue_token(self.db, self.ticket_id, OWNER, now=T0)
        second = issue_token(self.db, self.ticket_id, OWNER, now=T0 + timedelta(seconds=10))
        third = issue_token(self.db, self.ticket_id, OWNER, now=T0 + timedelta(seconds=25))
        self.assertEqual(first.token, second.token)
        self.assertEqual(second.token, third.token)
        self.assertEqual(second.expires_at, first.expires_at)
        self.assertEqual(second.seconds_remaining, 20)
        self.assertLess(third.seconds_remaining, second.seconds_remaining)

    def test_location_cannot_widen_a_live_window(self):
        first = issue_token(self.db, self.ticket_id, OWNER, now=T0)
        at_venue = GeoPoint(latitude=VENUE_LAT, longitude=VENUE_LNG)
        again = issue_token(self.db, self.ticket_id, OWNER, location=at_venue, now=T0 + timedelta(seconds=5))
        self.assertEqual(again.token, first.token)
        self.assertEqual(again.qr_type, "standard")
        self.assertEqual(again.seconds_remaining, 25)

    def test_expiry_boundary_mints_new_token(self):
        first = issue_token(self.db, self.ticket_id, OWNER, now=T0)
        second = issue_token(self.db, self.ticket_id, OWNER, now=T0 + timedelta(seconds=30))
        self.assertNotEqual(first.token, second.token)
        self.assertEqual(second.seconds_remaining, 30)

    def test_new_token_supersedes_old_immediately(self):
        old = issue_token(self.db, self.ticket_id, OWNER, now=T0)
        new = issue_token(self.db, self.ticket_id, OWNER, now=T0 + timedelta(seconds=31))
        result = verify_token(self.db, old.token, now=T0 + timedelta(seconds=32))
        self.assertEqual(result.outcome.value, "not_found")
        result = verify_token(self.db, new.token, now=T0 + timedelta(seconds=33))
        self.assertEqual(result.outcome.value, "valid")

    def test_wrong_owner_is_unauthorized(self):
        with self.assertRaises(Unauthorized):
            issue_token(self.db, self.ticket_id, OTHER_OWNER, now=T0)
        self.assertIsNone(get_ticket(self.db, self.ticket_id).current_verification_token)

    def test_missing_ticket_is_unauthorized(self):
        with self.assertRaises(Unauthorized):
            issue_token(self.db, "no-such-ticket", OWNER, now=T0)

    def test_used_ticket_cannot_get_a_token(self):
        issued = issue_token(self.db, self.ticket_id, OWNER, now=T0)
        verify_token(self.db, issued.token, now=T0 + timedelta(seconds=1))
        with self.assertRaises(AlreadyUsed):
            issue_token(self.db, self.ticket_id, OWNER, now=T0 + timedelta(seconds=2))

    def test_venue_entry_window(self):
        here = GeoPoint(latitude=VENUE_LAT + 0.0005, longitude=VENUE_LNG)
        issued = issue_token(self.db, self.ticket_id, OWNER, location=here, now=T0)
        self.assertEqual(issued.qr_type, "venue_entry")
        self.assertEqual(issued.seconds_remaining, 180)

    def test_venue_proximity_window(self):
        nearby = GeoPoint(latitude=VENUE_LAT + 0.0027, longitude=VENUE_LNG)
        issued = issue_token(self.db, self.ticket_id, OWNER, location=nearby, now=T0)
        self.assertEqual(issued.qr_type, "venue_proximity")
        self.assertEqual(issued.seconds_remaining, 60)

    def test_far_away_gets_default_window(self):
        far = GeoPoint(latitude=VENUE_LAT + 1.0, longitude=VENUE_LNG)
        issued = issue_token(self.db, self.ticket_id, OWNER, location=far, now=T0)
        self.assertEqual(issued.qr_type, "standard")
        self.assertEqual(issued.seconds_remaining, 30)

    def test_event_without_venue_coordinates_gets_default_window(self):
        event = add_event(self.db, with_venue=False, name="Pop-up Show")
        ticket = add_ticket(self.db, event)
        here = GeoPoint(latitude=VENUE_LAT, longitude=VENUE_LNG)
        issued = issue_token(self.db, ticket.id, OWNER, location=here, now=T0)
        self.assertEqual(issued.seconds_remaining, 30)

    def test_reissue_after_expired_scan_raises_alert(self):
        old = issue_token(self.db, self.ticket_id, OWNER, now=T0)
        verify_token(self.db, old.token, now=T0 + timedelta(seconds=40))
        issue_token(self.db, self.ticket_id, OWNER, now=T0 + timedelta(seconds=45))
        alerts = list_alerts(self.db, category="expired_token")
        self.assertEqual(len(alerts), 1)
        self.assertEqual(alerts[0].ticket_id, self.ticket_id)
        self.assertEqual(alerts[0].token, old.token)

    def test_plain_reissue_after_expiry_raises_no_alert(self):
        issue_token(self.db, self.ticket_id, OWNER, now=T0)
        issue_token(self.db, self.ticket_id, OWNER, now=T0 + timedelta(seconds=45))
        self.assertEqual(list_alerts(self.db), [])


class TestTicketTokenSwap(TokenServiceTestCase):
    def test_swap_requires_expected_token(self):
        self.assertTrue(swap_ticket_token(self.db, self.ticket_id, None, "tok-a", T0 + timedelta(seconds=30), "standard", T0))
        # A second writer that also saw an empty slot loses
        self.assertFalse(swap_ticket_token(self.db, self.ticket_id, None, "tok-b", T0 + timedelta(seconds=30), "standard", T0))
        self.assertEqual(get_ticket(self.db, self.ticket_id).current_verification_token, "tok-a")
        self.assertTrue(swap_ticket_token(self.db, self.ticket_id, "tok-a", "tok-c", T0 + timedelta(seconds=60), "standard", T0))

    def test_used_flag_flips_once(self):
        swap_ticket_token(self.db, self.ticket_id, None, "tok-a", T0 + timedelta(seconds=30), "standard", T0)
        self.assertTrue(set_ticket_used(self.db, self.ticket_id, "tok-a", T0))
        self.assertFalse(set_ticket_used(self.db, self.ticket_id, "tok-a", T0))

    def test_used_flag_needs_current_token(self):
        swap_ticket_token(self.db, self.ticket_id, None, "tok-a", T0 + timedelta(seconds=30), "standard", T0)
        self.assertFalse(set_ticket_used(self.db, self.ticket_id, "tok-stale", T0))

    def test_swap_refused_on_used_ticket(self):
        swap_ticket_token(self.db, self.ticket_id, None, "tok-a", T0 + timedelta(seconds=30), "standard", T0)
        set_ticket_used(self.db, self.ticket_id, "tok-a", T0)
        self.assertFalse(swap_ticket_token(self.db, self.ticket_id, "tok-a", "tok-b", T0 + timedelta(seconds=60), "standard", T0))


if __name__ == "__main__":
    unittest.main()
