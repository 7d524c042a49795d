"""Tests for the application status transition table."""
import unittest

from services.exceptions import InvalidTransitionError
from services.state_machine import (
    TERMINAL_STATUSES,
    ApplicationStatus as S,
    WorkflowEvent as E,
    allowed_events,
    can_transition,
    event_for,
    next_status,
)


class TestNextStatus(unittest.TestCase):
    def test_happy_path(self):
        path = [
            (E.APPROVE, S.APPROVED_BY_ADMIN),
            (E.DISPATCH, S.COLLECTING_OFFERS),
            (E.RECEIVE_OFFER, S.REVIEWING_OFFERS),
            (E.RECEIVE_OFFER, S.REVIEWING_OFFERS),
            (E.SELECT_OFFER, S.COLLECTING_DOCUMENTS),
            (E.REQUEST_REVISION, S.NEEDS_REVISION),
            (E.RESUBMIT, S.COLLECTING_DOCUMENTS),
            (E.APPROVE, S.APPROVED),
            (E.ISSUE, S.ISSUED),
        ]
        status = S.PENDING
        for event, expected in path:
            status = next_status(status, event)
            self.assertIs(status, expected)

    def test_accepts_plain_strings(self):
        self.assertIs(next_status("pending", "approve"), S.APPROVED_BY_ADMIN)

    def test_disallowed_edge_raises(self):
        with self.assertRaises(InvalidTransitionError) as ctx:
            next_status(S.PENDING, E.ISSUE)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertIn("pending", str(ctx.exception))

    def test_reject_from_open_statuses(self):
        for status in S:
            with self.subTest(status=status):
                if status in TERMINAL_STATUSES or status is S.APPROVED:
                    self.assertFalse(can_transition(status, E.REJECT))
                else:
                    self.assertIs(next_status(status, E.REJECT), S.REJECTED)

    def test_terminal_statuses_have_no_events(self):
        for status in TERMINAL_STATUSES:
            self.assertEqual(allowed_events(status), [])

    def test_unknown_status_is_a_value_error(self):
        with self.assertRaises(ValueError):
            next_status("archived", E.APPROVE)


class TestEventFor(unittest.TestCase):
    def test_finds_event(self):
        self.assertIs(event_for(S.APPROVED, S.ISSUED), E.ISSUE)
        self.assertIs(event_for(S.COLLECTING_DOCUMENTS, S.APPROVED), E.APPROVE)

    def test_no_edge_raises(self):
        with self.assertRaises(InvalidTransitionError):
            event_for(S.PENDING, S.ISSUED)
        with self.assertRaises(InvalidTransitionError):
            event_for(S.REJECTED, S.PENDING)

    def test_dedicated_action_edges_are_not_manual(self):
        blocked = [
            (S.PENDING, S.APPROVED_BY_ADMIN),
            (S.APPROVED_BY_ADMIN, S.COLLECTING_OFFERS),
            (S.COLLECTING_OFFERS, S.REVIEWING_OFFERS),
            (S.REVIEWING_OFFERS, S.REVIEWING_OFFERS),
            (S.REVIEWING_OFFERS, S.COLLECTING_DOCUMENTS),
            (S.COLLECTING_DOCUMENTS, S.COLLECTING_DOCUMENTS),
        ]
        for current, target in blocked:
            with self.subTest(current=current, target=target):
                with self.assertRaises(InvalidTransitionError):
                    event_for(current, target)

    def test_reject_is_manual(self):
        self.assertIs(event_for(S.PENDING, S.REJECTED), E.REJECT)
        self.assertIs(event_for(S.NEEDS_REVISION, S.COLLECTING_DOCUMENTS), E.RESUBMIT)


if __name__ == "__main__":
    unittest.main()
