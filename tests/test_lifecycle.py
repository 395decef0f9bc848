"""
Lifecycle transitions and the catalog helpers that guard writes.
Run from repo root: python -m pytest tests/test_lifecycle.py -v
"""
import unittest

from schemas.enums import LifecycleStatus
from services.catalog import CatalogValidationError, StaleVersion, check_version, requested_status
from services.lifecycle import InvalidTransition, transition

ACTIVE = LifecycleStatus.ACTIVE
DEACTIVATED = LifecycleStatus.DEACTIVATED
PURGED = LifecycleStatus.PURGED_PENDING_DELETION


class TestTransitions(unittest.TestCase):
    def test_deactivate_and_reactivate(self):
        self.assertEqual(transition(ACTIVE, "deactivate"), DEACTIVATED)
        self.assertEqual(transition(DEACTIVATED, "reactivate"), ACTIVE)

    def test_repeated_actions_are_noops(self):
        self.assertEqual(transition(DEACTIVATED, "deactivate"), DEACTIVATED)
        self.assertEqual(transition(ACTIVE, "reactivate"), ACTIVE)

    def test_purge_from_any_state(self):
        for status in (ACTIVE, DEACTIVATED, PURGED):
            with self.subTest(status=status):
                self.assertEqual(transition(status, "purge"), PURGED)

    def test_purged_is_terminal(self):
        for action in ("deactivate", "reactivate"):
            with self.subTest(action=action):
                with self.assertRaises(InvalidTransition):
                    transition(PURGED, action)

    def test_accepts_stored_strings(self):
        self.assertEqual(transition("active", "deactivate"), DEACTIVATED)


class TestWriteGuards(unittest.TestCase):
    def test_version_required(self):
        with self.assertRaises(CatalogValidationError):
            check_version({"name": "x"}, 1)

    def test_stale_version(self):
        with self.assertRaises(StaleVersion) as ctx:
            check_version({"version": 2}, 3)
        self.assertEqual(ctx.exception.current, 3)

    def test_matching_version(self):
        check_version({"version": "3"}, 3)

    def test_requested_status_from_patch_body(self):
        self.assertEqual(requested_status({"name": "x"}, "active"), ACTIVE)
        self.assertEqual(requested_status({"is_active": False}, "active"), DEACTIVATED)
        self.assertEqual(requested_status({"isActive": True}, "deactivated"), ACTIVE)
        self.assertEqual(requested_status({"status": "deleted"}, "active"), PURGED)

    def test_requested_status_cannot_leave_purged(self):
        with self.assertRaises(InvalidTransition):
            requested_status({"status": "active"}, "purged_pending_deletion")


if __name__ == "__main__":
    unittest.main()
