from datetime import datetime, timedelta
from functools import partial

import pytest

from core.process import operations
from core.process.models import CookingCycle, InstantDowntime
from core.security.edit_lock import (
    EditLockError,
    InvalidCredential,
    LOCK_WINDOW,
    ReauthenticationRequired,
    SecurityGate,
    record_requires_reauth,
    requires_reauth,
)

NOW = datetime(2024, 3, 14, 10, 0)


def test_lock_window_is_five_minutes():
    assert LOCK_WINDOW == timedelta(minutes=5)


def test_old_record_requires_reauth():
    assert requires_reauth(NOW - timedelta(minutes=6), NOW) is True


def test_recent_record_is_editable():
    assert requires_reauth(NOW - timedelta(minutes=4), NOW) is False


def test_exactly_at_window_is_editable():
    assert requires_reauth(NOW - LOCK_WINDOW, NOW) is False


def test_missing_created_at_fails_closed():
    assert requires_reauth(None, NOW) is True


def test_record_without_created_at_attribute_fails_closed():
    assert record_requires_reauth(object(), NOW) is True


def test_policy_applies_to_records():
    cycle = CookingCycle(id="1", date=NOW.date(), start_time="08:00", created_at=NOW - timedelta(minutes=1))
    assert record_requires_reauth(cycle, NOW) is False
    assert record_requires_reauth(cycle, NOW + timedelta(minutes=10)) is True


class TestSecurityGate:
    @pytest.fixture
    def gate(self):
        return SecurityGate(supervisor_credential="s3cret", lock_window=timedelta(minutes=5))

    @pytest.fixture
    def locked(self):
        return CookingCycle(id="1", date=NOW.date(), start_time="06:00", created_at=NOW - timedelta(hours=2))

    @pytest.fixture
    def fresh(self):
        return CookingCycle(id="2", date=NOW.date(), start_time="09:58", created_at=NOW - timedelta(minutes=2))

    def test_unlocked_record_runs_without_credential(self, gate, fresh):
        assert gate.run(fresh, NOW, lambda: "deleted") == "deleted"

    def test_locked_record_without_credential(self, gate, locked):
        calls = []
        with pytest.raises(ReauthenticationRequired):
            gate.run(locked, NOW, lambda: calls.append(1))
        assert calls == []

    def test_locked_record_with_wrong_credential(self, gate, locked):
        calls = []
        with pytest.raises(InvalidCredential):
            gate.run(locked, NOW, lambda: calls.append(1), credential="guess")
        assert calls == []

    def test_locked_record_with_credential(self, gate, locked):
        assert gate.run(locked, NOW, lambda: "deleted", credential="s3cret") == "deleted"

    def test_errors_are_permission_errors(self, gate, locked):
        with pytest.raises(PermissionError):
            gate.authorize(locked.created_at, NOW)
        assert issubclass(InvalidCredential, EditLockError)

    def test_policy_is_reevaluated_every_attempt(self, gate, fresh):
        gate.run(fresh, NOW, lambda: None, credential="s3cret")
        # A successful release does not unlock later attempts
        with pytest.raises(ReauthenticationRequired):
            gate.run(fresh, NOW + timedelta(minutes=10), lambda: None)

    def test_unconfigured_credential_never_matches(self):
        gate = SecurityGate(supervisor_credential="", lock_window=timedelta(minutes=5))
        assert gate.verify("") is False
        assert gate.verify("anything") is False


class TestLifecycleEdits:
    """Finalizing a cycle or resuming the line edits the record, so it is gated too"""

    @pytest.fixture
    def gate(self):
        return SecurityGate(supervisor_credential="s3cret", lock_window=timedelta(minutes=5))

    def test_finalizing_aged_cycle_needs_release(self, gate):
        cycle = CookingCycle(id="1", date=NOW.date(), start_time="06:00", created_at=NOW - timedelta(hours=4))

        with pytest.raises(ReauthenticationRequired):
            gate.run(cycle, NOW, partial(operations.close_cycle, cycle, "10:00"))

        closed = gate.run(cycle, NOW, partial(operations.close_cycle, cycle, "10:00"), credential="s3cret")
        assert closed.end_time == "10:00:00"

    def test_finalizing_fresh_cycle_runs_directly(self, gate):
        cycle = CookingCycle(id="1", date=NOW.date(), start_time="09:57", created_at=NOW - timedelta(minutes=3))
        assert gate.run(cycle, NOW, partial(operations.close_cycle, cycle, "10:00")).end_time == "10:00:00"

    def test_resuming_long_stop_needs_release(self, gate):
        stop = InstantDowntime(
            id="d1", date=NOW.date(), start=NOW - timedelta(minutes=30),
            reason="Belt", created_at=NOW - timedelta(minutes=30),
        )

        with pytest.raises(InvalidCredential):
            gate.run(stop, NOW, partial(operations.stop_downtime, stop, NOW), credential="guess")

        assert gate.run(stop, NOW, partial(operations.stop_downtime, stop, NOW), credential="s3cret").duration_hours == 0.5
