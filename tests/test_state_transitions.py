"""
Tests for the reservation status lifecycle.

Covers the clock-driven update (on read and by sweep) and owner-initiated
transitions, which must agree with get_valid_transitions.
"""

import pytest
from datetime import date

from conftest import BOOKING_DAY, at
from utils.errors import ConflictError, ForbiddenError, InvalidRequestError, NotFoundError


def _insert(venue, slots, status='pending', day=BOOKING_DAY):
    """Store a reservation directly, bypassing the booking rules."""
    from database import transaction
    from models.reservation_crud import insert_reservation

    with transaction() as db:
        return insert_reservation(
            db,
            room_id=venue['gaming_room_id'],
            user_id=venue['user_id'],
            reservation_date=day.isoformat(),
            reservation_type='single',
            total_price=len(slots) * 5.0,
            status=status,
            time_slots=slots,
        )


class TestTimeBasedStatus:
    """Tests for the clock-driven status update."""

    def test_pending_becomes_in_progress_then_completed(self, venue):
        """Slots 08:00-09:00: in progress at 08:15, completed at 09:35."""
        from models.reservation import update_reservation_status_based_on_time

        reservation_id = _insert(venue, ['08:00', '08:30', '09:00'])

        assert update_reservation_status_based_on_time(reservation_id, now=at(7, 59))['status'] == 'pending'
        assert update_reservation_status_based_on_time(reservation_id, now=at(8, 15))['status'] == 'in_progress'
        assert update_reservation_status_based_on_time(reservation_id, now=at(9, 29))['status'] == 'in_progress'
        assert update_reservation_status_based_on_time(reservation_id, now=at(9, 35))['status'] == 'completed'

    def test_window_end_is_exclusive(self, venue):
        from models.reservation import update_reservation_status_based_on_time

        reservation_id = _insert(venue, ['08:00', '08:30', '09:00'], status='in_progress')
        assert update_reservation_status_based_on_time(reservation_id, now=at(9, 30))['status'] == 'completed'

    def test_pending_past_window_goes_straight_to_completed(self, venue):
        from models.reservation import update_reservation_status_based_on_time

        reservation_id = _insert(venue, ['08:00'])
        assert update_reservation_status_based_on_time(reservation_id, now=at(12))['status'] == 'completed'

    def test_other_statuses_are_left_alone(self, venue):
        from models.reservation import update_reservation_status_based_on_time

        for day, status in enumerate(('no_show', 'completed', 'payment_success'), start=10):
            reservation_id = _insert(venue, ['08:00'], status=status, day=date(2030, 1, day))
            assert update_reservation_status_based_on_time(reservation_id, now=at(12))['status'] == status

    def test_update_is_idempotent(self, venue):
        """A second update with the same clock writes no history row."""
        from models.reservation import get_status_history, update_reservation_status_based_on_time

        reservation_id = _insert(venue, ['08:00', '08:30'])
        update_reservation_status_based_on_time(reservation_id, now=at(8, 15))
        update_reservation_status_based_on_time(reservation_id, now=at(8, 15))

        history = get_status_history(reservation_id)
        assert [h['new_status'] for h in history] == ['pending', 'in_progress']
        assert history[-1]['changed_by'] == 'system'

    def test_unknown_reservation(self, venue):
        from models.reservation import update_reservation_status_based_on_time

        with pytest.raises(NotFoundError):
            update_reservation_status_based_on_time(9999, now=at(8))

    def test_compute_is_pure(self):
        from models.reservation import compute_time_based_status

        reservation = {'status': 'pending', 'reservation_date': '2030-01-15', 'slots': ['10:00']}
        assert compute_time_based_status(reservation, at(9)) == 'pending'
        assert compute_time_based_status(reservation, at(10)) == 'in_progress'
        assert compute_time_based_status(reservation, at(10, 30)) == 'completed'
        assert reservation['status'] == 'pending'


class TestSweep:
    """Tests for sweep_reservation_statuses."""

    def test_sweep_updates_today_and_earlier(self, venue):
        from models.reservation import fetch_reservation, sweep_reservation_statuses

        yesterday = _insert(venue, ['10:00'], day=date(2030, 1, 14))
        active = _insert(venue, ['11:30', '12:00'])
        later_today = _insert(venue, ['18:00'])
        tomorrow = _insert(venue, ['10:00'], day=date(2030, 1, 16))

        assert sweep_reservation_statuses(now=at(12)) == 2

        assert fetch_reservation(yesterday)['status'] == 'completed'
        assert fetch_reservation(active)['status'] == 'in_progress'
        assert fetch_reservation(later_today)['status'] == 'pending'
        assert fetch_reservation(tomorrow)['status'] == 'pending'

        assert sweep_reservation_statuses(now=at(12)) == 0


class TestCanTransition:
    """Tests for the pure transition predicate."""

    WINDOW = (at(10), at(11))

    def test_to_pending(self):
        from models.reservation import can_transition

        assert can_transition('in_progress', 'pending', self.WINDOW, at(9)) is True
        assert can_transition('payment_success', 'pending', self.WINDOW, at(9)) is True
        assert can_transition('in_progress', 'pending', self.WINDOW, at(10)) is False
        assert can_transition('completed', 'pending', self.WINDOW, at(11)) is False

    def test_to_in_progress(self):
        from models.reservation import can_transition

        assert can_transition('pending', 'in_progress', self.WINDOW, at(10, 15)) is True
        assert can_transition('pending', 'in_progress', self.WINDOW, at(9)) is False
        assert can_transition('pending', 'in_progress', self.WINDOW, at(11)) is False
        assert can_transition('no_show', 'in_progress', self.WINDOW, at(10, 15)) is False

    def test_to_no_show(self):
        from models.reservation import can_transition

        assert can_transition('in_progress', 'no_show', self.WINDOW, at(10, 15)) is True
        assert can_transition('pending', 'no_show', self.WINDOW, at(11)) is True
        assert can_transition('pending', 'no_show', self.WINDOW, at(10, 15)) is False

    def test_to_completed(self):
        from models.reservation import can_transition

        assert can_transition('in_progress', 'completed', self.WINDOW, at(10, 15)) is True
        assert can_transition('pending', 'completed', self.WINDOW, at(11)) is True
        assert can_transition('pending', 'completed', self.WINDOW, at(10, 15)) is False

    def test_to_payment_success(self):
        from models.reservation import can_transition

        for current in ('pending', 'in_progress', 'no_show', 'completed'):
            assert can_transition(current, 'payment_success', self.WINDOW, at(9)) is True

    def test_unknown_target(self):
        from models.reservation import can_transition

        assert can_transition('pending', 'cancelled', self.WINDOW, at(9)) is False


class TestSetReservationStatus:
    """Tests for owner-initiated status changes."""

    def test_pending_after_window_started_is_rejected(self, venue):
        from models.reservation import set_reservation_status

        reservation_id = _insert(venue, ['10:00', '10:30'], status='in_progress')

        with pytest.raises(ConflictError) as exc_info:
            set_reservation_status(reservation_id, 'pending', venue['owner_id'], now=at(10, 15))
        assert exc_info.value.details == {'current_status': 'in_progress', 'requested_status': 'pending'}

    def test_mark_in_progress_during_window(self, venue):
        from models.reservation import get_status_history, set_reservation_status

        reservation_id = _insert(venue, ['10:00', '10:30'])
        reservation = set_reservation_status(reservation_id, 'in_progress', venue['owner_id'], now=at(10, 15))

        assert reservation['status'] == 'in_progress'
        assert get_status_history(reservation_id)[-1]['changed_by'] == str(venue['owner_id'])

    def test_no_show(self, venue):
        from models.reservation import set_reservation_status

        reservation_id = _insert(venue, ['10:00', '10:30'], status='in_progress')
        assert set_reservation_status(reservation_id, 'no_show', venue['owner_id'],
                                      now=at(10, 15))['status'] == 'no_show'

    def test_complete_pending_early_is_rejected(self, venue):
        from models.reservation import set_reservation_status

        reservation_id = _insert(venue, ['10:00', '10:30'])
        with pytest.raises(ConflictError, match='before the reservation time has finished'):
            set_reservation_status(reservation_id, 'completed', venue['owner_id'], now=at(9))

    def test_payment_success_always_allowed(self, venue):
        from models.reservation import set_reservation_status

        reservation_id = _insert(venue, ['10:00'])
        assert set_reservation_status(reservation_id, 'payment_success', venue['owner_id'],
                                      now=at(9))['status'] == 'payment_success'

    def test_unknown_status(self, venue):
        from models.reservation import set_reservation_status

        reservation_id = _insert(venue, ['10:00'])
        with pytest.raises(InvalidRequestError):
            set_reservation_status(reservation_id, 'cancelled', venue['owner_id'], now=at(9))

    def test_other_owner_is_forbidden(self, venue):
        from models.reservation import set_reservation_status

        reservation_id = _insert(venue, ['10:00'])
        with pytest.raises(ForbiddenError):
            set_reservation_status(reservation_id, 'payment_success', venue['other_owner_id'], now=at(9))

    def test_unknown_reservation(self, venue):
        from models.reservation import set_reservation_status

        with pytest.raises(NotFoundError):
            set_reservation_status(9999, 'payment_success', venue['owner_id'], now=at(9))

    def test_rejected_change_is_not_persisted(self, venue):
        from models.reservation import fetch_reservation, set_reservation_status

        reservation_id = _insert(venue, ['10:00'])
        with pytest.raises(ConflictError):
            set_reservation_status(reservation_id, 'in_progress', venue['owner_id'], now=at(9))
        assert fetch_reservation(reservation_id)['status'] == 'pending'


class TestValidTransitions:
    """get_valid_transitions must agree with set_reservation_status."""

    @pytest.mark.parametrize('status,now', [
        ('pending', at(9)),
        ('pending', at(10, 15)),
        ('pending', at(12)),
        ('in_progress', at(10, 15)),
        ('no_show', at(12)),
        ('completed', at(12)),
        ('payment_success', at(9)),
    ])
    def test_enumeration_matches_set_status(self, venue, status, now):
        from models.reservation import (
            RESERVATION_STATUSES, fetch_reservation, get_valid_transitions, set_reservation_status
        )
        from database import get_db

        reservation_id = _insert(venue, ['10:00', '10:30'], status=status)
        valid = get_valid_transitions(reservation_id, venue['owner_id'], now=now)
        assert status not in valid

        db = get_db()
        for target in RESERVATION_STATUSES:
            if target == status:
                continue
            try:
                set_reservation_status(reservation_id, target, venue['owner_id'], now=now)
                accepted = True
            except ConflictError:
                accepted = False
            assert accepted == (target in valid), target
            # Put the stored status back for the next target
            db.execute('UPDATE reservations SET status = ? WHERE id = ?', (status, reservation_id))
            db.commit()

        assert fetch_reservation(reservation_id)['status'] == status

    def test_future_pending(self, venue):
        from models.reservation import get_valid_transitions

        reservation_id = _insert(venue, ['10:00'])
        assert get_valid_transitions(reservation_id, venue['owner_id'], now=at(9)) == ['payment_success']

    def test_other_owner_is_forbidden(self, venue):
        from models.reservation import get_valid_transitions

        reservation_id = _insert(venue, ['10:00'])
        with pytest.raises(ForbiddenError):
            get_valid_transitions(reservation_id, venue['other_owner_id'], now=at(9))
