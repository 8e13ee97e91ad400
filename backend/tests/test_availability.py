from datetime import date
from types import SimpleNamespace

import pytest

from scheduling.availability import NOT_SCHEDULED_REASON, AvailabilityEngine, DjangoScheduleStore
from scheduling.exceptions import SlotUnavailable
from scheduling.models import Appointment, Leave, Schedule

MONDAY = date(2024, 1, 15)
TUESDAY = date(2024, 1, 16)
ALL_LEAVE_STATUSES = ["pending", "approved", "rejected"]


class FakeStore:
    """In-memory store; records every call so ordering can be asserted."""

    def __init__(self, leaves=(), schedules=(), booked=()):
        self.leaves = list(leaves)
        self.schedules = list(schedules)
        self.booked = set(booked)
        self.calls = []

    def find_blocking_leave(self, doctor_id, day, statuses):
        self.calls.append("leave")
        for leave in self.leaves:
            if leave.start_date <= day <= leave.end_date and leave.status in statuses:
                return leave
        return None

    def active_schedules(self, doctor_id, day_of_week):
        self.calls.append("schedules")
        return [s for s in self.schedules if s.day_of_week == day_of_week]

    def booked_times(self, doctor_id, day):
        self.calls.append("booked")
        return set(self.booked)


def block(day="Monday", start="09:00", end="10:00", duration=30):
    return SimpleNamespace(day_of_week=day, start_time=start, end_time=end, slot_duration=duration)


def leave(start=MONDAY, end=MONDAY, type="vacation", status="approved"):
    return SimpleNamespace(start_date=start, end_date=end, type=type, status=status)


def engine(store, statuses=ALL_LEAVE_STATUSES):
    return AvailabilityEngine(store=store, blocking_leave_statuses=statuses)


# =============================================================================
# ENGINE WITH AN IN-MEMORY STORE
# =============================================================================

def test_free_slots_exclude_booked_times():
    store = FakeStore(schedules=[block()], booked={"09:30"})
    result = engine(store).check(1, MONDAY).as_dict()
    assert result == {"available": True, "date": "2024-01-15", "dayOfWeek": "Monday", "slots": ["09:00"]}


def test_fully_booked_day_is_not_available_but_keeps_its_date():
    store = FakeStore(schedules=[block()], booked={"09:00", "09:30"})
    result = engine(store).check(1, MONDAY).as_dict()
    assert result == {"available": False, "date": "2024-01-15", "dayOfWeek": "Monday", "slots": []}


def test_leave_takes_the_whole_day_and_skips_other_reads():
    store = FakeStore(leaves=[leave(type="sick")], schedules=[block()])
    result = engine(store).check(1, MONDAY).as_dict()
    assert result == {"available": False, "reason": "Doctor is on sick leave", "slots": []}
    assert store.calls == ["leave"]


def test_leave_bounds_are_inclusive():
    store = FakeStore(leaves=[leave(start=date(2024, 1, 10), end=MONDAY)], schedules=[block()])
    assert engine(store).check(1, MONDAY).available is False


def test_no_schedule_on_weekday():
    store = FakeStore(schedules=[block(day="Monday")])
    result = engine(store).check(1, TUESDAY).as_dict()
    assert result == {"available": False, "reason": NOT_SCHEDULED_REASON, "slots": []}
    assert "booked" not in store.calls


def test_overlapping_blocks_are_merged_and_sorted():
    store = FakeStore(schedules=[
        block(start="14:00", end="15:00", duration=30),
        block(start="09:00", end="10:00", duration=30),
        block(start="09:30", end="10:30", duration=30),
    ])
    result = engine(store).check(1, MONDAY)
    assert result.slots == ["09:00", "09:30", "10:00", "14:00", "14:30"]


def test_inverted_block_contributes_nothing():
    store = FakeStore(schedules=[block(start="12:00", end="09:00")])
    result = engine(store).check(1, MONDAY).as_dict()
    assert result["available"] is False
    assert result["slots"] == []
    assert "reason" not in result


def test_check_is_idempotent():
    store = FakeStore(schedules=[block()], booked={"09:00"})
    eng = engine(store)
    assert eng.check(1, MONDAY) == eng.check(1, MONDAY)


def test_pending_leave_is_ignored_when_only_approved_blocks():
    store = FakeStore(leaves=[leave(status="pending")], schedules=[block()])
    assert engine(store, statuses=["approved"]).check(1, MONDAY).slots == ["09:00", "09:30"]
    assert engine(store).check(1, MONDAY).available is False


def test_store_errors_propagate():
    class BrokenStore(FakeStore):
        def active_schedules(self, doctor_id, day_of_week):
            raise RuntimeError("database is down")

    with pytest.raises(RuntimeError):
        engine(BrokenStore()).check(1, MONDAY)


def test_ensure_bookable():
    store = FakeStore(schedules=[block()], booked={"09:30"})
    eng = engine(store)
    assert eng.ensure_bookable(1, MONDAY, "09:00").slots == ["09:00"]

    with pytest.raises(SlotUnavailable) as excinfo:
        eng.ensure_bookable(1, MONDAY, "09:30")
    assert excinfo.value.time == "09:30"


def test_ensure_bookable_reports_leave_reason():
    store = FakeStore(leaves=[leave(type="conference")], schedules=[block()])
    with pytest.raises(SlotUnavailable, match="conference leave"):
        engine(store).ensure_bookable(1, MONDAY, "09:00")


# =============================================================================
# ORM STORE
# =============================================================================

@pytest.mark.django_db
def test_orm_store_end_to_end(doctor, monday_morning, patient, other_patient):
    Appointment.objects.create(patient=patient, doctor=doctor, date=MONDAY, time="09:00", reason="checkup")
    Appointment.objects.create(
        patient=other_patient, doctor=doctor, date=MONDAY, time="09:30", reason="checkup",
        status=Appointment.STATUS_CANCELLED,
    )
    result = AvailabilityEngine().check(doctor.pk, MONDAY)
    assert result.slots == ["09:30"]


@pytest.mark.django_db
def test_orm_store_ignores_inactive_blocks(doctor):
    Schedule.objects.create(
        doctor=doctor, day_of_week="Monday", start_time="09:00", end_time="10:00", is_active=False,
    )
    assert AvailabilityEngine().check(doctor.pk, MONDAY).reason == NOT_SCHEDULED_REASON


@pytest.mark.django_db
def test_orm_store_blocking_leave_respects_statuses(doctor, monday_morning):
    Leave.objects.create(doctor=doctor, start_date=MONDAY, end_date=MONDAY, reason="x", type="vacation")
    store = DjangoScheduleStore()
    assert store.find_blocking_leave(doctor.pk, MONDAY, ["approved"]) is None
    assert store.find_blocking_leave(doctor.pk, MONDAY, ALL_LEAVE_STATUSES).type == "vacation"
    assert AvailabilityEngine().check(doctor.pk, MONDAY).reason == "Doctor is on vacation leave"


@pytest.mark.django_db
def test_unknown_doctor_is_simply_not_scheduled():
    assert AvailabilityEngine().check(999, MONDAY).reason == NOT_SCHEDULED_REASON
