"""
scheduling/availability.py

Bookable slots for one doctor on one date.

Three independent sources feed the answer:
  - leave      - any leave covering the date takes the whole day off
  - schedule   - the doctor's active weekly blocks for that weekday
  - bookings   - appointments already holding a slot on that date

The engine only talks to a store with three read methods, so it runs the same
against the ORM (DjangoScheduleStore) or an in-memory fake in tests. Store
errors are not caught here; the caller turns them into a single failure.
"""

import logging
from dataclasses import dataclass, field
from datetime import date as date_type
from typing import List, Optional

from django.conf import settings

from .exceptions import SlotUnavailable
from .models import Appointment, Leave, Schedule
from .slots import generate_time_slots

logger = logging.getLogger(__name__)

NOT_SCHEDULED_REASON = "Doctor is not available on this day"


@dataclass
class Availability:
    available: bool
    date: date_type
    day_of_week: str
    slots: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    def as_dict(self):
        if self.reason:
            return {"available": False, "reason": self.reason, "slots": []}
        return {
            "available": self.available,
            "date"     : self.date.isoformat(),
            "dayOfWeek": self.day_of_week,
            "slots"    : list(self.slots),
        }


class DjangoScheduleStore:
    """Reads schedule, leave and bookings through the ORM."""

    def find_blocking_leave(self, doctor_id, day, statuses):
        return (
            Leave.objects
            .filter(doctor_id=doctor_id, start_date__lte=day, end_date__gte=day, status__in=statuses)
            .order_by("start_date", "id")
            .first()
        )

    def active_schedules(self, doctor_id, day_of_week):
        return list(
            Schedule.objects.filter(doctor_id=doctor_id, day_of_week=day_of_week, is_active=True)
        )

    def booked_times(self, doctor_id, day):
        return set(
            Appointment.objects
            .filter(doctor_id=doctor_id, date=day)
            .exclude(status__in=Appointment.RELEASED_STATUSES)
            .values_list("time", flat=True)
        )


class AvailabilityEngine:

    def __init__(self, store=None, blocking_leave_statuses=None):
        self.store = store or DjangoScheduleStore()
        if blocking_leave_statuses is None:
            blocking_leave_statuses = getattr(
                settings, "AVAILABILITY_BLOCKING_LEAVE_STATUSES",
                [status for status, _ in Leave.STATUS_CHOICES],
            )
        self.blocking_leave_statuses = list(blocking_leave_statuses)

    def check(self, doctor_id, day):
        day_of_week = day.strftime("%A")

        leave = self.store.find_blocking_leave(doctor_id, day, self.blocking_leave_statuses)
        if leave is not None:
            return Availability(
                available=False, date=day, day_of_week=day_of_week,
                reason=f"Doctor is on {leave.type} leave",
            )

        schedules = self.store.active_schedules(doctor_id, day_of_week)
        if not schedules:
            return Availability(
                available=False, date=day, day_of_week=day_of_week,
                reason=NOT_SCHEDULED_REASON,
            )

        # Overlapping blocks can produce the same label twice; a label is one slot.
        candidates = set()
        for block in schedules:
            candidates.update(
                generate_time_slots(block.start_time, block.end_time, block.slot_duration)
            )

        booked = self.store.booked_times(doctor_id, day)
        slots  = sorted(candidates - set(booked))

        logger.debug(
            "📅 [Availability] doctor=%s date=%s blocks=%d booked=%d free=%d",
            doctor_id, day, len(schedules), len(booked), len(slots),
        )
        return Availability(available=bool(slots), date=day, day_of_week=day_of_week, slots=slots)

    def ensure_bookable(self, doctor_id, day, time):
        """Raise SlotUnavailable unless `time` is currently free on `day`."""
        availability = self.check(doctor_id, day)
        if time not in availability.slots:
            raise SlotUnavailable(time, availability.reason)
        return availability
