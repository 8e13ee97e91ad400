# scheduling/models.py
#
# Tables behind the booking calendar.
#
# Models in this file:
#   1. Doctor       - the doctor's professional profile (one per doctor user)
#   2. Schedule     - a recurring weekly block a doctor takes appointments in
#   3. Leave        - a date range the doctor is away, reviewed by an admin
#   4. Appointment  - a patient booking one slot of a doctor's day

from django.contrib.auth.models import User
from django.core.validators import RegexValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .exceptions import InvalidLeaveStatus, LeaveAlreadyReviewed
from .slots import HHMM_PATTERN


WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

validate_hhmm = RegexValidator(HHMM_PATTERN, "Enter a time as HH:MM")


# =============================================================================
# 1. DOCTOR
# =============================================================================

class Doctor(models.Model):
    user             = models.OneToOneField(User, on_delete=models.CASCADE, related_name="doctor")
    specialization   = models.CharField(max_length=100)
    qualification    = models.CharField(max_length=200)
    experience       = models.PositiveIntegerField(default=0)      # years
    consultation_fee = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    hospital         = models.CharField(max_length=200, blank=True)
    address          = models.CharField(max_length=300, blank=True)
    is_available     = models.BooleanField(default=True)

    created_at       = models.DateTimeField(auto_now_add=True)
    updated_at       = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Dr. {self.user.get_full_name() or self.user.username} ({self.specialization})"


# =============================================================================
# 2. SCHEDULE  - weekly recurring availability window
# =============================================================================

class Schedule(models.Model):
    """
    Example: Dr. Smith sees patients on Mondays 09:00-12:00 in 30-minute slots.

    A doctor can hold several blocks on the same weekday (morning + evening),
    but never two that start at the same clock time.
    """

    DAY_CHOICES = [(day, day) for day in WEEKDAYS]

    doctor        = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="schedules")
    day_of_week   = models.CharField(max_length=9, choices=DAY_CHOICES)
    start_time    = models.CharField(max_length=5, validators=[validate_hhmm])
    end_time      = models.CharField(max_length=5, validators=[validate_hhmm])
    slot_duration = models.PositiveIntegerField(default=30)   # minutes
    is_active     = models.BooleanField(default=True)

    created_at    = models.DateTimeField(auto_now_add=True)
    updated_at    = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("doctor", "day_of_week", "start_time")
        ordering = ["doctor", "start_time"]

    def __str__(self):
        return f"{self.doctor} - {self.day_of_week} {self.start_time}-{self.end_time}"


# =============================================================================
# 3. LEAVE  - doctor-declared unavailability, reviewed once by an admin
# =============================================================================

class Leave(models.Model):

    TYPE_CHOICES = [
        ("vacation",   "Vacation"),
        ("sick",       "Sick"),
        ("emergency",  "Emergency"),
        ("conference", "Conference"),
        ("other",      "Other"),
    ]

    STATUS_PENDING  = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = [
        (STATUS_PENDING,  "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    REVIEW_OUTCOMES = (STATUS_APPROVED, STATUS_REJECTED)

    doctor       = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="leaves")
    start_date   = models.DateField()
    end_date     = models.DateField()                  # inclusive
    reason       = models.CharField(max_length=500)
    type         = models.CharField(max_length=20, choices=TYPE_CHOICES, default="other")
    status       = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)

    reviewed_by  = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True,
        related_name="reviewed_leaves"
    )
    reviewed_at  = models.DateTimeField(null=True, blank=True)
    review_notes = models.TextField(blank=True)

    created_at   = models.DateTimeField(auto_now_add=True)
    updated_at   = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-start_date"]

    def __str__(self):
        return f"{self.doctor} - {self.type} leave {self.start_date}..{self.end_date} ({self.status})"

    def review(self, reviewer, status, notes=""):
        """pending → approved/rejected. A leave is reviewed at most once."""
        if status not in self.REVIEW_OUTCOMES:
            raise InvalidLeaveStatus(status)
        if self.status != self.STATUS_PENDING:
            raise LeaveAlreadyReviewed(self.pk, self.status)

        now = timezone.now()
        # Only the review that still finds the row pending wins.
        updated = Leave.objects.filter(pk=self.pk, status=self.STATUS_PENDING).update(
            status=status, reviewed_by=reviewer, reviewed_at=now,
            review_notes=notes or "", updated_at=now,
        )
        if not updated:
            self.refresh_from_db(fields=["status", "reviewed_by", "reviewed_at", "review_notes"])
            raise LeaveAlreadyReviewed(self.pk, self.status)

        self.status       = status
        self.reviewed_by  = reviewer
        self.reviewed_at  = now
        self.review_notes = notes or ""
        self.updated_at   = now


# =============================================================================
# 4. APPOINTMENT
# =============================================================================

class Appointment(models.Model):
    """
    Flow:
      Patient books           →  'pending'
      Doctor accepts/declines →  'confirmed' / 'rejected'
      Consultation done       →  'completed'
      Patient cancels         →  'cancelled'

    Every status except cancelled/rejected holds the (doctor, date, time) slot.
    """

    STATUS_PENDING   = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_REJECTED  = "rejected"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING,   "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_REJECTED,  "Rejected"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    RELEASED_STATUSES = (STATUS_CANCELLED, STATUS_REJECTED)

    patient      = models.ForeignKey(User, on_delete=models.CASCADE, related_name="appointments")
    doctor       = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="appointments")
    date         = models.DateField()
    time         = models.CharField(max_length=5, validators=[validate_hhmm])   # slot label
    status       = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)

    reason       = models.CharField(max_length=500)
    symptoms     = models.TextField(blank=True)
    prescription = models.TextField(blank=True)
    diagnosis    = models.TextField(blank=True)
    notes        = models.TextField(blank=True)

    created_at   = models.DateTimeField(auto_now_add=True)
    updated_at   = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "time"]
        constraints = [
            # Two patients racing for the same freshly-free slot: the second insert fails here.
            models.UniqueConstraint(
                fields=["doctor", "date", "time"],
                condition=~Q(status__in=["cancelled", "rejected"]),
                name="unique_active_appointment_slot",
            ),
        ]

    def __str__(self):
        return f"Appointment {self.pk}: {self.patient} with {self.doctor} @ {self.date} {self.time}"

    @property
    def room_id(self):
        """Video room both parties join for this consultation."""
        return f"appointment-{self.pk}"
