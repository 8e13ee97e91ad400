# scheduling/serializers.py

from rest_framework import serializers

from .models import Appointment, Doctor, Leave, Schedule
from .slots import normalize_hhmm, parse_hhmm


def _validate_hhmm(value):
    try:
        return normalize_hhmm(value)
    except ValueError as exc:
        raise serializers.ValidationError(str(exc))


# =============================================================================
# DOCTOR
# =============================================================================

class DoctorSerializer(serializers.ModelSerializer):
    name  = serializers.SerializerMethodField()
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Doctor
        fields = [
            "id", "user", "name", "email", "specialization", "qualification",
            "experience", "consultation_fee", "hospital", "address", "is_available",
        ]
        read_only_fields = ["user"]

    def get_name(self, obj):
        return obj.user.get_full_name() or obj.user.username


# =============================================================================
# WEEKLY SCHEDULE
# =============================================================================

class ScheduleSerializer(serializers.ModelSerializer):
    """
    Used when a doctor creates/edits a weekly block and on the public
    schedule listing. The (doctor, day, start) uniqueness is left to the
    database so a duplicate surfaces as an IntegrityError in the view.
    """

    class Meta:
        model = Schedule
        fields = [
            "id", "doctor", "day_of_week", "start_time", "end_time",
            "slot_duration", "is_active", "created_at", "updated_at",
        ]
        read_only_fields = ["doctor", "created_at", "updated_at"]
        extra_kwargs = {"slot_duration": {"min_value": 1, "max_value": 24 * 60}}
        validators = []

    def validate_start_time(self, value):
        return _validate_hhmm(value)

    def validate_end_time(self, value):
        return _validate_hhmm(value)

    def validate(self, attrs):
        start = attrs.get("start_time", getattr(self.instance, "start_time", None))
        end   = attrs.get("end_time", getattr(self.instance, "end_time", None))
        if start and end and parse_hhmm(end) <= parse_hhmm(start):
            raise serializers.ValidationError({"end_time": "end_time must be after start_time"})
        return attrs


# =============================================================================
# LEAVE
# =============================================================================

class LeaveSerializer(serializers.ModelSerializer):
    doctor_name      = serializers.SerializerMethodField()
    reviewed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Leave
        fields = [
            "id", "doctor", "doctor_name", "start_date", "end_date", "reason", "type",
            "status", "reviewed_by", "reviewed_by_name", "reviewed_at", "review_notes",
            "created_at",
        ]
        read_only_fields = [
            "doctor", "status", "reviewed_by", "reviewed_at", "review_notes", "created_at",
        ]

    def validate(self, attrs):
        if attrs["end_date"] < attrs["start_date"]:
            raise serializers.ValidationError({"end_date": "end_date cannot be before start_date"})
        return attrs

    def get_doctor_name(self, obj):
        user = obj.doctor.user
        return user.get_full_name() or user.username

    def get_reviewed_by_name(self, obj):
        if obj.reviewed_by:
            return obj.reviewed_by.get_full_name() or obj.reviewed_by.username
        return ""


class LeaveReviewSerializer(serializers.Serializer):
    status       = serializers.ChoiceField(choices=Leave.REVIEW_OUTCOMES)
    review_notes = serializers.CharField(required=False, allow_blank=True, default="")


# =============================================================================
# APPOINTMENT
# =============================================================================

class AppointmentSerializer(serializers.ModelSerializer):
    patient_name = serializers.SerializerMethodField()
    doctor_name  = serializers.SerializerMethodField()
    room_id      = serializers.CharField(read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id", "patient", "patient_name", "doctor", "doctor_name", "date", "time",
            "status", "reason", "symptoms", "prescription", "diagnosis", "notes",
            "room_id", "created_at", "updated_at",
        ]

    def get_patient_name(self, obj):
        return obj.patient.get_full_name() or obj.patient.username

    def get_doctor_name(self, obj):
        user = obj.doctor.user
        return user.get_full_name() or user.username


class AppointmentCreateSerializer(serializers.Serializer):
    """What a patient sends to POST /api/appointments/."""
    doctor   = serializers.PrimaryKeyRelatedField(queryset=Doctor.objects.select_related("user"))
    date     = serializers.DateField()
    time     = serializers.CharField(max_length=5)
    reason   = serializers.CharField(max_length=500)
    symptoms = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_time(self, value):
        return _validate_hhmm(value)


class AppointmentStatusSerializer(serializers.Serializer):
    """Doctor-side status change plus consultation notes."""
    status       = serializers.ChoiceField(
        choices=[Appointment.STATUS_CONFIRMED, Appointment.STATUS_REJECTED, Appointment.STATUS_COMPLETED],
        required=False,
    )
    prescription = serializers.CharField(required=False, allow_blank=True)
    diagnosis    = serializers.CharField(required=False, allow_blank=True)
    notes        = serializers.CharField(required=False, allow_blank=True)


class AppointmentAdminUpdateSerializer(serializers.Serializer):
    """Admin correction of any booking field; the slot is not re-checked against the schedule."""
    date     = serializers.DateField(required=False)
    time     = serializers.CharField(max_length=5, required=False)
    reason   = serializers.CharField(max_length=500, required=False)
    symptoms = serializers.CharField(required=False, allow_blank=True)
    status   = serializers.ChoiceField(choices=Appointment.STATUS_CHOICES, required=False)

    def validate_time(self, value):
        return _validate_hhmm(value)
