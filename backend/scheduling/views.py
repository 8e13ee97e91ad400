# scheduling/views.py
#
# REST surface for doctors' weekly schedules, leave, slot availability and
# appointment booking. Everything here is mounted under /api/.

import logging
from datetime import datetime

from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import UserProfile, role_of
from accounts.permissions import IsAdmin, IsDoctor
from videocall.notifications import notify_user

from .availability import AvailabilityEngine
from .exceptions import InvalidLeaveStatus, LeaveAlreadyReviewed, SlotUnavailable
from .models import WEEKDAYS, Appointment, Doctor, Leave, Schedule
from .slots import parse_hhmm
from .serializers import (
    AppointmentAdminUpdateSerializer,
    AppointmentCreateSerializer,
    AppointmentSerializer,
    AppointmentStatusSerializer,
    DoctorSerializer,
    LeaveReviewSerializer,
    LeaveSerializer,
    ScheduleSerializer,
)

logger = logging.getLogger(__name__)

DOCTOR_PROFILE_MISSING = {"error": "Doctor profile not found"}
INVALID_DATE           = {"error": "Invalid date format. Use YYYY-MM-DD."}


def _doctor_for(user):
    return Doctor.objects.filter(user=user).first()


def _parse_day(value):
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


# =============================================================================
# DOCTORS
# =============================================================================

class DoctorListView(APIView):
    """
    GET  /api/doctors/?specialization=<text>   public directory
    POST /api/doctors/                          caller creates their own doctor profile
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated()]
        return [AllowAny()]

    def get(self, request):
        doctors = Doctor.objects.select_related("user").order_by("id")
        specialization = request.query_params.get("specialization")
        if specialization:
            doctors = doctors.filter(specialization__icontains=specialization)
        return Response(DoctorSerializer(doctors, many=True).data)

    def post(self, request):
        if Doctor.objects.filter(user=request.user).exists():
            return Response({"error": "Doctor profile already exists"}, status=status.HTTP_400_BAD_REQUEST)

        serializer = DoctorSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            doctor = serializer.save(user=request.user)
            UserProfile.objects.update_or_create(
                user=request.user, defaults={"role": UserProfile.ROLE_DOCTOR}
            )
        logger.info("🩺 [Doctor] profile=%s created for %s", doctor.pk, request.user.username)
        return Response(DoctorSerializer(doctor).data, status=status.HTTP_201_CREATED)


class DoctorDetailView(APIView):
    """GET public; PUT by the doctor themselves or an admin; DELETE admin only."""

    def get_permissions(self):
        if self.request.method == "PUT":
            return [IsAuthenticated()]
        if self.request.method == "DELETE":
            return [IsAdmin()]
        return [AllowAny()]

    def get(self, request, doctor_id):
        doctor = get_object_or_404(Doctor.objects.select_related("user"), pk=doctor_id)
        return Response(DoctorSerializer(doctor).data)

    def put(self, request, doctor_id):
        doctor = get_object_or_404(Doctor.objects.select_related("user"), pk=doctor_id)
        if doctor.user_id != request.user.id and role_of(request.user) != UserProfile.ROLE_ADMIN:
            return Response({"error": "Not authorized to update this profile"},
                            status=status.HTTP_403_FORBIDDEN)

        serializer = DoctorSerializer(doctor, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        return Response(DoctorSerializer(serializer.save()).data)

    def delete(self, request, doctor_id):
        doctor = get_object_or_404(Doctor, pk=doctor_id)
        doctor.delete()
        logger.info("🩺 [Doctor] profile=%s removed by %s", doctor_id, request.user.username)
        return Response({"message": "Doctor profile removed"})


# =============================================================================
# WEEKLY SCHEDULE
# =============================================================================

class DoctorScheduleView(APIView):
    """GET /api/schedule/doctor/<doctor_id>/ - active blocks, Monday first."""
    permission_classes = [AllowAny]

    def get(self, request, doctor_id):
        blocks = Schedule.objects.filter(doctor_id=doctor_id, is_active=True)
        blocks = sorted(blocks, key=lambda b: (WEEKDAYS.index(b.day_of_week), parse_hhmm(b.start_time)))
        return Response(ScheduleSerializer(blocks, many=True).data)


class ScheduleCreateView(APIView):
    """POST /api/schedule/"""
    permission_classes = [IsDoctor]

    def post(self, request):
        doctor = _doctor_for(request.user)
        if doctor is None:
            return Response(DOCTOR_PROFILE_MISSING, status=status.HTTP_404_NOT_FOUND)

        serializer = ScheduleSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            with transaction.atomic():
                block = serializer.save(doctor=doctor)
        except IntegrityError:
            logger.info("📅 [Schedule] duplicate block for doctor=%s %s %s",
                        doctor.pk, serializer.validated_data.get("day_of_week"),
                        serializer.validated_data.get("start_time"))
            return Response({"error": "Schedule already exists for this time slot"},
                            status=status.HTTP_400_BAD_REQUEST)

        return Response(ScheduleSerializer(block).data, status=status.HTTP_201_CREATED)


class ScheduleDetailView(APIView):
    """PUT / DELETE /api/schedule/<id>/ - only the owning doctor."""
    permission_classes = [IsDoctor]

    def put(self, request, schedule_id):
        block = get_object_or_404(Schedule, pk=schedule_id, doctor__user=request.user)
        serializer = ScheduleSerializer(block, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            with transaction.atomic():
                block = serializer.save()
        except IntegrityError:
            return Response({"error": "Schedule already exists for this time slot"},
                            status=status.HTTP_400_BAD_REQUEST)
        return Response(ScheduleSerializer(block).data)

    def delete(self, request, schedule_id):
        block = get_object_or_404(Schedule, pk=schedule_id, doctor__user=request.user)
        block.delete()
        return Response({"message": "Schedule deleted successfully"})


# =============================================================================
# AVAILABLE SLOTS
# =============================================================================

class AvailableSlotsView(APIView):
    """
    GET /api/schedule/available-slots/<doctor_id>/<YYYY-MM-DD>/

    {available, date, dayOfWeek, slots} when the doctor works that day,
    {available: false, reason, slots: []} when on leave or not scheduled.
    An unknown doctor has no schedule, so it reads as "not available".
    """
    permission_classes = [AllowAny]

    def get(self, request, doctor_id, date):
        day = _parse_day(date)
        if day is None:
            return Response(INVALID_DATE, status=status.HTTP_400_BAD_REQUEST)

        try:
            availability = AvailabilityEngine().check(doctor_id, day)
        except Exception:
            logger.exception("❌ [Availability] lookup failed doctor=%s date=%s", doctor_id, date)
            return Response({"error": "Could not load availability"},
                            status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(availability.as_dict())


# =============================================================================
# LEAVE
# =============================================================================

class LeaveApplyView(APIView):
    """POST /api/schedule/leave/ - doctor files a leave request (pending)."""
    permission_classes = [IsDoctor]

    def post(self, request):
        doctor = _doctor_for(request.user)
        if doctor is None:
            return Response(DOCTOR_PROFILE_MISSING, status=status.HTTP_404_NOT_FOUND)

        serializer = LeaveSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        leave = serializer.save(doctor=doctor)
        logger.info("🌴 [Leave] doctor=%s filed %s leave %s..%s",
                    doctor.pk, leave.type, leave.start_date, leave.end_date)
        return Response(LeaveSerializer(leave).data, status=status.HTTP_201_CREATED)


class MyLeavesView(APIView):
    """GET /api/schedule/leaves/ - the calling doctor's leave, newest first."""
    permission_classes = [IsDoctor]

    def get(self, request):
        doctor = _doctor_for(request.user)
        if doctor is None:
            return Response(DOCTOR_PROFILE_MISSING, status=status.HTTP_404_NOT_FOUND)
        leaves = Leave.objects.filter(doctor=doctor).select_related("doctor__user", "reviewed_by")
        return Response(LeaveSerializer(leaves.order_by("-start_date"), many=True).data)


class LeaveDeleteView(APIView):
    """DELETE /api/schedule/leave/<id>/"""
    permission_classes = [IsDoctor]

    def delete(self, request, leave_id):
        leave = get_object_or_404(Leave, pk=leave_id, doctor__user=request.user)
        leave.delete()
        return Response({"message": "Leave deleted successfully"})


class AllLeavesView(APIView):
    """GET /api/schedule/leaves/all/ - every request, for the admin review queue."""
    permission_classes = [IsAdmin]

    def get(self, request):
        leaves = Leave.objects.select_related("doctor__user", "reviewed_by").order_by("-created_at")
        status_filter = request.query_params.get("status")
        if status_filter:
            leaves = leaves.filter(status=status_filter)
        return Response(LeaveSerializer(leaves, many=True).data)


class LeaveReviewView(APIView):
    """PUT /api/schedule/leaves/<id>/review/  body: {status: approved|rejected, review_notes}"""
    permission_classes = [IsAdmin]

    def put(self, request, leave_id):
        serializer = LeaveReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": "Invalid status"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            with transaction.atomic():
                leave = get_object_or_404(Leave.objects.select_for_update(), pk=leave_id)
                leave.review(
                    request.user,
                    serializer.validated_data["status"],
                    serializer.validated_data.get("review_notes", ""),
                )
        except (InvalidLeaveStatus, LeaveAlreadyReviewed) as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        logger.info("🌴 [Leave] leave=%s %s by %s", leave.pk, leave.status, request.user.username)
        return Response(LeaveSerializer(leave).data)


# =============================================================================
# APPOINTMENTS
# =============================================================================

class AppointmentListCreateView(APIView):
    """
    POST /api/appointments/   patient books a slot
    GET  /api/appointments/   every booking, newest first (admin)

    The requested time must be one of the doctor's free slots right now; if
    another patient grabs it between the check and the insert, the database
    constraint turns the second booking into a 409.
    """

    def get_permissions(self):
        if self.request.method == "GET":
            return [IsAdmin()]
        return [IsAuthenticated()]

    def get(self, request):
        appointments = (
            Appointment.objects.select_related("patient", "doctor__user")
            .order_by("-date", "time")
        )
        status_filter = request.query_params.get("status")
        if status_filter:
            appointments = appointments.filter(status=status_filter)
        return Response(AppointmentSerializer(appointments, many=True).data)

    def post(self, request):
        serializer = AppointmentCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        doctor = data["doctor"]

        try:
            AvailabilityEngine().ensure_bookable(doctor.pk, data["date"], data["time"])
        except SlotUnavailable as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            with transaction.atomic():
                appointment = Appointment.objects.create(
                    patient=request.user,
                    doctor=doctor,
                    date=data["date"],
                    time=data["time"],
                    reason=data["reason"],
                    symptoms=data.get("symptoms", ""),
                )
        except IntegrityError:
            return Response({"error": "This time slot has already been booked"},
                            status=status.HTTP_409_CONFLICT)

        logger.info("📆 [Booking] appointment=%s doctor=%s %s %s",
                    appointment.pk, doctor.pk, appointment.date, appointment.time)
        return Response(AppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED)


class MyAppointmentsView(APIView):
    """GET /api/appointments/mine/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        appointments = (
            Appointment.objects.filter(patient=request.user)
            .select_related("patient", "doctor__user")
        )
        return Response(AppointmentSerializer(appointments, many=True).data)


class DoctorAppointmentsView(APIView):
    """GET /api/appointments/doctor/?date=YYYY-MM-DD"""
    permission_classes = [IsDoctor]

    def get(self, request):
        doctor = _doctor_for(request.user)
        if doctor is None:
            return Response(DOCTOR_PROFILE_MISSING, status=status.HTTP_404_NOT_FOUND)

        appointments = Appointment.objects.filter(doctor=doctor).select_related("patient", "doctor__user")
        date = request.query_params.get("date")
        if date:
            day = _parse_day(date)
            if day is None:
                return Response(INVALID_DATE, status=status.HTTP_400_BAD_REQUEST)
            appointments = appointments.filter(date=day)
        return Response(AppointmentSerializer(appointments, many=True).data)


class AppointmentDetailView(APIView):
    """
    GET    /api/appointments/<id>/   the patient, the doctor, or an admin
    PUT    /api/appointments/<id>/   admin correction of date, time, reason, symptoms, status
    DELETE /api/appointments/<id>/   admin
    """

    def get_permissions(self):
        if self.request.method in ("PUT", "DELETE"):
            return [IsAdmin()]
        return [IsAuthenticated()]

    def get(self, request, appointment_id):
        appointment = get_object_or_404(
            Appointment.objects.select_related("patient", "doctor__user"), pk=appointment_id
        )
        allowed = (
            appointment.patient_id == request.user.id
            or appointment.doctor.user_id == request.user.id
            or role_of(request.user) == UserProfile.ROLE_ADMIN
        )
        if not allowed:
            return Response({"error": "Not authorized"}, status=status.HTTP_403_FORBIDDEN)
        return Response(AppointmentSerializer(appointment).data)

    def put(self, request, appointment_id):
        appointment = get_object_or_404(
            Appointment.objects.select_related("patient", "doctor__user"), pk=appointment_id
        )
        serializer = AppointmentAdminUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        for field_name, value in serializer.validated_data.items():
            setattr(appointment, field_name, value)

        try:
            with transaction.atomic():
                appointment.save()
        except IntegrityError:
            return Response({"error": "This time slot has already been booked"},
                            status=status.HTTP_409_CONFLICT)

        logger.info("📆 [Booking] appointment=%s edited by %s", appointment.pk, request.user.username)
        return Response(AppointmentSerializer(appointment).data)

    def delete(self, request, appointment_id):
        appointment = get_object_or_404(Appointment, pk=appointment_id)
        appointment.delete()
        return Response({"message": "Appointment removed"})


class AppointmentStatusView(APIView):
    """PUT /api/appointments/<id>/status/ - the doctor accepts, rejects or completes."""
    permission_classes = [IsDoctor]

    def put(self, request, appointment_id):
        appointment = get_object_or_404(
            Appointment.objects.select_related("patient", "doctor__user"),
            pk=appointment_id, doctor__user=request.user,
        )
        serializer = AppointmentStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        for field_name, value in serializer.validated_data.items():
            setattr(appointment, field_name, value)

        try:
            with transaction.atomic():
                appointment.save()
        except IntegrityError:
            return Response({"error": "This time slot has already been booked"},
                            status=status.HTTP_409_CONFLICT)

        data = AppointmentSerializer(appointment).data
        try:
            notify_user(appointment.patient_id, "appointment:updated", {
                "appointmentId": appointment.pk,
                "status"       : appointment.status,
                "roomId"       : appointment.room_id,
            })
        except Exception:
            logger.exception("❌ [Booking] could not notify patient=%s", appointment.patient_id)
        return Response(data)


class AppointmentCancelView(APIView):
    """PUT /api/appointments/<id>/cancel/ - the patient frees the slot."""
    permission_classes = [IsAuthenticated]

    def put(self, request, appointment_id):
        appointment = get_object_or_404(Appointment, pk=appointment_id)
        if appointment.patient_id != request.user.id:
            return Response({"error": "Not authorized"}, status=status.HTTP_403_FORBIDDEN)

        appointment.status = Appointment.STATUS_CANCELLED
        appointment.save(update_fields=["status", "updated_at"])
        return Response({"message": "Appointment cancelled successfully"})
