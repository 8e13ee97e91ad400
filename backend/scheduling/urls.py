# scheduling/urls.py

from django.urls import path

from . import views

urlpatterns = [
    # Doctors
    path("doctors/",                 views.DoctorListView.as_view(),   name="doctor-list"),
    path("doctors/<int:doctor_id>/", views.DoctorDetailView.as_view(), name="doctor-detail"),

    # Weekly schedule + availability
    path("schedule/",                              views.ScheduleCreateView.as_view(),  name="schedule-create"),
    path("schedule/<int:schedule_id>/",            views.ScheduleDetailView.as_view(),  name="schedule-detail"),
    path("schedule/doctor/<int:doctor_id>/",       views.DoctorScheduleView.as_view(),  name="doctor-schedule"),
    path("schedule/available-slots/<int:doctor_id>/<str:date>/",
         views.AvailableSlotsView.as_view(), name="available-slots"),

    # Leave
    path("schedule/leave/",                        views.LeaveApplyView.as_view(),  name="leave-apply"),
    path("schedule/leave/<int:leave_id>/",         views.LeaveDeleteView.as_view(), name="leave-delete"),
    path("schedule/leaves/",                       views.MyLeavesView.as_view(),    name="my-leaves"),
    path("schedule/leaves/all/",                   views.AllLeavesView.as_view(),   name="all-leaves"),
    path("schedule/leaves/<int:leave_id>/review/", views.LeaveReviewView.as_view(), name="leave-review"),

    # Appointments
    path("appointments/",                               views.AppointmentListCreateView.as_view(),  name="appointment-list-create"),
    path("appointments/mine/",                          views.MyAppointmentsView.as_view(),     name="my-appointments"),
    path("appointments/doctor/",                        views.DoctorAppointmentsView.as_view(), name="doctor-appointments"),
    path("appointments/<int:appointment_id>/",          views.AppointmentDetailView.as_view(),  name="appointment-detail"),
    path("appointments/<int:appointment_id>/status/",   views.AppointmentStatusView.as_view(),  name="appointment-status"),
    path("appointments/<int:appointment_id>/cancel/",   views.AppointmentCancelView.as_view(),  name="appointment-cancel"),
]
