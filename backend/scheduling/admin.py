from django.contrib import admin

from .models import Appointment, Doctor, Leave, Schedule

# =============================================================================
# 1. DOCTOR & WEEKLY SCHEDULE
# =============================================================================

class ScheduleInline(admin.TabularInline):
    """Weekly blocks shown directly inside the Doctor admin page."""
    model = Schedule
    extra = 1


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('get_name', 'specialization', 'hospital', 'consultation_fee', 'is_available')
    list_filter = ('specialization', 'is_available')
    search_fields = ('user__username', 'user__first_name', 'user__last_name', 'specialization')
    autocomplete_fields = ['user']
    inlines = [ScheduleInline]

    def get_name(self, obj):
        return obj.user.get_full_name() or obj.user.username
    get_name.short_description = 'Doctor'


@admin.register(Schedule)
class ScheduleAdmin(admin.ModelAdmin):
    list_display = ('doctor', 'day_of_week', 'start_time', 'end_time', 'slot_duration', 'is_active')
    list_filter = ('day_of_week', 'is_active')
    search_fields = ('doctor__user__username', 'doctor__user__first_name')
    autocomplete_fields = ['doctor']


# =============================================================================
# 2. LEAVE REVIEW
# =============================================================================

@admin.register(Leave)
class LeaveAdmin(admin.ModelAdmin):
    list_display = ('doctor', 'type', 'start_date', 'end_date', 'status', 'reviewed_by')
    list_filter = ('status', 'type', 'start_date')
    search_fields = ('doctor__user__username', 'reason')
    readonly_fields = ('reviewed_by', 'reviewed_at', 'created_at', 'updated_at')
    autocomplete_fields = ['doctor']
    actions = ['approve_leaves', 'reject_leaves']

    def _review(self, request, queryset, status):
        # Leaves that were already reviewed are left untouched.
        reviewed = 0
        for leave in queryset.filter(status=Leave.STATUS_PENDING):
            leave.review(request.user, status)
            reviewed += 1
        self.message_user(request, f"{reviewed} leave request(s) marked as {status}.")

    @admin.action(description="Approve selected pending leaves")
    def approve_leaves(self, request, queryset):
        self._review(request, queryset, Leave.STATUS_APPROVED)

    @admin.action(description="Reject selected pending leaves")
    def reject_leaves(self, request, queryset):
        self._review(request, queryset, Leave.STATUS_REJECTED)


# =============================================================================
# 3. APPOINTMENTS
# =============================================================================

@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'date', 'time', 'get_patient', 'doctor', 'status')
    list_filter = ('status', 'date')
    search_fields = (
        'patient__username', 'patient__email', 'patient__first_name',
        'doctor__user__username', 'doctor__user__first_name',
        'reason',
    )
    readonly_fields = ('room_id', 'created_at', 'updated_at')
    autocomplete_fields = ['patient', 'doctor']

    fieldsets = (
        ('Booking', {
            'fields': ('patient', 'doctor', 'date', 'time', 'status', 'room_id')
        }),
        ('Patient Input', {
            'fields': ('reason', 'symptoms')
        }),
        ('Consultation Notes', {
            'fields': ('diagnosis', 'prescription', 'notes'),
            'classes': ('collapse',)
        }),
        ('System', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['mark_completed', 'mark_cancelled']

    def get_patient(self, obj):
        return obj.patient.get_full_name() or obj.patient.username
    get_patient.short_description = 'Patient'

    @admin.action(description="Mark selected as Completed")
    def mark_completed(self, request, queryset):
        updated = queryset.update(status=Appointment.STATUS_COMPLETED)
        self.message_user(request, f"{updated} appointment(s) marked as Completed.")

    @admin.action(description="Mark selected as Cancelled")
    def mark_cancelled(self, request, queryset):
        updated = queryset.update(status=Appointment.STATUS_CANCELLED)
        self.message_user(request, f"{updated} appointment(s) marked as Cancelled.")
