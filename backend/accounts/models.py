# accounts/models.py
#
# Extra details for Django's built-in User. The role decides which endpoints a
# caller may use:
#   - 'admin'   → reviews leave, sees every leave request
#   - 'doctor'  → manages own weekly schedule, leave and consultations
#   - 'patient' → books and cancels own appointments

from django.contrib.auth.models import User
from django.db import models


class UserProfile(models.Model):
    ROLE_ADMIN   = "admin"
    ROLE_DOCTOR  = "doctor"
    ROLE_PATIENT = "patient"

    ROLE_CHOICES = [
        (ROLE_ADMIN,   "Admin"),
        (ROLE_DOCTOR,  "Doctor"),
        (ROLE_PATIENT, "Patient"),
    ]

    GENDER_CHOICES = [
        ("M", "Male"),
        ("F", "Female"),
        ("O", "Other / Prefer not to say"),
    ]

    user          = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")
    role          = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_PATIENT)
    phone         = models.CharField(max_length=20, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender        = models.CharField(max_length=1, choices=GENDER_CHOICES, blank=True)
    blood_group   = models.CharField(max_length=5, blank=True)

    def __str__(self):
        return f"{self.user.get_full_name() or self.user.username} ({self.role})"


def role_of(user):
    """Role of an authenticated user; superusers and staff count as admins."""
    if user.is_superuser or user.is_staff:
        return UserProfile.ROLE_ADMIN
    profile = getattr(user, "profile", None)
    return profile.role if profile else UserProfile.ROLE_PATIENT
