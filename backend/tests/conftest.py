import pytest
from django.contrib.auth.models import User
from rest_framework.test import APIClient

from accounts.models import UserProfile
from scheduling.models import Doctor, Schedule


def make_user(username, role=UserProfile.ROLE_PATIENT, **extra):
    user = User.objects.create_user(username=username, password="secret-pass-123", **extra)
    UserProfile.objects.create(user=user, role=role)
    return user


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def patient(db):
    return make_user("alice", first_name="Alice", last_name="Jones")


@pytest.fixture
def other_patient(db):
    return make_user("bob", first_name="Bob", last_name="Brown")


@pytest.fixture
def admin_user(db):
    return make_user("root", role=UserProfile.ROLE_ADMIN, is_staff=True)


@pytest.fixture
def doctor(db):
    user = make_user("drsmith", role=UserProfile.ROLE_DOCTOR, first_name="Jane", last_name="Smith")
    return Doctor.objects.create(
        user=user, specialization="Cardiology", qualification="MD", consultation_fee="500.00",
    )


@pytest.fixture
def other_doctor(db):
    user = make_user("drlee", role=UserProfile.ROLE_DOCTOR, first_name="Sam", last_name="Lee")
    return Doctor.objects.create(user=user, specialization="Dermatology", qualification="MBBS")


@pytest.fixture
def monday_morning(doctor):
    """09:00-10:00 in 30 minute slots, every Monday."""
    return Schedule.objects.create(
        doctor=doctor, day_of_week="Monday", start_time="09:00", end_time="10:00", slot_duration=30,
    )


@pytest.fixture
def patient_client(patient):
    return client_for(patient)


@pytest.fixture
def doctor_client(doctor):
    return client_for(doctor.user)


@pytest.fixture
def admin_client(admin_user):
    return client_for(admin_user)
