import datetime
import itertools

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from clinic import roles
from clinic.models import Doctor, Patient, User

PASSWORD = 'P@ssw0rd-123'

_seq = itertools.count(1)


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make(role, email=None, **extra):
        n = next(_seq)
        return User.objects.create_user(
            email=email or f'{role}{n}@example.com',
            password=PASSWORD,
            first_name=extra.pop('first_name', role.title()),
            last_name=extra.pop('last_name', f'No{n}'),
            role=role,
            **extra,
        )
    return _make


@pytest.fixture
def make_patient(make_user):
    def _make(**extra):
        user = make_user(roles.PATIENT, **extra)
        return Patient.objects.create(
            user=user,
            date_of_birth=datetime.date(1985, 5, 17),
            gender='female',
            address={'street': '1 Elm St', 'city': 'Springfield', 'state': 'IL', 'zipCode': '62701', 'country': 'US'},
            emergency_contact={'name': 'Kin', 'relationship': 'spouse', 'phone': '555-0101'},
        )
    return _make


@pytest.fixture
def make_doctor(make_user):
    def _make(**extra):
        user = make_user(roles.DOCTOR, **extra)
        return Doctor.objects.create(
            user=user,
            specialization='Cardiology',
            license_number=f'LIC-{user.id.hex[:10]}',
            department='Cardiology',
        )
    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user(roles.ADMIN)


@pytest.fixture
def pharmacist_user(make_user):
    return make_user(roles.PHARMACIST)


@pytest.fixture
def nurse_user(make_user):
    return make_user(roles.NURSE)


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def doctor(make_doctor):
    return make_doctor()


@pytest.fixture
def client_for():
    """APIClient authenticated as the given user (anonymous for None)."""
    def _client(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client
    return _client
