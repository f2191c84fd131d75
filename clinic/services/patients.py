import secrets

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from rest_framework.exceptions import ValidationError as DRFValidation

from clinic import roles
from clinic.models import Patient, User
from clinic.serializers.patient import PROFILE_FIELDS, USER_FIELDS


def _profile_values(data: dict) -> dict:
    return {PROFILE_FIELDS[k]: v for k, v in data.items() if k in PROFILE_FIELDS}


def email_taken(email: str) -> bool:
    return User.objects.filter(email__iexact=email).exists()


def create_patient(current_user: User, data: dict):
    """Staff intake: create the patient account and profile together.

    Returns ``(user, profile, initial_password)``; the password is generated
    when the caller did not supply one.
    """
    if email_taken(data['email']):
        raise DRFValidation({'email': ['User with this email already exists']})

    password = data.get('password')
    if password:
        try:
            validate_password(password)
        except ValidationError as e:
            raise DRFValidation({'password': e.messages})
    else:
        password = secrets.token_urlsafe(12)

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=data['email'],
                password=password,
                first_name=data['firstName'],
                last_name=data['lastName'],
                phone=data.get('phone', ''),
                role=roles.PATIENT,
            )
            profile = Patient.objects.create(user=user, created_by=current_user, **_profile_values(data))
    except IntegrityError:
        raise DRFValidation({'email': ['User with this email already exists']})
    return user, profile, password


def create_own_profile(user: User, data: dict) -> Patient:
    """A patient account completing its own medical profile."""
    if Patient.objects.filter(user=user).exists():
        raise DRFValidation({'non_field_errors': ['Patient profile already exists']})
    return Patient.objects.create(user=user, created_by=user, **_profile_values(data))


def update_patient(patient: Patient, data: dict) -> list[str]:
    """Apply a partial update; returns the changed payload keys."""
    changed = []
    user_changed = []
    for key, value in data.items():
        if key in PROFILE_FIELDS:
            setattr(patient, PROFILE_FIELDS[key], value)
            changed.append(key)
        elif key in USER_FIELDS:
            setattr(patient.user, USER_FIELDS[key], value)
            user_changed.append(USER_FIELDS[key])
            changed.append(key)
    with transaction.atomic():
        if user_changed:
            patient.user.save(update_fields=user_changed + ['updated_at'])
        patient.save()
    return changed
