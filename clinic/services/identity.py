"""
Identity resolution between account ids and role-profile ids.

Appointments, medical records and prescriptions reference ``Patient`` /
``Doctor`` profile ids, while sessions and several client forms carry the
underlying ``User`` id.  Everything that accepts a caller-supplied
patient or doctor id goes through this module so the views never have
to guess which kind of id they were given.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional, Union

from rest_framework.exceptions import ValidationError

from clinic.models import Doctor, Patient, User

PATIENT = 'patient'
DOCTOR = 'doctor'

PROFILE_MODELS = {PATIENT: Patient, DOCTOR: Doctor}


@dataclass(frozen=True)
class ProfileRef:
    """Typed reference to a patient or doctor profile."""
    kind: str
    id: uuid.UUID
    user_id: uuid.UUID

    def as_dict(self) -> dict:
        return {'kind': self.kind, 'id': str(self.id), 'userId': str(self.user_id)}


def parse_id(raw: object) -> Optional[uuid.UUID]:
    """Return ``raw`` as a UUID, or None when it is not a well-formed id."""
    if isinstance(raw, uuid.UUID):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        return None


def ref_for(profile: Union[Patient, Doctor]) -> ProfileRef:
    kind = PATIENT if isinstance(profile, Patient) else DOCTOR
    return ProfileRef(kind=kind, id=profile.id, user_id=profile.user_id)


def _lookup(kind: str, raw_id: object) -> Optional[Union[Patient, Doctor]]:
    model = PROFILE_MODELS[kind]
    parsed = parse_id(raw_id)
    if parsed is None:
        return None
    qs = model.objects.select_related('user')
    return qs.filter(id=parsed).first() or qs.filter(user_id=parsed).first()


def resolve_profile(kind: str, raw_id: object) -> Optional[ProfileRef]:
    """Resolve a profile id or a user id to the ``kind`` profile it names.

    The id is first tried as a profile id, then as the owning account's
    id.  Returns None when neither lookup finds a profile.
    """
    profile = _lookup(kind, raw_id)
    return ref_for(profile) if profile else None


def own_profile(user: Optional[User]) -> Optional[ProfileRef]:
    """The caller's own patient or doctor profile, if they have one."""
    if not user or not getattr(user, 'is_authenticated', False):
        return None
    if user.role not in PROFILE_MODELS:
        return None
    model = PROFILE_MODELS[user.role]
    profile = model.objects.filter(user_id=user.id).only('id', 'user_id').first()
    return ref_for(profile) if profile else None


def _resolve_or_reject(kind: str, raw_id: object, field: str):
    profile = _lookup(kind, raw_id)
    if profile is None:
        raise ValidationError({field: [f'No {kind} profile matches this id.']})
    return profile


def resolve_patient(raw_id: object, field: str = 'patientId') -> Patient:
    return _resolve_or_reject(PATIENT, raw_id, field)


def resolve_doctor(raw_id: object, field: str = 'doctorId') -> Doctor:
    return _resolve_or_reject(DOCTOR, raw_id, field)
