"""
Role and ownership based access control.

``require_auth`` is the per-request guard used by every view: it returns
the session user or raises ``NotAuthenticated`` / ``PermissionDenied``.
The remaining helpers implement row-level rules (a patient only sees
their own rows, a doctor only rows they are party to).
"""
from __future__ import annotations

from typing import Iterable

from django.db.models import QuerySet
from rest_framework.exceptions import NotAuthenticated, PermissionDenied
from rest_framework.permissions import BasePermission

from clinic import roles
from clinic.models import MedicalRecord, Patient, User
from clinic.services.identity import own_profile


def require_auth(request, allowed_roles: Iterable[str] | None = None) -> User:
    user = getattr(request, 'user', None)
    if not (user and user.is_authenticated):
        raise NotAuthenticated('Unauthorized')
    if allowed_roles is not None and getattr(user, 'role', None) not in allowed_roles:
        raise PermissionDenied('Forbidden')
    return user


def require_access(request, operation: str) -> User:
    """``require_auth`` with the roles listed for ``operation`` in ``roles.ACCESS``."""
    return require_auth(request, roles.ACCESS[operation])


class HasRole(BasePermission):
    """DRF permission gate; use ``HasRole.of('admin', ...)`` in ``permission_classes``."""
    allowed_roles: frozenset[str] = frozenset()

    @classmethod
    def of(cls, *allowed: str) -> type['HasRole']:
        return type('HasRole', (cls,), {'allowed_roles': frozenset(allowed)})

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, 'user', None)
        return bool(user and user.is_authenticated and getattr(user, 'role', None) in self.allowed_roles)


class IsAdminRole(HasRole):
    """Allow access only to users with the admin role."""
    allowed_roles = frozenset({roles.ADMIN})


def scope_to_party(user: User, qs: QuerySet) -> QuerySet:
    """Narrow a patient/doctor linked queryset to the rows ``user`` is party to.

    Patients and doctors are limited to their own profile id; a patient or
    doctor account without a profile sees nothing.  Other roles are not
    narrowed here.
    """
    if user.role not in (roles.PATIENT, roles.DOCTOR):
        return qs
    ref = own_profile(user)
    if ref is None:
        return qs.none()
    if user.role == roles.PATIENT:
        return qs.filter(patient_id=ref.id)
    return qs.filter(doctor_id=ref.id)


def is_party(user: User, obj) -> bool:
    """True when ``obj`` (appointment, record or prescription) involves ``user``'s profile."""
    if user.role == roles.PATIENT:
        return obj.patient.user_id == user.id
    if user.role == roles.DOCTOR:
        return obj.doctor.user_id == user.id
    return True


def ensure_party(user: User, obj, message: str = 'Forbidden') -> None:
    if not is_party(user, obj):
        raise PermissionDenied(message)


def has_treated(doctor_user: User, patient: Patient) -> bool:
    ref = own_profile(doctor_user)
    if ref is None:
        return False
    return MedicalRecord.objects.filter(patient_id=patient.id, doctor_id=ref.id).exists()


def ensure_patient_access(user: User, patient: Patient, verb: str = 'access') -> None:
    """Patients may touch their own profile; doctors only patients they have treated."""
    if user.role == roles.PATIENT:
        if patient.user_id != user.id:
            raise PermissionDenied('Forbidden')
    elif user.role == roles.DOCTOR:
        if not has_treated(user, patient):
            raise PermissionDenied(f'You can only {verb} patients you have treated')
