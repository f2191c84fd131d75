"""
Patient directory and profile views.

Staff (admin, nurse) register patients together with their account; a
patient account may instead complete its own profile.  Detail routes
accept either the profile id or the owning user id.
"""
from __future__ import annotations

from django.conf import settings
from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic import roles
from clinic.models import Patient
from clinic.permissions import ensure_patient_access, require_access
from clinic.serializers.output import patient_dict
from clinic.serializers.patient import (
    PatientCreateSerializer, PatientProfileSerializer, PatientUpdateSerializer,
)
from clinic.services import patients as patient_service
from clinic.services.audit import log_action
from clinic.services.identity import PATIENT, resolve_profile


def _get_patient(raw_id) -> Patient:
    ref = resolve_profile(PATIENT, raw_id)
    if ref is None:
        raise NotFound('Patient not found')
    return Patient.objects.select_related('user').get(id=ref.id)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patients(request):
    if request.method == 'POST':
        return _create_patient(request)

    require_access(request, 'patients.list')
    qs = Patient.objects.select_related('user').order_by('-created_at')
    search = (request.query_params.get('search') or '').strip()
    if search:
        qs = qs.filter(
            Q(user__first_name__icontains=search)
            | Q(user__last_name__icontains=search)
            | Q(user__email__icontains=search)
        )
    rows = [patient_dict(p) for p in qs[:settings.API_LIST_LIMIT]]
    return Response({'ok': True, 'patients': rows})


def _create_patient(request):
    user = require_access(request, 'patients.create')
    if user.role == roles.PATIENT:
        s = PatientProfileSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        profile = patient_service.create_own_profile(user, s.validated_data)
        log_action(request, action='CREATE', entity='Patient', entity_id=profile.id,
                   description=f'Patient profile completed by {user.email}')
        return Response({'ok': True, 'patient': patient_dict(profile)}, status=status.HTTP_201_CREATED)

    s = PatientCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    new_user, profile, initial_password = patient_service.create_patient(user, s.validated_data)
    log_action(request, action='CREATE', entity='Patient', entity_id=profile.id,
               description=f'Registered patient {new_user.get_full_name()} ({new_user.email})')
    body = {'ok': True, 'patient': patient_dict(profile)}
    if not s.validated_data.get('password'):
        body['initialPassword'] = initial_password
    return Response(body, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def patient_detail(request, patient_id):
    if request.method == 'PUT':
        user = require_access(request, 'patients.update')
        patient = _get_patient(patient_id)
        ensure_patient_access(user, patient, verb='update')
        s = PatientUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        changed = patient_service.update_patient(patient, s.validated_data)
        log_action(request, action='UPDATE', entity='Patient', entity_id=patient.id,
                   description=f'Updated patient {patient.user.email}',
                   metadata={'fields': changed})
        return Response({'ok': True, 'patient': patient_dict(patient)})

    user = require_access(request, 'patients.read')
    patient = _get_patient(patient_id)
    ensure_patient_access(user, patient, verb='view')
    log_action(request, action='READ', entity='Patient', entity_id=patient.id,
               description=f'Viewed patient {patient.user.email}')
    return Response({'ok': True, 'patient': patient_dict(patient)})
