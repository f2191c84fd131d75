"""
Medical record views.

Creating a record also tries to attach it to the same-day appointment it
documents; see :mod:`clinic.services.linking`.
"""
from __future__ import annotations

from django.conf import settings
from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic import roles
from clinic.exceptions import InvalidTransition
from clinic.models import MedicalRecord
from clinic.permissions import ensure_party, require_access, scope_to_party
from clinic.serializers.clinical import MedicalRecordCreateSerializer, MedicalRecordUpdateSerializer
from clinic.serializers.output import record_dict
from clinic.services.audit import log_action
from clinic.services.identity import PATIENT, own_profile, parse_id, resolve_doctor, resolve_patient, resolve_profile
from clinic.services.linking import link_same_day_appointment


def _base_qs():
    return MedicalRecord.objects.select_related('patient__user', 'doctor__user')


def _get_record(raw_id) -> MedicalRecord:
    pk = parse_id(raw_id)
    record = _base_qs().filter(id=pk).first() if pk else None
    if record is None:
        raise NotFound('Medical record not found')
    return record


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def medical_records(request):
    if request.method == 'POST':
        return _create(request)

    user = require_access(request, 'records.list')
    qs = scope_to_party(user, _base_qs())
    raw_patient = request.query_params.get('patientId')
    if raw_patient:
        ref = resolve_profile(PATIENT, raw_patient)
        qs = qs.filter(patient_id=ref.id) if ref else qs.none()
    qs = qs.order_by('-visit_date')
    return Response({'ok': True, 'records': [record_dict(r) for r in qs[:settings.API_LIST_LIMIT]]})


def _create(request):
    user = require_access(request, 'records.create')
    s = MedicalRecordCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data

    patient = resolve_patient(v['patientId'])
    if user.role == roles.DOCTOR:
        if v.get('doctorId'):
            doctor = resolve_doctor(v['doctorId'])
            if doctor.user_id != user.id:
                raise PermissionDenied('Doctors can only create records under their own profile')
        else:
            ref = own_profile(user)
            if ref is None:
                raise PermissionDenied('Doctor profile not found')
            doctor = resolve_doctor(ref.id)
    else:
        doctor = resolve_doctor(v.get('doctorId'))

    with transaction.atomic():
        record = MedicalRecord.objects.create(
            patient=patient,
            doctor=doctor,
            visit_date=v['visitDate'],
            symptoms=v['symptoms'],
            diagnosis=v['diagnosis'],
            treatments=v['treatments'],
            lab_tests=v.get('labTests', []),
            vital_signs=v.get('vitalSigns', {}),
            consultation_fee=v['consultationFee'],
            status=v['status'],
            attachments=v.get('attachments', []),
            notes=v.get('notes', ''),
        )
        linked = link_same_day_appointment(record)

    log_action(request, action='CREATE', entity='MedicalRecord', entity_id=record.id,
               description=f'Medical record created for {patient.user.email}',
               metadata={'appointmentId': str(linked.id) if linked else None})
    return Response({
        'ok': True,
        'record': record_dict(record),
        'linkedAppointmentId': str(linked.id) if linked else None,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def medical_record_detail(request, record_id):
    if request.method == 'PATCH':
        user = require_access(request, 'records.update')
        record = _get_record(record_id)
        ensure_party(user, record, 'You can only update your own medical records')
        s = MedicalRecordUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        v = s.validated_data
        new_status = v.get('status')
        if new_status == MedicalRecord.STATUS_OPEN and record.status == MedicalRecord.STATUS_CLOSED:
            raise InvalidTransition('A closed medical record cannot be reopened')
        for key, field in (('status', 'status'), ('diagnosis', 'diagnosis'),
                           ('treatments', 'treatments'), ('notes', 'notes')):
            if key in v:
                setattr(record, field, v[key])
        record.save()
        log_action(request, action='UPDATE', entity='MedicalRecord', entity_id=record.id,
                   description='Medical record updated', metadata={'fields': sorted(v)})
        return Response({'ok': True, 'record': record_dict(record)})

    user = require_access(request, 'records.read')
    record = _get_record(record_id)
    ensure_party(user, record)
    return Response({'ok': True, 'record': record_dict(record)})
