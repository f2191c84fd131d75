"""
Prescription views.

Doctors (and admins) issue prescriptions against an existing medical
record; pharmacists dispense them.  Status changes are delegated to
:mod:`clinic.services.prescriptions`.
"""
from __future__ import annotations

from django.conf import settings
from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic import roles
from clinic.models import MedicalRecord, Prescription, User
from clinic.permissions import ensure_party, require_access, scope_to_party
from clinic.serializers.clinical import PrescriptionCreateSerializer, PrescriptionUpdateSerializer
from clinic.serializers.output import prescription_dict
from clinic.services import prescriptions as prescription_service
from clinic.services.audit import log_action
from clinic.services.identity import own_profile, parse_id, resolve_doctor, resolve_patient


def _base_qs():
    return Prescription.objects.select_related('patient__user', 'doctor__user', 'dispensed_by')


def _get_prescription(raw_id, *, for_update: bool = False) -> Prescription:
    pk = parse_id(raw_id)
    qs = _base_qs()
    if for_update:
        qs = qs.select_for_update(of=('self',))
    rx = qs.filter(id=pk).first() if pk else None
    if rx is None:
        raise NotFound('Prescription not found')
    return rx


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def prescriptions(request):
    if request.method == 'POST':
        return _create(request)

    user = require_access(request, 'prescriptions.list')
    qs = scope_to_party(user, _base_qs())
    wanted = request.query_params.get('status')
    if user.role == roles.PHARMACIST and not wanted:
        wanted = Prescription.STATUS_PENDING
    if wanted:
        if wanted not in dict(Prescription.STATUS_CHOICES):
            raise ValidationError({'status': [f'"{wanted}" is not a valid choice.']})
        qs = qs.filter(status=wanted)
    qs = qs.order_by('-issued_date')
    return Response({'ok': True, 'prescriptions': [prescription_dict(p) for p in qs[:settings.API_LIST_LIMIT]]})


def _create(request):
    user = require_access(request, 'prescriptions.create')
    s = PrescriptionCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data

    patient = resolve_patient(v['patientId'])
    if user.role == roles.DOCTOR:
        ref = own_profile(user)
        if ref is None:
            raise PermissionDenied('Doctor profile not found')
        doctor = resolve_doctor(v.get('doctorId') or ref.id)
        if doctor.id != ref.id:
            raise PermissionDenied('Doctors can only prescribe under their own profile')
    else:
        doctor = resolve_doctor(v.get('doctorId'))

    record = MedicalRecord.objects.filter(id=v['medicalRecordId']).first()
    if record is None:
        raise ValidationError({'medicalRecordId': ['Medical record not found.']})
    if record.patient_id != patient.id:
        raise ValidationError({'medicalRecordId': ['Medical record belongs to another patient.']})
    if user.role == roles.DOCTOR and record.doctor_id != doctor.id:
        raise PermissionDenied('You can only prescribe against your own medical records')

    with transaction.atomic():
        rx = Prescription.objects.create(
            patient=patient,
            doctor=doctor,
            medical_record=record,
            medications=v['medications'],
            notes=v.get('notes', ''),
        )
        record.prescription = rx
        record.save(update_fields=['prescription', 'updated_at'])

    log_action(request, action='CREATE', entity='Prescription', entity_id=rx.id,
               description=f'Prescription issued for {patient.user.email}',
               metadata={'medicalRecordId': str(record.id), 'medications': len(rx.medications)})
    return Response({'ok': True, 'prescription': prescription_dict(rx)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def prescription_detail(request, prescription_id):
    if request.method == 'PATCH':
        user = require_access(request, 'prescriptions.update')
        s = PrescriptionUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        v = s.validated_data

        dispensed_by = None
        if v.get('dispensedBy'):
            dispensed_by = User.objects.filter(
                id=v['dispensedBy'], role__in=(roles.PHARMACIST, roles.ADMIN),
            ).first()
            if dispensed_by is None:
                raise ValidationError({'dispensedBy': ['No pharmacist or admin matches this id.']})

        with transaction.atomic():
            rx = _get_prescription(prescription_id, for_update=True)
            prescription_service.change_status(
                user, rx, v['status'], dispensed_date=v.get('dispensedDate'), dispensed_by=dispensed_by,
            )
        log_action(request, action=prescription_service.AUDIT_ACTIONS.get(v['status'], 'UPDATE'),
                   entity='Prescription', entity_id=rx.id,
                   description=f'Prescription marked {rx.status}')
        return Response({'ok': True, 'prescription': prescription_dict(rx)})

    user = require_access(request, 'prescriptions.read')
    rx = _get_prescription(prescription_id)
    ensure_party(user, rx, 'You can only view your own prescriptions')
    return Response({'ok': True, 'prescription': prescription_dict(rx)})
