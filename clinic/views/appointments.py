"""
Appointment booking and status management.

Status changes go through :mod:`clinic.services.appointments` which owns
the transition table and the patient/doctor ownership rules.
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
from clinic.models import Appointment
from clinic.permissions import ensure_party, require_access, scope_to_party
from clinic.serializers.clinical import (
    AppointmentBulkStatusSerializer, AppointmentCreateSerializer, AppointmentListQuerySerializer,
    AppointmentStatusSerializer,
)
from clinic.serializers.output import appointment_dict
from clinic.services import appointments as appointment_service
from clinic.services.audit import log_action
from clinic.services.identity import parse_id, resolve_doctor, resolve_patient


def _base_qs():
    return Appointment.objects.select_related('patient__user', 'doctor__user')


def _get_appointment(raw_id, *, for_update: bool = False) -> Appointment:
    pk = parse_id(raw_id)
    qs = _base_qs()
    if for_update:
        qs = qs.select_for_update()
    appt = qs.filter(id=pk).first() if pk else None
    if appt is None:
        raise NotFound('Appointment not found')
    return appt


@api_view(['GET', 'POST', 'PUT'])
@permission_classes([IsAuthenticated])
def appointments(request):
    if request.method == 'POST':
        return _create(request)
    if request.method == 'PUT':
        return _bulk_status(request)

    user = require_access(request, 'appointments.list')
    q = AppointmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = scope_to_party(user, _base_qs())
    if q.validated_data.get('status'):
        qs = qs.filter(status=q.validated_data['status'])
    qs = qs.order_by('-appointment_date', '-start_time')
    return Response({'ok': True, 'appointments': [appointment_dict(a) for a in qs[:settings.API_LIST_LIMIT]]})


def _create(request):
    user = require_access(request, 'appointments.create')
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data

    patient = resolve_patient(v['patientId'])
    doctor = resolve_doctor(v['doctorId'])
    if user.role == roles.PATIENT and patient.user_id != user.id:
        raise PermissionDenied('Patients can only book appointments for themselves')
    if user.role == roles.DOCTOR and doctor.user_id != user.id:
        raise PermissionDenied('Doctors can only book appointments with themselves')

    appt = Appointment.objects.create(
        patient=patient,
        doctor=doctor,
        appointment_date=v['appointmentDate'],
        start_time=v['startTime'],
        end_time=v['endTime'],
        reason=v['reason'],
        notes=v.get('notes', ''),
    )
    log_action(request, action='CREATE', entity='Appointment', entity_id=appt.id,
               description=f'Appointment booked for {appt.appointment_date} {appt.start_time:%H:%M}')
    return Response({'ok': True, 'appointment': appointment_dict(appt)}, status=status.HTTP_201_CREATED)


def _bulk_status(request):
    user = require_access(request, 'appointments.update')
    s = AppointmentBulkStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    new_status = s.validated_data['status']
    updated = appointment_service.bulk_change_status(user, s.validated_data['appointmentIds'], new_status)
    ids = [str(a.id) for a in updated]
    log_action(request, action=appointment_service.AUDIT_ACTIONS.get(new_status, 'UPDATE'),
               entity='Appointment', description=f'Bulk status change to {new_status} ({len(ids)} appointments)',
               metadata={'appointmentIds': ids, 'status': new_status})
    return Response({'ok': True, 'updated': len(ids), 'appointments': [appointment_dict(a) for a in updated]})


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, appointment_id):
    if request.method == 'PATCH':
        user = require_access(request, 'appointments.update')
        s = AppointmentStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        new_status = s.validated_data['status']
        with transaction.atomic():
            appt = _get_appointment(appointment_id, for_update=True)
            previous = appt.status
            appointment_service.change_status(user, appt, new_status)
        log_action(request, action=appointment_service.AUDIT_ACTIONS.get(new_status, 'UPDATE'),
                   entity='Appointment', entity_id=appt.id,
                   description=f'Appointment status changed from {previous} to {new_status}')
        return Response({'ok': True, 'appointment': appointment_dict(appt)})

    user = require_access(request, 'appointments.read')
    appt = _get_appointment(appointment_id)
    ensure_party(user, appt)
    return Response({'ok': True, 'appointment': appointment_dict(appt)})
