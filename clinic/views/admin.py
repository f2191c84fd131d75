"""
Administrative views: audit trail, reports and staff accounts.
"""
from __future__ import annotations

from django.conf import settings
from django.db import IntegrityError, transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic import roles
from clinic.models import AuditLog, Doctor, User
from clinic.permissions import IsAdminRole, require_access
from clinic.serializers.admin import AuditListQuerySerializer, ReportQuerySerializer
from clinic.serializers.auth import StaffCreateSerializer, UserListQuerySerializer
from clinic.serializers.output import audit_dict, doctor_dict, user_dict
from clinic.services.audit import log_action
from clinic.services.patients import email_taken
from clinic.services.reports import REPORTS


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_logs(request):
    require_access(request, 'audit.list')
    q = AuditListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    qs = AuditLog.objects.select_related('user').order_by('-timestamp')
    if v.get('entity'):
        qs = qs.filter(entity=v['entity'])
    if v.get('action'):
        qs = qs.filter(action=v['action'].upper())
    if v.get('userId'):
        qs = qs.filter(user_id=v['userId'])
    return Response({'ok': True, 'logs': [audit_dict(e) for e in qs[:settings.API_LIST_LIMIT]]})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reports(request):
    """``?type=`` selects one of the registered reports."""
    user = require_access(request, 'reports.read')
    q = ReportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    report_type = q.validated_data['type']
    report = REPORTS.get(report_type)
    if report is None:
        raise ValidationError({'type': [f'Unknown report type. Expected one of: {", ".join(sorted(REPORTS))}']})
    if user.role not in report.allowed_roles:
        raise PermissionDenied('Forbidden')
    rows = report.build(user)
    return Response({'ok': True, 'type': report_type, 'count': len(rows), 'rows': rows})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def users(request):
    if request.method == 'POST':
        return _create_staff(request)

    require_access(request, 'users.list')
    q = UserListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = User.objects.select_related('doctor_profile').order_by('-created_at')
    if q.validated_data.get('role'):
        qs = qs.filter(role=q.validated_data['role'])
    rows = []
    for u in qs[:settings.API_LIST_LIMIT]:
        row = user_dict(u)
        if u.role == roles.DOCTOR:
            profile = getattr(u, 'doctor_profile', None)
            row['doctorProfile'] = doctor_dict(profile) if profile else None
        rows.append(row)
    return Response({'ok': True, 'users': rows})


def _create_staff(request):
    """Admin provisioning of doctor, pharmacist and nurse accounts."""
    require_access(request, 'users.create')
    s = StaffCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    if email_taken(v['email']):
        raise ValidationError({'email': ['User with this email already exists']})
    if v['role'] == roles.DOCTOR and Doctor.objects.filter(license_number=v['licenseNumber']).exists():
        raise ValidationError({'licenseNumber': ['A doctor with this license number already exists']})

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=v['email'],
                password=v['password'],
                first_name=v['firstName'],
                last_name=v['lastName'],
                phone=v.get('phone', ''),
                role=v['role'],
            )
            doctor = None
            if v['role'] == roles.DOCTOR:
                doctor = Doctor.objects.create(
                    user=user,
                    specialization=v['specialization'],
                    license_number=v['licenseNumber'],
                    department=v['department'],
                    consultation_fee=v.get('consultationFee') or 0,
                    qualifications=v.get('qualifications', []),
                    experience_years=v.get('experienceYears', 0),
                    available_slots=v.get('availableSlots', []),
                    bio=v.get('bio', ''),
                )
    except IntegrityError:
        raise ValidationError({'email': ['User with this email already exists']})

    log_action(request, action='CREATE', entity='User', entity_id=user.id,
               description=f'Created {user.role} account {user.email}')
    body = user_dict(user)
    if doctor is not None:
        body['doctorProfile'] = doctor_dict(doctor)
    return Response({'ok': True, 'user': body}, status=status.HTTP_201_CREATED)
