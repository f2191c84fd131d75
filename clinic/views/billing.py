from django.conf import settings
from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.models import Appointment, Billing, MedicalRecord, Prescription
from clinic.permissions import IsAdminRole, require_access
from clinic.serializers.billing import BillingListQuerySerializer, BillUpdateSerializer, InvoiceCreateSerializer
from clinic.serializers.output import bill_dict
from clinic.services import billing as billing_service
from clinic.services.audit import log_action
from clinic.services.identity import PATIENT, parse_id, resolve_patient, resolve_profile


def _linked(model, raw_id, field, patient):
    """Optional link to another row of the same patient."""
    if not raw_id:
        return None
    obj = model.objects.filter(id=raw_id).first()
    if obj is None or obj.patient_id != patient.id:
        raise ValidationError({field: ['Does not match a row for this patient.']})
    return obj


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def bills(request):
    if request.method == 'POST':
        return _create(request)

    require_access(request, 'billing.list')
    q = BillingListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = Billing.objects.select_related('patient__user').order_by('-created_at')
    if q.validated_data.get('status'):
        qs = qs.filter(status=q.validated_data['status'])
    if q.validated_data.get('patientId'):
        ref = resolve_profile(PATIENT, q.validated_data['patientId'])
        qs = qs.filter(patient_id=ref.id) if ref else qs.none()
    return Response({'ok': True, 'bills': [bill_dict(b) for b in qs[:settings.API_LIST_LIMIT]]})


def _create(request):
    user = require_access(request, 'billing.create')
    s = InvoiceCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data

    patient = resolve_patient(v['patientId'])
    bill = Billing(
        patient=patient,
        appointment=_linked(Appointment, v.get('appointmentId'), 'appointmentId', patient),
        medical_record=_linked(MedicalRecord, v.get('medicalRecordId'), 'medicalRecordId', patient),
        prescription=_linked(Prescription, v.get('prescriptionId'), 'prescriptionId', patient),
        items=v['items'],
        tax=v['tax'],
        discount=v['discount'],
        due_date=v['dueDate'],
        notes=v.get('notes', ''),
        created_by=user,
    )
    billing_service.recalculate(bill)
    bill.invoice_number = billing_service.next_invoice_number()
    bill.save(force_insert=True)

    log_action(request, action='CREATE', entity='Billing', entity_id=bill.id,
               description=f'Invoice {bill.invoice_number} issued for {bill.total_amount}')
    return Response({'ok': True, 'bill': bill_dict(bill)}, status=status.HTTP_201_CREATED)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def bill_detail(request, bill_id):
    """Record a payment against an invoice, or cancel it."""
    require_access(request, 'billing.update')
    s = BillUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data

    pk = parse_id(bill_id)
    with transaction.atomic():
        bill = Billing.objects.select_for_update(of=('self',)).select_related('patient__user') \
            .filter(id=pk).first() if pk else None
        if bill is None:
            raise NotFound('Invoice not found')
        if v['action'] == 'payment':
            billing_service.apply_payment(bill, v['amount'], v.get('paymentMethod'), v.get('paymentDate'))
        else:
            billing_service.cancel(bill)

    if v['action'] == 'payment':
        log_action(request, action='PAYMENT', entity='Billing', entity_id=bill.id,
                   description=f'Payment of {v["amount"]} on {bill.invoice_number}; balance {bill.balance_amount}',
                   metadata={'amount': str(v['amount']), 'method': v.get('paymentMethod')})
    else:
        log_action(request, action='CANCEL', entity='Billing', entity_id=bill.id,
                   description=f'Invoice {bill.invoice_number} canceled')
    return Response({'ok': True, 'bill': bill_dict(bill)})
