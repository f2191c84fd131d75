from decimal import Decimal

from rest_framework import serializers

from clinic.models import Billing


class InvoiceItemSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    unitPrice = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class InvoiceCreateSerializer(serializers.Serializer):
    patientId = serializers.CharField()
    appointmentId = serializers.UUIDField(required=False, allow_null=True)
    medicalRecordId = serializers.UUIDField(required=False, allow_null=True)
    prescriptionId = serializers.UUIDField(required=False, allow_null=True)
    items = InvoiceItemSerializer(many=True, allow_empty=False)
    tax = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)
    dueDate = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True)


class BillUpdateSerializer(serializers.Serializer):
    """Either record a payment or cancel the invoice."""
    action = serializers.ChoiceField(choices=['payment', 'cancel'])
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'), required=False)
    paymentMethod = serializers.ChoiceField(choices=[c for c, _ in Billing.PAYMENT_METHOD_CHOICES], required=False)
    paymentDate = serializers.DateTimeField(required=False)

    def validate(self, attrs):
        if attrs['action'] == 'payment' and attrs.get('amount') is None:
            raise serializers.ValidationError({'amount': ['This field is required for payments.']})
        return attrs


class BillingListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Billing.STATUS_CHOICES], required=False)
    patientId = serializers.CharField(required=False)
