from rest_framework import serializers

from clinic.models import Appointment, MedicalRecord, Prescription

# visit dates may be sent as a plain day or a full timestamp
VISIT_DATE_FORMATS = ['iso-8601', '%Y-%m-%d']


class AppointmentCreateSerializer(serializers.Serializer):
    patientId = serializers.CharField()
    doctorId = serializers.CharField()
    appointmentDate = serializers.DateField()
    startTime = serializers.TimeField()
    endTime = serializers.TimeField()
    reason = serializers.CharField(max_length=500)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_reason(self, v):
        v = v.strip()
        if not v:
            raise serializers.ValidationError('Reason is required')
        return v

    def validate(self, attrs):
        if attrs['endTime'] <= attrs['startTime']:
            raise serializers.ValidationError({'endTime': ['End time must be after start time.']})
        return attrs


class AppointmentListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Appointment.STATUS_CHOICES], required=False)


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Appointment.STATUS_CHOICES])


class AppointmentBulkStatusSerializer(AppointmentStatusSerializer):
    appointmentIds = serializers.ListField(child=serializers.UUIDField(), min_length=1, max_length=100)


class LabTestSerializer(serializers.Serializer):
    testName = serializers.CharField()
    result = serializers.CharField()
    date = serializers.DateField()


class VitalSignsSerializer(serializers.Serializer):
    bloodPressure = serializers.CharField(required=False, allow_blank=True)
    heartRate = serializers.FloatField(required=False, min_value=0)
    temperature = serializers.FloatField(required=False)
    weight = serializers.FloatField(required=False, min_value=0)
    height = serializers.FloatField(required=False, min_value=0)


class MedicalRecordCreateSerializer(serializers.Serializer):
    patientId = serializers.CharField()
    # doctors may omit it; their own profile is used
    doctorId = serializers.CharField(required=False)
    visitDate = serializers.DateTimeField(input_formats=VISIT_DATE_FORMATS)
    symptoms = serializers.ListField(child=serializers.CharField())
    diagnosis = serializers.CharField()
    treatments = serializers.ListField(child=serializers.CharField())
    labTests = LabTestSerializer(many=True, required=False)
    vitalSigns = VitalSignsSerializer(required=False)
    consultationFee = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    status = serializers.ChoiceField(choices=[c for c, _ in MedicalRecord.STATUS_CHOICES],
                                     default=MedicalRecord.STATUS_OPEN)
    attachments = serializers.ListField(child=serializers.CharField(), required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_diagnosis(self, v):
        v = v.strip()
        if not v:
            raise serializers.ValidationError('Diagnosis is required')
        return v


class MedicalRecordUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in MedicalRecord.STATUS_CHOICES], required=False)
    diagnosis = serializers.CharField(required=False)
    treatments = serializers.ListField(child=serializers.CharField(), required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class MedicationSerializer(serializers.Serializer):
    medicineName = serializers.CharField()
    dosage = serializers.CharField()
    frequency = serializers.CharField()
    duration = serializers.CharField()
    instructions = serializers.CharField(required=False, allow_blank=True)


class PrescriptionCreateSerializer(serializers.Serializer):
    patientId = serializers.CharField()
    doctorId = serializers.CharField(required=False)
    medicalRecordId = serializers.UUIDField()
    medications = MedicationSerializer(many=True, allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class PrescriptionUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Prescription.STATUS_CHOICES])
    dispensedDate = serializers.DateTimeField(required=False, input_formats=VISIT_DATE_FORMATS)
    dispensedBy = serializers.UUIDField(required=False)
