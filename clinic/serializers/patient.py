from rest_framework import serializers

from clinic.models import Patient
from clinic.serializers.auth import clean_text


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField()
    city = serializers.CharField()
    state = serializers.CharField()
    zipCode = serializers.CharField()
    country = serializers.CharField()


class EmergencyContactSerializer(serializers.Serializer):
    name = serializers.CharField()
    relationship = serializers.CharField()
    phone = serializers.CharField()


class InsuranceSerializer(serializers.Serializer):
    provider = serializers.CharField(required=False, allow_blank=True)
    policyNumber = serializers.CharField(required=False, allow_blank=True)
    expiryDate = serializers.DateField(required=False, allow_null=True)


class PatientProfileSerializer(serializers.Serializer):
    """Medical/demographic part of a patient profile."""
    dateOfBirth = serializers.DateField()
    gender = serializers.ChoiceField(choices=[c for c, _ in Patient.GENDER_CHOICES])
    bloodGroup = serializers.ChoiceField(choices=[c for c, _ in Patient.BLOOD_GROUP_CHOICES],
                                         required=False, allow_blank=True)
    address = AddressSerializer()
    emergencyContact = EmergencyContactSerializer()
    medicalHistory = serializers.ListField(child=serializers.CharField(), required=False)
    allergies = serializers.ListField(child=serializers.CharField(), required=False)
    chronicConditions = serializers.ListField(child=serializers.CharField(), required=False)
    currentMedications = serializers.ListField(child=serializers.CharField(), required=False)
    insuranceDetails = InsuranceSerializer(required=False, allow_null=True)


class PatientCreateSerializer(PatientProfileSerializer):
    """Staff intake: creates the account and the profile together."""
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    password = serializers.CharField(required=False, allow_blank=True, write_only=True, min_length=6)

    def validate_email(self, v):
        return v.strip().lower()

    def validate_firstName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('First name is required')
        return v

    def validate_lastName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Last name is required')
        return v


class PatientUpdateSerializer(PatientProfileSerializer):
    firstName = serializers.CharField(max_length=150, required=False)
    lastName = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)

    def validate_firstName(self, v):
        return clean_text(v)

    def validate_lastName(self, v):
        return clean_text(v)


# camelCase payload key -> Patient model field
PROFILE_FIELDS = {
    'dateOfBirth': 'date_of_birth',
    'gender': 'gender',
    'bloodGroup': 'blood_group',
    'address': 'address',
    'emergencyContact': 'emergency_contact',
    'medicalHistory': 'medical_history',
    'allergies': 'allergies',
    'chronicConditions': 'chronic_conditions',
    'currentMedications': 'current_medications',
    'insuranceDetails': 'insurance_details',
}

USER_FIELDS = {'firstName': 'first_name', 'lastName': 'last_name', 'phone': 'phone'}
