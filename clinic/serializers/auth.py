import bleach
from rest_framework import serializers

from clinic import roles


def clean_text(v: str) -> str:
    return bleach.clean((v or '').strip(), strip=True)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()

    def validate_email(self, v):
        return v.strip().lower()

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    # self-service signup is patient only
    role = serializers.ChoiceField(choices=[roles.PATIENT], required=False, default=roles.PATIENT)

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


class SlotSerializer(serializers.Serializer):
    day = serializers.ChoiceField(choices=[
        'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday',
    ])
    startTime = serializers.RegexField(r'^([01]\d|2[0-3]):[0-5]\d$')
    endTime = serializers.RegexField(r'^([01]\d|2[0-3]):[0-5]\d$')


class StaffCreateSerializer(RegisterSerializer):
    role = serializers.ChoiceField(choices=sorted(roles.STAFF_ROLES))
    specialization = serializers.CharField(required=False, max_length=128)
    licenseNumber = serializers.CharField(required=False, max_length=64)
    department = serializers.CharField(required=False, max_length=128)
    consultationFee = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    qualifications = serializers.ListField(child=serializers.CharField(), required=False)
    experienceYears = serializers.IntegerField(min_value=0, required=False)
    availableSlots = SlotSerializer(many=True, required=False)
    bio = serializers.CharField(required=False, allow_blank=True, max_length=1000)

    def validate(self, attrs):
        if attrs['role'] == roles.DOCTOR:
            missing = {
                f: ['This field is required for doctors.']
                for f in ('specialization', 'licenseNumber', 'department')
                if not attrs.get(f)
            }
            if missing:
                raise serializers.ValidationError(missing)
        return attrs


class UserListQuerySerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=sorted(roles.ALL_ROLES), required=False)
