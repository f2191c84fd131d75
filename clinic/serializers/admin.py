from rest_framework import serializers


class AuditListQuerySerializer(serializers.Serializer):
    entity = serializers.CharField(required=False)
    action = serializers.CharField(required=False)
    userId = serializers.UUIDField(required=False)


class ReportQuerySerializer(serializers.Serializer):
    type = serializers.CharField()
