from rest_framework import serializers

from clinic.serializers.auth import clean_text


class SideEffectsField(serializers.Field):
    """Accept either a list of strings or one comma separated string."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            return [s.strip() for s in data.split(',') if s.strip()]
        if isinstance(data, list) and all(isinstance(s, str) for s in data):
            return [s.strip() for s in data if s.strip()]
        raise serializers.ValidationError('Expected a list of strings or a comma separated string.')

    def to_representation(self, value):
        return list(value or [])


class InventoryCreateSerializer(serializers.Serializer):
    medicineName = serializers.CharField(max_length=255)
    genericName = serializers.CharField(max_length=255, required=False, allow_blank=True)
    category = serializers.CharField(max_length=128)
    manufacturer = serializers.CharField(max_length=255)
    batchNumber = serializers.CharField(max_length=64)
    expiryDate = serializers.DateField()
    quantity = serializers.IntegerField(min_value=0)
    unitPrice = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    reorderLevel = serializers.IntegerField(min_value=0, required=False, default=10)
    description = serializers.CharField(required=False, allow_blank=True)
    sideEffects = SideEffectsField(required=False)

    def validate_medicineName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Medicine name is required')
        return v


class InventoryUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0, required=False)
    # relative adjustment, e.g. +50 on restock
    quantityDelta = serializers.IntegerField(required=False)
    unitPrice = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    reorderLevel = serializers.IntegerField(min_value=0, required=False)
    expiryDate = serializers.DateField(required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    sideEffects = SideEffectsField(required=False)

    def validate(self, attrs):
        if 'quantity' in attrs and 'quantityDelta' in attrs:
            raise serializers.ValidationError({'quantityDelta': ['Send either quantity or quantityDelta.']})
        if not attrs:
            raise serializers.ValidationError('Nothing to update.')
        return attrs


class InventoryListQuerySerializer(serializers.Serializer):
    lowStock = serializers.BooleanField(required=False, default=False)
    search = serializers.CharField(required=False, allow_blank=True)


# camelCase payload key -> PharmacyInventory model field
INVENTORY_FIELDS = {
    'medicineName': 'medicine_name',
    'genericName': 'generic_name',
    'category': 'category',
    'manufacturer': 'manufacturer',
    'batchNumber': 'batch_number',
    'expiryDate': 'expiry_date',
    'quantity': 'quantity',
    'unitPrice': 'unit_price',
    'reorderLevel': 'reorder_level',
    'description': 'description',
    'sideEffects': 'side_effects',
}
