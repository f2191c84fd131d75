from django.conf import settings
from django.db import transaction
from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic import roles
from clinic.models import PharmacyInventory
from clinic.permissions import HasRole, require_access
from clinic.serializers.output import inventory_dict
from clinic.serializers.pharmacy import (
    INVENTORY_FIELDS, InventoryCreateSerializer, InventoryListQuerySerializer, InventoryUpdateSerializer,
)
from clinic.services.audit import log_action
from clinic.services.identity import parse_id

PharmacyStaff = HasRole.of(roles.ADMIN, roles.PHARMACIST)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, PharmacyStaff])
def inventory(request):
    if request.method == 'POST':
        user = require_access(request, 'inventory.create')
        s = InventoryCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        values = {INVENTORY_FIELDS[k]: v for k, v in s.validated_data.items()}
        item = PharmacyInventory.objects.create(created_by=user, **values)
        log_action(request, action='CREATE', entity='PharmacyInventory', entity_id=item.id,
                   description=f'Added {item.medicine_name} batch {item.batch_number} ({item.quantity} units)')
        return Response({'ok': True, 'item': inventory_dict(item)}, status=status.HTTP_201_CREATED)

    require_access(request, 'inventory.list')
    q = InventoryListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = PharmacyInventory.objects.order_by('medicine_name', 'expiry_date')
    if q.validated_data.get('lowStock'):
        qs = qs.filter(is_low_stock=True)
    search = (q.validated_data.get('search') or '').strip()
    if search:
        qs = qs.filter(Q(medicine_name__icontains=search) | Q(generic_name__icontains=search))
    return Response({'ok': True, 'items': [inventory_dict(i) for i in qs[:settings.API_LIST_LIMIT]]})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, PharmacyStaff])
def inventory_detail(request, item_id):
    """Restock or adjust one stock row; low-stock is recomputed on save."""
    require_access(request, 'inventory.update')
    s = InventoryUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = dict(s.validated_data)

    pk = parse_id(item_id)
    with transaction.atomic():
        item = PharmacyInventory.objects.select_for_update().filter(id=pk).first() if pk else None
        if item is None:
            raise NotFound('Inventory item not found')
        before = item.quantity
        delta = v.pop('quantityDelta', None)
        if delta is not None:
            if item.quantity + delta < 0:
                raise ValidationError({'quantityDelta': ['Stock cannot go below zero.']})
            v['quantity'] = item.quantity + delta
        fields = [INVENTORY_FIELDS[k] for k in v]
        for k, value in v.items():
            setattr(item, INVENTORY_FIELDS[k], value)
        item.save(update_fields=fields + ['updated_at'])

    log_action(request, action='UPDATE', entity='PharmacyInventory', entity_id=item.id,
               description=f'Updated {item.medicine_name} batch {item.batch_number}',
               metadata={'fields': sorted(v), 'quantityBefore': before, 'quantityAfter': item.quantity})
    return Response({'ok': True, 'item': inventory_dict(item)})
