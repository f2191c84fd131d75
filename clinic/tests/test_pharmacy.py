import datetime
from decimal import Decimal

import pytest

from clinic.models import AuditLog, PharmacyInventory

pytestmark = pytest.mark.django_db


def _item(quantity, reorder_level=10, **extra):
    return PharmacyInventory.objects.create(
        medicine_name=extra.pop('medicine_name', 'Ibuprofen'),
        category='Analgesic',
        manufacturer='Acme',
        batch_number=extra.pop('batch_number', 'B-1'),
        expiry_date=datetime.date(2030, 1, 1),
        quantity=quantity,
        unit_price=Decimal('1.25'),
        reorder_level=reorder_level,
        **extra,
    )


@pytest.mark.parametrize('quantity,expected', [(0, True), (5, True), (10, True), (11, False)])
def test_low_stock_boundaries(quantity, expected):
    assert _item(quantity).is_low_stock is expected


def test_low_stock_recomputed_on_partial_save():
    item = _item(3)
    item.quantity = 50
    item.save(update_fields=['quantity'])
    item.refresh_from_db()
    assert item.is_low_stock is False


def test_restock_via_api_clears_low_stock(client_for, pharmacist_user):
    item = _item(4)
    resp = client_for(pharmacist_user).patch(f'/api/pharmacy/inventory/{item.id}', {'quantityDelta': 20},
                                             format='json')
    assert resp.status_code == 200, resp.data
    assert resp.data['item']['quantity'] == 24
    assert resp.data['item']['isLowStock'] is False
    entry = AuditLog.objects.get(entity='PharmacyInventory', entity_id=str(item.id))
    assert entry.metadata['quantityBefore'] == 4


def test_raising_reorder_level_marks_low_stock(client_for, admin_user):
    item = _item(15)
    resp = client_for(admin_user).patch(f'/api/pharmacy/inventory/{item.id}', {'reorderLevel': 20},
                                        format='json')
    assert resp.status_code == 200
    item.refresh_from_db()
    assert item.is_low_stock is True


def test_stock_cannot_go_negative(client_for, pharmacist_user):
    item = _item(2)
    resp = client_for(pharmacist_user).patch(f'/api/pharmacy/inventory/{item.id}', {'quantityDelta': -5},
                                             format='json')
    assert resp.status_code == 400
    item.refresh_from_db()
    assert item.quantity == 2


def test_create_accepts_side_effects_string(client_for, pharmacist_user):
    resp = client_for(pharmacist_user).post('/api/pharmacy/inventory', {
        'medicineName': 'Cetirizine',
        'category': 'Antihistamine',
        'manufacturer': 'Acme',
        'batchNumber': 'C-9',
        'expiryDate': '2030-06-30',
        'quantity': 7,
        'unitPrice': '0.40',
        'sideEffects': 'drowsiness, dry mouth',
    }, format='json')
    assert resp.status_code == 201, resp.data
    assert resp.data['item']['sideEffects'] == ['drowsiness', 'dry mouth']
    assert resp.data['item']['isLowStock'] is True


def test_low_stock_filter_and_role_gate(client_for, pharmacist_user, doctor):
    _item(1, batch_number='LOW')
    _item(99, batch_number='OK')
    resp = client_for(pharmacist_user).get('/api/pharmacy/inventory', {'lowStock': 'true'})
    assert [i['batchNumber'] for i in resp.data['items']] == ['LOW']
    assert client_for(doctor.user).get('/api/pharmacy/inventory').status_code == 403
