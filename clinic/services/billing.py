import secrets
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from django.utils import timezone

from clinic.exceptions import InvalidTransition
from clinic.models import Billing

CENT = Decimal('0.01')
ZERO = Decimal('0')


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def price_items(items: Iterable[dict]) -> list[dict]:
    """Return invoice lines with ``totalPrice`` = quantity * unitPrice."""
    priced = []
    for item in items:
        unit = _money(item['unitPrice'])
        qty = int(item['quantity'])
        priced.append({
            'description': item['description'],
            'quantity': qty,
            'unitPrice': str(unit),
            'totalPrice': str(_money(unit * qty)),
        })
    return priced


def derive_status(total: Decimal, paid: Decimal) -> str:
    if paid <= ZERO:
        return Billing.STATUS_UNPAID if total > ZERO else Billing.STATUS_PAID
    if paid >= total:
        return Billing.STATUS_PAID
    return Billing.STATUS_PARTIALLY_PAID


def recalculate(bill: Billing) -> Billing:
    """Recompute subtotal, total, balance and status from the items and amounts."""
    bill.items = price_items(bill.items)
    bill.subtotal = sum((Decimal(i['totalPrice']) for i in bill.items), ZERO)
    bill.tax = _money(bill.tax or 0)
    bill.discount = _money(bill.discount or 0)
    bill.total_amount = max(_money(bill.subtotal + bill.tax - bill.discount), ZERO)
    bill.paid_amount = _money(bill.paid_amount or 0)
    bill.balance_amount = max(bill.total_amount - bill.paid_amount, ZERO)
    if bill.status != Billing.STATUS_CANCELED:
        bill.status = derive_status(bill.total_amount, bill.paid_amount)
    return bill


def next_invoice_number(today=None) -> str:
    today = today or timezone.localdate()
    while True:
        number = f"INV-{today:%Y%m%d}-{secrets.token_hex(3).upper()}"
        if not Billing.objects.filter(invoice_number=number).exists():
            return number


def apply_payment(bill: Billing, amount, method: Optional[str] = None, paid_at=None) -> Billing:
    if bill.status in (Billing.STATUS_CANCELED, Billing.STATUS_PAID):
        raise InvalidTransition(f'Cannot record a payment on a {bill.status} invoice')
    bill.paid_amount = _money(bill.paid_amount) + _money(amount)
    if method:
        bill.payment_method = method
    bill.payment_date = paid_at or timezone.now()
    recalculate(bill)
    bill.save()
    return bill


def cancel(bill: Billing) -> Billing:
    if bill.status == Billing.STATUS_CANCELED:
        raise InvalidTransition('Invoice is already canceled')
    if bill.paid_amount > ZERO:
        raise InvalidTransition('Cannot cancel an invoice with recorded payments')
    bill.status = Billing.STATUS_CANCELED
    bill.save(update_fields=['status', 'updated_at'])
    return bill
