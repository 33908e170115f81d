from decimal import Decimal

from django.db import models

CENT = Decimal("0.01")
# largest value a max_digits=14, decimal_places=2 column holds
MAX_AMOUNT = Decimal("999999999999.99")


class DeliveryStatus(models.TextChoices):
    PAID = "paid", "Paid"
    PARTIAL = "partial", "Partial"
    DUE = "due", "Due"


def money(value):
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT)


def compute_total_amount(*, sacks_delivered, per_sack_price, driver_fee=0, extra_purchase_cost=0):
    """total_amount = sacks_delivered * per_sack_price + driver_fee + extra_purchase_cost"""
    sacks_total = Decimal(sacks_delivered or 0) * money(per_sack_price)
    return (sacks_total + money(driver_fee) + money(extra_purchase_cost)).quantize(CENT)


def exceeds_max_amount(value):
    return money(value) > MAX_AMOUNT


def derive_status(amount_paid, total_amount):
    amount_paid = money(amount_paid)
    total_amount = money(total_amount)
    if amount_paid >= total_amount:
        return DeliveryStatus.PAID
    if amount_paid > 0:
        return DeliveryStatus.PARTIAL
    return DeliveryStatus.DUE
