import logging

from django.db import transaction
from django.utils import timezone

from apps.audit.models import AuditAction
from apps.audit.services import record_audit
from apps.deliveries.models import Delivery, Payment, Truck
from apps.deliveries.pricing import MAX_AMOUNT, compute_total_amount, derive_status, exceeds_max_amount, money

logger = logging.getLogger(__name__)


def quote_delivery(*, sacks_delivered, per_sack_price, driver_fee=0, extra_purchase_cost=0, amount_paid=0):
    total_amount = compute_total_amount(
        sacks_delivered=sacks_delivered,
        per_sack_price=per_sack_price,
        driver_fee=driver_fee,
        extra_purchase_cost=extra_purchase_cost,
    )
    amount_paid = money(amount_paid)
    return {
        "total_amount": total_amount,
        "amount_paid": amount_paid,
        "amount_due": total_amount - amount_paid,
        "status": derive_status(amount_paid, total_amount),
    }


def create_delivery(*, actor, truck, **fields):
    """Write the truck and its delivery together; a failed delivery insert rolls the truck back."""
    amount_paid = money(fields.pop("amount_paid", 0))
    per_sack_price = money(fields.pop("per_sack_price", 0))
    driver_fee = money(fields.pop("driver_fee", 0))
    extra_purchase_cost = money(fields.pop("extra_purchase_cost", 0))
    delivery_date = fields.pop("delivery_date", None) or timezone.localdate()

    total_amount = compute_total_amount(
        sacks_delivered=fields.get("sacks_delivered", 0),
        per_sack_price=per_sack_price,
        driver_fee=driver_fee,
        extra_purchase_cost=extra_purchase_cost,
    )

    with transaction.atomic():
        truck = Truck.objects.create(**truck)
        delivery = Delivery.objects.create(
            truck=truck,
            per_sack_price=per_sack_price,
            driver_fee=driver_fee,
            extra_purchase_cost=extra_purchase_cost,
            total_amount=total_amount,
            amount_paid=amount_paid,
            delivery_date=delivery_date,
            created_by=actor,
            **fields,
        )
        if amount_paid > 0:
            Payment.objects.create(
                delivery=delivery,
                payment_amount=amount_paid,
                payment_date=delivery_date,
                created_by=actor,
            )
        record_audit(
            actor=actor,
            action=AuditAction.DELIVERY_CREATE,
            entity_type="delivery",
            entity_id=delivery.id,
            payload={
                "truck_id": str(truck.id),
                "total_amount": str(delivery.total_amount),
                "amount_paid": str(delivery.amount_paid),
                "status": delivery.status,
            },
        )

    logger.info(
        "Delivery %s created for %s: total=%s paid=%s status=%s",
        delivery.id,
        delivery.receiver_name,
        delivery.total_amount,
        delivery.amount_paid,
        delivery.status,
    )
    return delivery


def record_payment(*, actor, delivery, payment_amount, payment_date=None):
    payment_amount = money(payment_amount)
    if payment_amount <= 0:
        raise ValueError("payment_amount must be greater than 0")

    with transaction.atomic():
        locked = Delivery.objects.select_for_update().get(pk=delivery.pk)
        if exceeds_max_amount(locked.amount_paid + payment_amount):
            raise ValueError(f"amount_paid would exceed {MAX_AMOUNT} on this delivery")
        locked.amount_paid = locked.amount_paid + payment_amount
        locked.save(update_fields=["amount_paid"])
        payment = Payment.objects.create(
            delivery=locked,
            payment_amount=payment_amount,
            payment_date=payment_date or timezone.localdate(),
            created_by=actor,
        )
        record_audit(
            actor=actor,
            action=AuditAction.PAYMENT_CREATE,
            entity_type="delivery",
            entity_id=locked.id,
            payload={
                "payment_id": str(payment.id),
                "payment_amount": str(payment_amount),
                "amount_paid": str(locked.amount_paid),
                "status": locked.status,
            },
        )

    if locked.amount_paid > locked.total_amount:
        logger.warning(
            "Delivery %s over-paid: paid=%s total=%s", locked.id, locked.amount_paid, locked.total_amount
        )
    else:
        logger.info("Payment of %s recorded on delivery %s (status=%s)", payment_amount, locked.id, locked.status)
    return locked, payment
