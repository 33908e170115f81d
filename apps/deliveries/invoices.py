from django.utils import timezone

from apps.deliveries.pricing import money


def invoice_number(delivery):
    return f"INV-{delivery.delivery_date:%Y%m%d}-{str(delivery.id)[:8].upper()}"


def build_invoice(delivery):
    lines = [
        {
            "description": "Sacks delivered",
            "quantity": delivery.sacks_delivered,
            "unit_price": money(delivery.per_sack_price),
            "amount": money(delivery.sacks_delivered * money(delivery.per_sack_price)),
        }
    ]
    if delivery.driver_fee > 0:
        lines.append(
            {
                "description": "Driver fee",
                "quantity": 1,
                "unit_price": money(delivery.driver_fee),
                "amount": money(delivery.driver_fee),
            }
        )
    if delivery.extra_purchase_cost > 0:
        lines.append(
            {
                "description": delivery.extra_purchase_details or "Extra purchase",
                "quantity": 1,
                "unit_price": money(delivery.extra_purchase_cost),
                "amount": money(delivery.extra_purchase_cost),
            }
        )

    truck = delivery.truck
    return {
        "invoice_number": invoice_number(delivery),
        "issued_on": timezone.localdate(),
        "delivery_id": delivery.id,
        "delivery_date": delivery.delivery_date,
        "status": delivery.status,
        "billed_to": {
            "name": delivery.receiver_name,
            "phone": delivery.receiver_phone,
            "address": delivery.receiver_address,
        },
        "truck": {
            "truck_name": truck.truck_name,
            "driver_name": truck.driver_name,
            "license_number": truck.license_number,
            "contact_number": truck.contact_number,
        },
        "lines": lines,
        "subtotal": money(delivery.total_amount),
        "amount_paid": money(delivery.amount_paid),
        "amount_due": money(delivery.amount_due),
    }
