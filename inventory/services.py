# inventory/services.py
import logging

from django.db import transaction
from django.utils import timezone

from common.utils import SideEffectResult
from .models import ComplementaryItem, InventoryItem, InventoryUpdateStatus

log = logging.getLogger(__name__)


def _matching_item(rule):
    return (
        InventoryItem.objects.select_for_update()
        .filter(
            category__iexact=rule.category,
            sub_category__iexact=rule.sub_category,
            brand_name__iexact=rule.brand_name,
        )
        .order_by("-quantity_in_stock")
        .first()
    )


def consume_rule(rule, booking_number=""):
    """
    Deduct one rule's quantity from stock.
    Missing item or short stock skips the rule; the check-in goes ahead regardless.
    """
    name = f"inventory:{rule.category}/{rule.sub_category}/{rule.brand_name}"
    try:
        with transaction.atomic():
            item = _matching_item(rule)
            if item is None:
                log.warning("Booking %s: no inventory item for %s", booking_number, name)
                return SideEffectResult.failed(name, "Inventory item not found")
            if item.quantity_in_stock < rule.quantity:
                log.warning(
                    "Booking %s: insufficient stock for %s (have %s, need %s)",
                    booking_number, name, item.quantity_in_stock, rule.quantity,
                )
                return SideEffectResult.failed(
                    name, "Insufficient stock", available=item.quantity_in_stock, required=rule.quantity
                )

            item.quantity_in_stock -= rule.quantity
            item.save(update_fields=["quantity_in_stock", "updated_at"])

            rule.inventory_update_status = InventoryUpdateStatus.COMPLETED
            rule.last_inventory_update = timezone.now()
            rule.save(update_fields=["inventory_update_status", "last_inventory_update", "updated_at"])
    except Exception as exc:
        log.exception("Booking %s: consuming %s failed", booking_number, name)
        ComplementaryItem.objects.filter(pk=rule.pk).update(
            inventory_update_status=InventoryUpdateStatus.FAILED,
            last_inventory_update=timezone.now(),
        )
        return SideEffectResult.failed(name, exc)

    return SideEffectResult(name, detail={"item_id": item.pk, "remaining": item.quantity_in_stock})


def consume_for_checkin(booking):
    """Run every complementary rule of every booked room category once per room line."""
    results = []
    for line in booking.rooms or []:
        room_id = line.get("room_id")
        if not room_id:
            continue
        for rule in ComplementaryItem.objects.filter(room_id=room_id):
            results.append(consume_rule(rule, booking.booking_number))
    return results
