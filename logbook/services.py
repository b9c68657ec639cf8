# logbook/services.py
import logging

from django.db import transaction

from common.exceptions import Conflict
from common.utils import SideEffectResult
from inventory.models import InventoryItem
from .models import LogBookEntry, LogStatus

log = logging.getLogger(__name__)


def write_off_damaged_item(row, booking_number=""):
    """
    Take a damaged / lost item out of stock, never below zero.
    An item with no matching stock line is reported, not fatal.
    """
    name = f"inventory:{row['category']}/{row['sub_category']}/{row['brand']}"
    with transaction.atomic():
        qs = InventoryItem.objects.select_for_update().filter(
            category__iexact=row["category"],
            sub_category__iexact=row["sub_category"],
            brand_name__iexact=row["brand"],
        )
        item = qs.filter(model_number__iexact=row["model"]).first() or qs.first()
        if item is None:
            log.warning("Log %s: no inventory item for %s", booking_number, name)
            return SideEffectResult.failed(name, "Inventory item not found")
        item.quantity_in_stock = max(0, item.quantity_in_stock - row["quantity"])
        item.save(update_fields=["quantity_in_stock", "updated_at"])
    return SideEffectResult(name, detail={"item_id": item.pk, "remaining": item.quantity_in_stock})


def verify_log_entry(pk, data):
    """
    Record what came back damaged or missing, write it off the stock and
    lock the entry. ``data`` is LogVerificationSerializer.validated_data.
    """
    with transaction.atomic():
        entry = LogBookEntry.objects.select_for_update().get(pk=pk)
        if entry.status == LogStatus.VERIFIED:
            raise Conflict("Log entry is already verified")

        entry.damage_loss_summary = data["damage_loss_summary"]
        entry.total_recovery_amount = data["total_recovery_amount"]
        if "electricity_readings" in data:
            entry.electricity_readings = data["electricity_readings"]
        entry.status = LogStatus.VERIFIED
        entry.save()

        results = [write_off_damaged_item(row, entry.booking_number) for row in entry.damage_loss_summary]

    log.info(
        "Log %s verified: %s damaged lines, grand total %s",
        entry.booking_number, len(results), entry.grand_total,
    )
    return entry, results
