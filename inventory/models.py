# inventory/models
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from setup.models import TimeStamped


class StockStatus(models.TextChoices):
    IN_STOCK = "inStock", "In stock"
    LOW_STOCK = "lowStock", "Low stock"
    OUT_OF_STOCK = "outOfStock", "Out of stock"


class InventoryUpdateStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


def stock_status_for(quantity, low_alert):
    if quantity == 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= low_alert:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


class InventoryItem(TimeStamped):
    supplier_name = models.CharField(max_length=150, blank=True)
    category = models.CharField(max_length=100)
    sub_category = models.CharField(max_length=100)
    brand_name = models.CharField(max_length=100)
    model_number = models.CharField(max_length=100, blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    gst = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"))
    quantity_in_stock = models.PositiveIntegerField(default=0)
    low_quantity_alert = models.PositiveIntegerField(default=0)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=12, choices=StockStatus.choices, default=StockStatus.OUT_OF_STOCK, editable=False
    )

    class Meta:
        ordering = ["category", "sub_category", "brand_name"]
        indexes = [
            models.Index(fields=["category", "sub_category", "brand_name"]),
        ]

    def __str__(self):
        return f"{self.brand_name} {self.sub_category} ({self.quantity_in_stock})"

    def save(self, *args, **kwargs):
        self.status = stock_status_for(self.quantity_in_stock, self.low_quantity_alert)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "status" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["status"]
        super().save(*args, **kwargs)


class ComplementaryItem(TimeStamped):
    """
    Inventory consumed automatically when a guest of ``room`` checks in,
    e.g. two water bottles per Deluxe room.
    """
    room = models.ForeignKey("rooms.Room", on_delete=models.CASCADE, related_name="complementary_items")
    category = models.CharField(max_length=100)
    sub_category = models.CharField(max_length=100)
    brand_name = models.CharField(max_length=100)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    last_inventory_update = models.DateTimeField(null=True, blank=True)
    inventory_update_status = models.CharField(
        max_length=10, choices=InventoryUpdateStatus.choices, null=True, blank=True
    )

    class Meta:
        ordering = ["room_id", "category"]

    def __str__(self):
        return f"{self.room_id}: {self.quantity} x {self.brand_name} {self.sub_category}"
