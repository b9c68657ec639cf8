# logbook/models
from django.db import models

from common.utils import round_amount
from rooms.models import PropertyKind
from setup.models import TimeStamped


class LogStatus(models.TextChoices):
    ISSUED = "issued", "Issued"
    VERIFIED = "verified", "Verified"


class LogBookEntry(TimeStamped):
    """
    What was handed over to a booking (linen, decor, equipment), the meter
    readings taken, and on verification what came back damaged or missing.

    ``items_issued``        [{category, sub_category, brand, model, quantity, condition, remarks}]
    ``electricity_readings`` [{type, start_reading, end_reading, units_consumed, unit_type,
                              cost_per_unit, total, remarks}]
    ``damage_loss_summary`` items_issued rows plus ``amount``
    """
    booking = models.OneToOneField(
        "booking.Booking", on_delete=models.SET_NULL, null=True, blank=True, related_name="log_book"
    )
    booking_number = models.CharField(max_length=20, unique=True)
    customer_name = models.CharField(max_length=200, db_index=True)
    mobile_no = models.CharField(max_length=20, blank=True, db_index=True)
    property_type = models.CharField(max_length=10, choices=PropertyKind.choices)
    event_type = models.CharField(max_length=100, blank=True)
    date_from = models.DateTimeField()
    date_to = models.DateTimeField()
    check_in_time = models.CharField(max_length=10, blank=True)
    notes = models.TextField(blank=True)
    items_issued = models.JSONField(default=list)
    electricity_readings = models.JSONField(default=list, blank=True)
    total_amount = models.IntegerField(default=0)
    status = models.CharField(max_length=10, choices=LogStatus.choices, default=LogStatus.ISSUED)
    damage_loss_summary = models.JSONField(default=list, blank=True)
    total_recovery_amount = models.IntegerField(default=0)
    grand_total = models.IntegerField(default=0, editable=False)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "log book entries"
        indexes = [
            models.Index(fields=["date_from", "date_to"]),
        ]

    def __str__(self):
        return f"{self.booking_number} ({self.status})"

    def compute_grand_total(self):
        electricity = sum(round_amount(r.get("total")) for r in self.electricity_readings or [])
        return round_amount(self.total_amount) + electricity + round_amount(self.total_recovery_amount)

    def save(self, *args, **kwargs):
        self.grand_total = self.compute_grand_total()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "grand_total" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["grand_total"]
        super().save(*args, **kwargs)
