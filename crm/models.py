# crm/models
from django.db import models

from rooms.models import PropertyKind
from setup.models import TimeStamped


class Enquiry(TimeStamped):
    """
    A prospective guest / event enquiry. Once staff turn it into a booking
    it is flagged ``moved_to_booking`` and drops out of the open list.
    """
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField()
    mobile_no = models.CharField(max_length=20)
    property_type = models.CharField(max_length=10, choices=PropertyKind.choices)
    event_type = models.CharField(max_length=100)
    event_start_date = models.DateTimeField()
    event_end_date = models.DateTimeField()
    notes = models.TextField(blank=True)
    moved_to_booking = models.BooleanField(default=False, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "enquiries"

    def __str__(self):
        return f"{self.first_name} {self.last_name} ({self.event_type})"
