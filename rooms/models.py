# rooms/models
from django.core.validators import MinValueValidator
from django.db import models

from setup.models import TimeStamped


class PropertyKind(models.TextChoices):
    ROOM = "room", "Room"
    HALL = "hall", "Hall"


class OccupancyStatus(models.TextChoices):
    BOOKED = "booked", "Booked"
    CHECKIN = "checkin", "Checked in"
    CHECKOUT = "checkout", "Checked out"
    CANCELLED = "cancelled", "Cancelled"
    MAINTENANCE = "maintenance", "Maintenance"


class Room(TimeStamped):
    """
    A sellable category (e.g. "Deluxe", "Grand Hall").
    The physical numbers live in RoomUnit.
    """
    type = models.CharField(max_length=10, choices=PropertyKind.choices, default=PropertyKind.ROOM)
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    price = models.PositiveIntegerField(default=0)
    igst = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    additional_guest_costs = models.PositiveIntegerField(default=0)
    size = models.CharField(max_length=50, blank=True)
    capacity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    bed_model = models.CharField(max_length=50, blank=True)
    max_guests = models.PositiveIntegerField(default=1)
    amenities = models.JSONField(default=list, blank=True)
    complementary_foods = models.JSONField(default=list, blank=True)
    main_image = models.FileField(upload_to="rooms/images", null=True, blank=True)
    thumbnail_images = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["type", "name"]

    def __str__(self):
        return f"{self.name} ({self.type})"


class RoomUnit(TimeStamped):
    """
    A physical room or hall number inside a category.
    ``booked_dates`` is a denormalised copy of current occupancy:
    [{booking_number, check_in, check_out, status, guests}]
    """
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name="units")
    number = models.CharField(max_length=20)
    booked_dates = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["room_id", "number"]
        constraints = [
            models.UniqueConstraint(fields=["room", "number"], name="uniq_room_unit_number"),
        ]

    def __str__(self):
        return f"{self.room.name} #{self.number}"


class RoomAvailability(TimeStamped):
    """
    Booking history of a single unit, one row per (room, room_number).
    Each history entry keeps a per status timestamp map.
    """
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name="availability")
    room_number = models.CharField(max_length=20)
    room_type = models.CharField(max_length=150, blank=True)
    booking_history = models.JSONField(default=list, blank=True)

    class Meta:
        verbose_name_plural = "room availability"
        constraints = [
            models.UniqueConstraint(fields=["room", "room_number"], name="uniq_room_availability"),
        ]

    def __str__(self):
        return f"{self.room_type or self.room_id} #{self.room_number}"

    def find_entry(self, booking_number):
        for entry in self.booking_history:
            if entry.get("booking_number") == booking_number:
                return entry
        return None
