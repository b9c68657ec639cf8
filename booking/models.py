# booking/models
from django.db import models

from finance.models import PaymentMethod, PaymentStatus
from rooms.models import PropertyKind
from setup.models import TimeStamped


class BookingStatus(models.TextChoices):
    BOOKED = "booked", "Booked"
    CHECKIN = "checkin", "Checked in"
    CHECKOUT = "checkout", "Checked out"
    CANCELLED = "cancelled", "Cancelled"


# status -> statuses it may move to
ALLOWED_TRANSITIONS = {
    BookingStatus.BOOKED.value: {
        BookingStatus.CHECKIN.value,
        BookingStatus.CHECKOUT.value,
        BookingStatus.CANCELLED.value,
    },
    BookingStatus.CHECKIN.value: {
        BookingStatus.CHECKOUT.value,
        BookingStatus.CANCELLED.value,
    },
    BookingStatus.CHECKOUT.value: set(),
    BookingStatus.CANCELLED.value: set(),
}


class Gender(models.TextChoices):
    MALE = "male", "Male"
    FEMALE = "female", "Female"
    OTHER = "other", "Other"


class Booking(TimeStamped):
    """
    One guest stay or hall event.

    ``rooms`` holds the booked lines:
      [{room_id, type, number, price, igst, additional_guest_charge, total_amount, main_image}]
    ``total_amount`` holds the rounded money breakdown:
      {room_charge, taxes, additional_guest_charge, services_charge, discount, discount_amount, total}
    """

    # ---------- identity ----------
    booking_number = models.CharField(max_length=20, unique=True, editable=False)
    property_type = models.CharField(max_length=10, choices=PropertyKind.choices, default=PropertyKind.ROOM)
    guest_id = models.CharField(max_length=30, blank=True, db_index=True)

    # ---------- guest ----------
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    mobile_no = models.CharField(max_length=20, blank=True)
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    email = models.EmailField()
    nationality = models.CharField(max_length=60, blank=True)
    verification_type = models.CharField(max_length=60, blank=True)
    verification_id = models.CharField(max_length=60, blank=True)
    address = models.TextField(blank=True)

    # ---------- stay ----------
    check_in_date = models.DateTimeField()
    check_out_date = models.DateTimeField(db_index=True)
    number_of_rooms = models.PositiveIntegerField(default=1)
    number_of_nights = models.PositiveIntegerField(default=1)
    guests = models.JSONField(default=dict, blank=True)
    rooms = models.JSONField(default=list)

    # ---------- lifecycle ----------
    status = models.CharField(
        max_length=10, choices=BookingStatus.choices, default=BookingStatus.BOOKED, db_index=True
    )
    status_timestamps = models.JSONField(default=dict, blank=True)

    # ---------- hall ----------
    groom_details = models.JSONField(null=True, blank=True)
    bride_details = models.JSONField(null=True, blank=True)
    event_type = models.CharField(max_length=100, blank=True)
    time_slot = models.JSONField(null=True, blank=True)
    selected_services = models.JSONField(default=list, blank=True)

    # ---------- money ----------
    total_amount = models.JSONField(default=dict)
    payment_method = models.CharField(max_length=12, choices=PaymentMethod.choices)
    payment_status = models.CharField(max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    invoice_number = models.CharField(max_length=40, unique=True, null=True, blank=True)

    # ---------- gateway references ----------
    razorpay_order_id = models.CharField(max_length=100, blank=True)
    razorpay_payment_id = models.CharField(max_length=100, blank=True)
    razorpay_signature = models.CharField(max_length=255, blank=True)
    razorpay_payment_link_id = models.CharField(max_length=100, blank=True)
    razorpay_qr_code_id = models.CharField(max_length=100, blank=True)
    razorpay_amount = models.PositiveIntegerField(null=True, blank=True)
    razorpay_currency = models.CharField(max_length=5, blank=True)

    # ---------- documents ----------
    uploaded_files = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "check_out_date"]),
        ]

    def __str__(self):
        return f"{self.booking_number} ({self.first_name} {self.last_name})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def can_move_to(self, new_status):
        return new_status in ALLOWED_TRANSITIONS.get(str(self.status), set())


class GuestInfo(TimeStamped):
    """
    Guest directory. One row per person, matched on email / mobile;
    ``stay_history`` keeps a short line per booking.
    """
    guest_id = models.CharField(max_length=30, unique=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    email = models.EmailField(blank=True, db_index=True)
    mobile_no = models.CharField(max_length=20, blank=True, db_index=True)
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    nationality = models.CharField(max_length=60, blank=True)
    address = models.TextField(blank=True)
    verification_type = models.CharField(max_length=60, blank=True)
    verification_id = models.CharField(max_length=60, blank=True)
    stay_history = models.JSONField(default=list, blank=True)
    total_visits = models.PositiveIntegerField(default=0)
    total_amount_spent = models.IntegerField(default=0)

    class Meta:
        ordering = ["created_at"]
        verbose_name_plural = "guests"

    def __str__(self):
        return f"{self.guest_id} {self.first_name} {self.last_name}".strip()
