# setup/models
from django.db import models
from django.core.validators import RegexValidator, MinValueValidator
from django.utils.text import slugify

GST_NUMBER_RE = r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$"
HOUR_SLOT_RE = r"^([01]\d|2[0-3]):00$"

gst_validator = RegexValidator(GST_NUMBER_RE, "Please enter a valid GST number")
hour_slot_validator = RegexValidator(HOUR_SLOT_RE, "Time must be a full hour, e.g. 09:00")


class TimeStamped(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    class Meta:
        abstract = True


class NamedLookup(TimeStamped):
    name = models.CharField(max_length=100, unique=True)
    code = models.CharField(
        max_length=50,
        unique=True,
        db_index=True,
        blank=True,
        validators=[RegexValidator(r"^[A-Z0-9_]+$", "Use only A–Z, 0–9 and _")],
        help_text="Stable programmatic code, e.g. WEDDING, DELUXE",
    )
    is_active = models.BooleanField(default=True)
    class Meta:
        abstract = True
        ordering = ["name"]
    def __str__(self):
        return self.name
    def save(self, *args, **kwargs):
        if not self.code:
            self.code = slugify(self.name or "").replace("-", "_").upper()
        else:
            self.code = self.code.strip().replace("-", "_").upper()
        super().save(*args, **kwargs)


class PropertyType(NamedLookup): pass
class EventType(NamedLookup): pass
class SpecialOffering(NamedLookup): pass


class TimeSlot(TimeStamped):
    """Hall booking slot, always on full hours."""
    name = models.CharField(max_length=100, unique=True)
    from_time = models.CharField(max_length=5, validators=[hour_slot_validator])
    to_time = models.CharField(max_length=5, validators=[hour_slot_validator])

    class Meta:
        ordering = ["from_time"]

    def __str__(self):
        return f"{self.name} ({self.from_time}-{self.to_time})"


class HotelService(TimeStamped):
    name = models.CharField(max_length=120, unique=True)
    price = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.name


class HotelProfile(TimeStamped):
    """
    Single row describing the property. Printed on invoices and mails.
    """
    hotel_name = models.CharField(max_length=200)
    gst_no = models.CharField(max_length=15, blank=True, validators=[gst_validator])
    door_no = models.CharField(max_length=50, blank=True)
    street_name = models.CharField(max_length=200, blank=True)
    district = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=6, blank=True)
    email_id = models.EmailField(blank=True)
    mobile_no = models.CharField(max_length=20, blank=True)
    website = models.URLField(blank=True)

    def __str__(self):
        return self.hotel_name

    @classmethod
    def load(cls):
        return cls.objects.order_by("id").first()

    @property
    def full_address(self):
        parts = [p for p in (self.door_no, self.street_name, self.district, self.state) if p]
        address = ", ".join(parts)
        if self.pincode:
            address = f"{address} - {self.pincode}" if address else self.pincode
        return address

    def snapshot(self):
        return {
            "name": self.hotel_name,
            "gst_no": self.gst_no,
            "address": self.full_address,
            "email": self.email_id,
            "phone": self.mobile_no,
        }


class Department(TimeStamped):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Shift(TimeStamped):
    name = models.CharField(max_length=100)
    start_time = models.TimeField()
    end_time = models.TimeField()

    class Meta:
        ordering = ["start_time"]

    def __str__(self):
        return self.name


class Policy(TimeStamped):
    terms_and_conditions = models.TextField(blank=True)
    payment_policy = models.TextField(blank=True)
    privacy_policy = models.TextField(blank=True)

    class Meta:
        verbose_name_plural = "policies"


class ExpenseHeadKind(models.TextChoices):
    CATEGORY = "category", "Category"
    EXPENSE = "expense", "Expense"


class ExpenseHead(TimeStamped):
    """Back-office list of expense categories and expense names."""
    kind = models.CharField(max_length=10, choices=ExpenseHeadKind.choices)
    name = models.CharField(max_length=120)

    class Meta:
        ordering = ["kind", "name"]
        constraints = [
            models.UniqueConstraint(fields=["kind", "name"], name="uniq_expense_head"),
        ]

    def __str__(self):
        return f"{self.kind}: {self.name}"


class PaymentGatewayKeys(TimeStamped):
    api_key = models.CharField(max_length=120)
    secret_key = models.CharField(max_length=255)

    class Meta:
        verbose_name_plural = "payment gateway keys"

    @classmethod
    def load(cls):
        return cls.objects.order_by("-updated_at").first()


class EmailConfiguration(TimeStamped):
    smtp_host = models.CharField(max_length=200)
    smtp_port = models.PositiveIntegerField(default=587, validators=[MinValueValidator(1)])
    smtp_username = models.CharField(max_length=200, blank=True)
    smtp_password = models.CharField(max_length=255, blank=True)
    sender_email = models.EmailField()
    use_tls = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.smtp_host}:{self.smtp_port}"
