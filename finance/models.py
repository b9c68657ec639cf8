# finance/models
from django.core.validators import RegexValidator, MinValueValidator
from django.db import models

from setup.models import TimeStamped

INVOICE_PREFIX_RE = r"^[A-Z]{3}$"
HEX_COLOR_RE = r"^#[0-9A-Fa-f]{6}$"

invoice_prefix_validator = RegexValidator(
    INVOICE_PREFIX_RE, "Invoice prefix must be exactly 3 uppercase letters"
)
hex_color_validator = RegexValidator(HEX_COLOR_RE, "Color must be a hex value like #00569B")


# ---------- Financial year / invoice numbering ----------

class FinanceSettings(TimeStamped):
    """
    Singleton. Mirrors the active FinancialYear into the flat fields below;
    the year rows own the authoritative per-year sequence.
    """
    financial_year_start = models.DateField(null=True, blank=True)
    financial_year_end = models.DateField(null=True, blank=True)
    invoice_prefix = models.CharField(max_length=3, default="INV", validators=[invoice_prefix_validator])
    invoice_sequence = models.PositiveIntegerField(default=0)
    invoice_financial_year = models.CharField(max_length=10, blank=True)
    manual_year_control = models.BooleanField(default=False)
    color = models.CharField(max_length=7, default="#00569B", validators=[hex_color_validator])
    logo = models.FileField(upload_to="finance/logos", null=True, blank=True)

    class Meta:
        verbose_name_plural = "finance settings"

    def __str__(self):
        return f"{self.invoice_prefix}/{self.invoice_financial_year}"

    @classmethod
    def load(cls):
        return cls.objects.order_by("id").first()

    @property
    def active_year(self):
        return self.years.filter(is_active=True).order_by("-start_date").first()


class FinancialYear(TimeStamped):
    settings = models.ForeignKey(FinanceSettings, on_delete=models.CASCADE, related_name="years")
    start_date = models.DateField()
    end_date = models.DateField()
    year_format = models.CharField(max_length=10, help_text='e.g. "24-25"')
    sequence = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=False)

    class Meta:
        ordering = ["start_date"]
        constraints = [
            models.UniqueConstraint(fields=["settings", "year_format"], name="uniq_financial_year_format"),
        ]

    def __str__(self):
        return f"{self.year_format} ({'active' if self.is_active else 'inactive'})"


# ---------- Invoices ----------

class Invoice(TimeStamped):
    """
    Snapshot of a booking at the moment it was invoiced.
    Later booking edits do not flow back into it.
    """
    invoice_number = models.CharField(max_length=40, unique=True)
    booking = models.ForeignKey(
        "booking.Booking", on_delete=models.SET_NULL, null=True, blank=True, related_name="invoices"
    )
    booking_number = models.CharField(max_length=30, db_index=True)
    invoice_date = models.DateTimeField()
    status = models.CharField(max_length=20, blank=True)
    customer_details = models.JSONField(default=dict, blank=True)
    hotel_details = models.JSONField(default=dict, blank=True)
    stay_details = models.JSONField(default=dict, blank=True)
    rooms = models.JSONField(default=list, blank=True)
    hall_details = models.JSONField(null=True, blank=True)
    payment_details = models.JSONField(default=dict, blank=True)
    amounts = models.JSONField(default=dict, blank=True)
    selected_services = models.JSONField(default=list, blank=True)
    transactions = models.JSONField(null=True, blank=True)

    class Meta:
        ordering = ["-invoice_date"]

    def __str__(self):
        return self.invoice_number


# ---------- Transactions / payments ----------

class PaymentMethod(models.TextChoices):
    ONLINE = "online", "Online"
    COD = "cod", "Pay at hotel"
    QR = "qr", "QR code"
    PAYMENT_LINK = "paymentLink", "Payment link"
    BANK = "bank", "Bank"


class PaymentType(models.TextChoices):
    CARD = "card", "Card"
    UPI = "upi", "UPI"
    NETBANKING = "netbanking", "Net banking"
    CASH = "cash", "Cash"
    BANK = "bank", "Bank"
    PAYMENT_LINK = "paymentLink", "Payment link"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class Transaction(TimeStamped):
    """All money received against one booking."""
    booking = models.OneToOneField(
        "booking.Booking", on_delete=models.SET_NULL, null=True, blank=True, related_name="transaction"
    )
    booking_ref = models.CharField(max_length=64, unique=True, help_text="Booking id as sent by the client")
    booking_number = models.CharField(max_length=30, unique=True)
    customer_name = models.CharField(max_length=200)
    guest_id = models.CharField(max_length=30, blank=True)
    payable_amount = models.IntegerField(default=0)
    total_paid = models.IntegerField(default=0)
    remaining_balance = models.IntegerField(default=0)
    is_fully_paid = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.booking_number}: {self.total_paid}/{self.payable_amount}"

    def summary(self):
        return {
            "total_paid": self.total_paid,
            "total_payable": self.payable_amount,
            "remaining_balance": self.remaining_balance,
            "is_partial_payment": not self.is_fully_paid,
        }


class Payment(TimeStamped):
    transaction = models.ForeignKey(Transaction, on_delete=models.CASCADE, related_name="payments")
    payment_number = models.PositiveIntegerField()
    payment_method = models.CharField(max_length=12, choices=PaymentMethod.choices)
    payment_type = models.CharField(max_length=12, choices=PaymentType.choices, blank=True)
    amount = models.IntegerField()
    transaction_ref = models.CharField(max_length=100, blank=True)
    payment_date = models.DateTimeField()
    remarks = models.TextField(blank=True)
    bank = models.CharField(max_length=120, blank=True)
    razorpay_payment_link_id = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.COMPLETED)

    class Meta:
        ordering = ["transaction_id", "payment_number"]
        constraints = [
            models.UniqueConstraint(fields=["transaction", "payment_number"], name="uniq_payment_number"),
        ]

    def __str__(self):
        return f"#{self.payment_number} {self.amount} via {self.payment_method}"


# ---------- Bank / cash accounts ----------

class AccountType(models.TextChoices):
    BANK = "bank", "Bank"
    CASH = "cash", "Cash"


class BankAccount(TimeStamped):
    type = models.CharField(max_length=5, choices=AccountType.choices)
    name = models.CharField(max_length=120)
    bank_name = models.CharField(max_length=120, blank=True)
    account_number = models.CharField(max_length=40, blank=True)
    ifsc_code = models.CharField(
        max_length=11,
        blank=True,
        validators=[RegexValidator(r"^[A-Z]{4}0[A-Z0-9]{6}$", "Please enter a valid IFSC code")],
    )
    branch = models.CharField(max_length=120, blank=True)
    opening_balance = models.IntegerField(default=0)
    current_balance = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["type", "name"]

    def __str__(self):
        return f"{self.name} ({self.type})"


class BankEntryType(models.TextChoices):
    DEPOSIT = "deposit", "Deposit"
    WITHDRAWAL = "withdrawal", "Withdrawal"
    TRANSFER = "transfer", "Transfer"


class BankEntry(TimeStamped):
    transaction_type = models.CharField(max_length=10, choices=BankEntryType.choices)
    payment_type = models.CharField(max_length=12, choices=PaymentType.choices)
    from_account = models.ForeignKey(BankAccount, on_delete=models.PROTECT, related_name="outgoing_entries")
    to_account = models.ForeignKey(
        BankAccount, on_delete=models.PROTECT, related_name="incoming_entries", null=True, blank=True
    )
    amount = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    date = models.DateTimeField()
    reference = models.CharField(max_length=120, blank=True)
    razorpay_payment_link_id = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["-date"]
        verbose_name_plural = "bank entries"


# ---------- Ledger ----------

class EntryType(models.TextChoices):
    INCOME = "income", "Income"
    EXPENSES = "expenses", "Expenses"


class Ledger(TimeStamped):
    month = models.PositiveSmallIntegerField()
    year = models.PositiveSmallIntegerField()
    opening_balance = models.IntegerField(default=0)
    closing_balance = models.IntegerField(default=0)
    total_income = models.IntegerField(default=0)
    total_expenses = models.IntegerField(default=0)
    net_profit = models.IntegerField(default=0)
    bank_balance = models.IntegerField(default=0)

    class Meta:
        ordering = ["-year", "-month"]
        constraints = [
            models.UniqueConstraint(fields=["month", "year"], name="uniq_ledger_month"),
        ]

    def __str__(self):
        return f"{self.year}-{self.month:02d}"


class LedgerEntry(TimeStamped):
    ledger = models.ForeignKey(Ledger, on_delete=models.CASCADE, related_name="entries")
    date = models.DateTimeField()
    type = models.CharField(max_length=10, choices=EntryType.choices)
    category = models.CharField(max_length=120)
    ref_id = models.CharField(max_length=64)
    description = models.TextField(blank=True)
    payment_type = models.CharField(max_length=12, blank=True)
    debit = models.IntegerField(default=0)
    credit = models.IntegerField(default=0)
    balance = models.IntegerField(default=0)
    bank = models.ForeignKey(
        BankAccount, on_delete=models.SET_NULL, null=True, blank=True, related_name="ledger_entries"
    )

    class Meta:
        ordering = ["ledger_id", "id"]
        verbose_name_plural = "ledger entries"


# ---------- Expenses ----------

class Expense(TimeStamped):
    amount = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    category = models.CharField(max_length=120)
    expense = models.CharField(max_length=120)
    description = models.TextField(blank=True)
    date = models.DateTimeField()
    receipt = models.FileField(upload_to="finance/receipts", null=True, blank=True)
    payment_type = models.CharField(max_length=12, choices=PaymentType.choices, blank=True)
    account = models.ForeignKey(
        BankAccount, on_delete=models.SET_NULL, null=True, blank=True, related_name="expenses"
    )
    bank = models.CharField(max_length=120, blank=True)
    reference = models.CharField(max_length=120, blank=True)

    class Meta:
        ordering = ["-date"]

    def __str__(self):
        return f"{self.category}/{self.expense}: {self.amount}"
