# finance/ledger.py
"""
Monthly ledger book plus the bank/cash account registry.

Ledger rows are append only; every entry stores the running balance of
its month. Bank balances are kept on BankAccount directly and are not
derived from the ledger.
"""
import logging

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from common.utils import missing_field, parse_when, round_amount
from .models import (
    AccountType,
    BankAccount,
    BankEntry,
    BankEntryType,
    EntryType,
    Ledger,
    LedgerEntry,
    PaymentType,
)

log = logging.getLogger(__name__)


def _previous_month(month, year):
    return (12, year - 1) if month == 1 else (month - 1, year)


def active_bank_balance():
    return BankAccount.objects.filter(is_active=True).aggregate(total=Sum("opening_balance"))["total"] or 0


def ledger_for_month(month, year, lock=False):
    """
    Fetch the month's ledger, creating it with the previous month's closing
    balance as its opening balance.
    """
    qs = Ledger.objects.select_for_update() if lock else Ledger.objects
    ledger = qs.filter(month=month, year=year).first()
    if ledger is not None:
        return ledger

    prev_month, prev_year = _previous_month(month, year)
    previous = Ledger.objects.filter(month=prev_month, year=prev_year).first()
    opening = previous.closing_balance if previous else 0
    ledger, _ = Ledger.objects.get_or_create(
        month=month,
        year=year,
        defaults={"opening_balance": opening, "closing_balance": opening},
    )
    if lock:
        ledger = Ledger.objects.select_for_update().get(pk=ledger.pk)
    return ledger


def post_entry(
    type,
    category,
    ref_id,
    debit=0,
    credit=0,
    date=None,
    bank=None,
    description="",
    payment_type="",
    adjust_bank_opening=False,
):
    """
    Append an income (credit) or expense (debit) entry to the month of ``date``.
    With ``adjust_bank_opening`` the given bank's opening balance moves as well,
    which is how entries typed straight into the ledger book behave.
    """
    if type not in EntryType.values:
        raise ValidationError("Invalid entry type")
    if not category or not ref_id:
        raise ValidationError("Missing required field: " + ("category" if not category else "ref_id"))

    credit = round_amount(credit) if type == EntryType.INCOME else 0
    debit = round_amount(debit) if type == EntryType.EXPENSES else 0
    if type == EntryType.INCOME and credit <= 0:
        raise ValidationError("Credit amount is required for income entries")
    if type == EntryType.EXPENSES and debit <= 0:
        raise ValidationError("Debit amount is required for expense entries")

    when = date or timezone.now()
    local = timezone.localtime(when)

    with transaction.atomic():
        ledger = ledger_for_month(local.month, local.year, lock=True)
        last = ledger.entries.order_by("-id").first()
        previous_balance = last.balance if last else ledger.opening_balance
        balance = previous_balance + credit - debit

        entry = LedgerEntry.objects.create(
            ledger=ledger,
            date=when,
            type=type,
            category=category,
            ref_id=str(ref_id),
            description=description or "",
            payment_type=payment_type or "",
            debit=debit,
            credit=credit,
            balance=balance,
            bank=bank,
        )

        if bank is not None and adjust_bank_opening:
            account = BankAccount.objects.select_for_update().get(pk=bank.pk)
            account.opening_balance += credit - debit
            account.save(update_fields=["opening_balance", "updated_at"])

        ledger.total_income += credit
        ledger.total_expenses += debit
        ledger.closing_balance = balance
        ledger.net_profit = ledger.total_income - ledger.total_expenses
        ledger.bank_balance = active_bank_balance()
        ledger.save()

    log.debug("Ledger %s: %s %s -> balance %s", ledger, type, credit or debit, balance)
    return entry


def ledger_summary(month=None, year=None, account_type=None):
    """Month view of the ledger book with the per account type totals."""
    today = timezone.localdate()
    month = int(month or today.month)
    year = int(year or today.year)
    if not 1 <= month <= 12:
        raise ValidationError("Invalid month")

    ledger = Ledger.objects.filter(month=month, year=year).first()
    entries = ledger.entries.select_related("bank") if ledger else LedgerEntry.objects.none()
    if account_type:
        entries = entries.filter(bank__type=account_type)

    by_type = {}
    for kind in AccountType.values:
        scoped = (ledger.entries.filter(bank__type=kind) if ledger else LedgerEntry.objects.none())
        totals = scoped.aggregate(credited=Sum("credit"), debited=Sum("debit"))
        by_type[kind] = {
            "credited": totals["credited"] or 0,
            "debited": totals["debited"] or 0,
            "balance": BankAccount.objects.filter(type=kind, is_active=True)
            .aggregate(total=Sum("current_balance"))["total"] or 0,
        }
    return ledger, list(entries), by_type


# ---------- bank / cash accounts ----------

BANK_FIELDS = ("bank_name", "account_number", "ifsc_code", "branch")


def clean_account_payload(data):
    """
    Bank accounts need their bank identity; cash accounts only a name
    and never carry bank fields.
    """
    kind = data.get("type")
    if kind == AccountType.BANK:
        field = missing_field(data, ["name", "bank_name", "account_number", "ifsc_code"])
        if field:
            raise ValidationError(f"Missing required field: {field}")
    elif kind == AccountType.CASH:
        if not data.get("name"):
            raise ValidationError("Missing required field: name")
        data = {k: v for k, v in data.items() if k not in BANK_FIELDS}
    else:
        raise ValidationError("Invalid account type")
    return data


def change_opening_balance(account, new_opening):
    """Editing the opening balance shifts the current balance by the same amount."""
    new_opening = round_amount(new_opening)
    account.current_balance += new_opening - account.opening_balance
    account.opening_balance = new_opening


def record_bank_entry(data):
    field = missing_field(data, ["transaction_type", "payment_type", "from_account", "amount"])
    if field:
        raise ValidationError(f"Missing required field: {field}")

    kind = data["transaction_type"]
    if kind not in BankEntryType.values:
        raise ValidationError("Invalid transaction type")
    if kind == BankEntryType.TRANSFER and not data.get("to_account"):
        raise ValidationError("Missing required field: to_account for transfer")
    if data["payment_type"] not in PaymentType.values:
        raise ValidationError("Invalid payment type")
    if data["payment_type"] == PaymentType.PAYMENT_LINK and not data.get("razorpay_payment_link_id"):
        raise ValidationError("Razorpay payment link ID is required for payment link type")

    amount = round_amount(data["amount"])
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    when = parse_when(str(data["date"]), "date") if data.get("date") else timezone.now()

    with transaction.atomic():
        source = BankAccount.objects.select_for_update().filter(pk=data["from_account"]).first()
        if source is None:
            raise NotFound("From account not found")
        target = None
        if kind == BankEntryType.TRANSFER:
            target = BankAccount.objects.select_for_update().filter(pk=data["to_account"]).first()
            if target is None:
                raise NotFound("To account not found")
            if target.pk == source.pk:
                raise ValidationError("Cannot transfer to the same account")

        entry = BankEntry.objects.create(
            transaction_type=kind,
            payment_type=data["payment_type"],
            from_account=source,
            to_account=target,
            amount=amount,
            date=when,
            reference=data.get("reference") or "",
            razorpay_payment_link_id=data.get("razorpay_payment_link_id") or "",
            description=data.get("description") or "",
        )
        description = data.get("description") or ""

        if kind == BankEntryType.DEPOSIT:
            source.current_balance += amount
            source.save(update_fields=["current_balance", "updated_at"])
            post_entry(
                EntryType.INCOME, "Bank Deposit", entry.pk, credit=amount, date=when,
                bank=source, description=description or "Bank deposit",
            )
        elif kind == BankEntryType.WITHDRAWAL:
            source.current_balance -= amount
            source.save(update_fields=["current_balance", "updated_at"])
            post_entry(
                EntryType.EXPENSES, "Bank Withdrawal", entry.pk, debit=amount, date=when,
                bank=source, description=description or "Bank withdrawal",
            )
        else:
            source.current_balance -= amount
            target.current_balance += amount
            source.save(update_fields=["current_balance", "updated_at"])
            target.save(update_fields=["current_balance", "updated_at"])
            post_entry(
                EntryType.EXPENSES, "Bank Transfer (Out)", entry.pk, debit=amount, date=when,
                bank=source, description=description or f"Transfer to {target.name or target.bank_name}",
            )
            post_entry(
                EntryType.INCOME, "Bank Transfer (In)", entry.pk, credit=amount, date=when,
                bank=target, description=description or f"Transfer from {source.name or source.bank_name}",
            )

    return entry
