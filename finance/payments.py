# finance/payments.py
import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from rest_framework.exceptions import ValidationError

from common.utils import missing_field, round_amount, parse_when
from booking.models import Booking
from .models import Payment, PaymentMethod, PaymentStatus, PaymentType, Transaction

log = logging.getLogger(__name__)

REQUIRED_FIELDS = [
    "booking_id",
    "booking_number",
    "payment_method",
    "amount",
    "payment_date",
    "customer_name",
    "payable_amount",
]

# Fallback payment type per method when the client sends something unknown.
DEFAULT_PAYMENT_TYPE = {
    PaymentMethod.COD.value: PaymentType.CASH.value,
    PaymentMethod.ONLINE.value: PaymentType.BANK.value,
    PaymentMethod.PAYMENT_LINK.value: PaymentType.PAYMENT_LINK.value,
}


def normalize_payment_type(method, payment_type, strict=None):
    """
    Unknown payment types are coerced to the method's default, or rejected
    when HOTELBOOK["STRICT_PAYMENT_TYPE"] is on.
    """
    if strict is None:
        strict = settings.HOTELBOOK.get("STRICT_PAYMENT_TYPE", False)
    payment_type = payment_type or ""
    if payment_type == "" or payment_type in PaymentType.values:
        return payment_type
    if strict:
        raise ValidationError(f"Invalid payment type: {payment_type}")
    fallback = DEFAULT_PAYMENT_TYPE.get(method, "")
    log.warning("Coercing payment type %r to %r for %s", payment_type, fallback, method)
    return fallback


def validate_payment(data):
    field = missing_field(data, REQUIRED_FIELDS)
    if field:
        raise ValidationError(f"Missing required field: {field}")

    method = data.get("payment_method")
    if method in (PaymentMethod.ONLINE, PaymentMethod.BANK) and not data.get("payment_type"):
        raise ValidationError("Payment type is required for online/bank payments")
    if method == PaymentMethod.PAYMENT_LINK and not data.get("razorpay_payment_link_id"):
        raise ValidationError("Razorpay payment link ID is required for payment link method")

    payment_type = normalize_payment_type(method, data.get("payment_type"))

    status = data.get("status")
    if status not in PaymentStatus.values:
        status = PaymentStatus.COMPLETED

    if method not in PaymentMethod.values:
        log.error("Invalid payment method: %s", method)
        raise ValidationError("Invalid payment method")

    return payment_type, status


def _apply_totals(txn):
    txn.remaining_balance = max(0, txn.payable_amount - txn.total_paid)
    txn.is_fully_paid = txn.total_paid >= txn.payable_amount


def record_payment(data):
    """
    Add one payment to the booking's Transaction, creating it on the first payment.
    Returns (transaction, created).
    """
    payment_type, status = validate_payment(data)
    amount = round_amount(data.get("amount"))
    payment_date = parse_when(str(data.get("payment_date")), "payment_date")
    booking_ref = str(data["booking_id"])

    payment_fields = {
        "payment_method": data["payment_method"],
        "payment_type": payment_type,
        "amount": amount,
        "transaction_ref": data.get("transaction_id") or "",
        "payment_date": payment_date,
        "remarks": data.get("remarks") or "",
        "bank": data.get("bank") or "",
        "razorpay_payment_link_id": data.get("razorpay_payment_link_id") or "",
        "status": status,
    }

    for attempt in range(2):
        try:
            with transaction.atomic():
                txn = Transaction.objects.select_for_update().filter(booking_ref=booking_ref).first()
                created = txn is None
                if created:
                    txn = Transaction.objects.create(
                        booking=Booking.objects.filter(booking_number=data["booking_number"]).first(),
                        booking_ref=booking_ref,
                        booking_number=data["booking_number"],
                        customer_name=data["customer_name"],
                        guest_id=data.get("guest_id") or "",
                        payable_amount=round_amount(data.get("payable_amount")),
                        total_paid=amount,
                    )
                    payment_number = 1
                else:
                    txn.total_paid += amount
                    if data.get("guest_id") and not txn.guest_id:
                        txn.guest_id = data["guest_id"]
                    payment_number = txn.payments.count() + 1

                _apply_totals(txn)
                txn.save()
                Payment.objects.create(transaction=txn, payment_number=payment_number, **payment_fields)
            break
        except IntegrityError:
            # Another request created the transaction first; the retry appends to it.
            if attempt:
                raise
            log.debug("Transaction for %s created concurrently, retrying", booking_ref)

    log.debug(
        "Payment %s of %s recorded for %s (%s/%s)",
        payment_number, amount, txn.booking_number, txn.total_paid, txn.payable_amount,
    )
    return txn, created
