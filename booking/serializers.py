# booking/serializers.py
from rest_framework import serializers

from finance.models import Transaction
from .models import Booking, GuestInfo


class BookingSerializer(serializers.ModelSerializer):
    """
    Read side of a booking. Writes go through booking.services so the
    occupancy / invoice side effects run; this serializer is never saved.
    """
    full_name = serializers.CharField(read_only=True)
    payment_summary = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_number",
            "property_type",
            "guest_id",
            "first_name",
            "last_name",
            "full_name",
            "mobile_no",
            "gender",
            "date_of_birth",
            "email",
            "nationality",
            "verification_type",
            "verification_id",
            "address",
            "check_in_date",
            "check_out_date",
            "number_of_rooms",
            "number_of_nights",
            "guests",
            "rooms",
            "status",
            "status_timestamps",
            "groom_details",
            "bride_details",
            "event_type",
            "time_slot",
            "selected_services",
            "total_amount",
            "payment_method",
            "payment_status",
            "payment_summary",
            "invoice_number",
            "razorpay_order_id",
            "razorpay_payment_id",
            "razorpay_payment_link_id",
            "razorpay_qr_code_id",
            "razorpay_amount",
            "razorpay_currency",
            "uploaded_files",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_payment_summary(self, obj):
        try:
            txn = obj.transaction
        except Transaction.DoesNotExist:
            txn = Transaction.objects.filter(booking_number=obj.booking_number).first()
        return txn.summary() if txn else None


class GuestInfoSerializer(serializers.ModelSerializer):
    class Meta:
        model = GuestInfo
        fields = [
            "id",
            "guest_id",
            "first_name",
            "last_name",
            "email",
            "mobile_no",
            "gender",
            "date_of_birth",
            "nationality",
            "address",
            "verification_type",
            "verification_id",
            "stay_history",
            "total_visits",
            "total_amount_spent",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "guest_id",
            "stay_history",
            "total_visits",
            "total_amount_spent",
            "created_at",
            "updated_at",
        ]


# ---------- Razorpay helpers ----------

class RazorpayOrderSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=1)
    currency = serializers.CharField(max_length=5, default="INR")
    receipt = serializers.CharField(max_length=40, required=False, allow_blank=True, default="")
    notes = serializers.DictField(required=False, default=dict)


class RazorpayPaymentLinkSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=1)
    currency = serializers.CharField(max_length=5, default="INR")
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    customer_name = serializers.CharField(max_length=200)
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    customer_contact = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    reference_id = serializers.CharField(max_length=40, required=False, allow_blank=True, default="")
    callback_url = serializers.URLField(required=False, allow_blank=True, default="")


class RazorpayVerifySerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField()
    razorpay_payment_id = serializers.CharField()
    razorpay_signature = serializers.CharField()
