from django.utils import timezone
from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from booking.models import Booking
from common.utils import round_amount
from rooms.models import PropertyKind
from .models import LogBookEntry, LogStatus


class IssuedItemSerializer(serializers.Serializer):
    category = serializers.CharField()
    sub_category = serializers.CharField()
    brand = serializers.CharField()
    model = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1)
    condition = serializers.CharField()
    remarks = serializers.CharField(required=False, allow_blank=True, default="")


class DamagedItemSerializer(IssuedItemSerializer):
    amount = serializers.IntegerField(min_value=0, required=False, default=0)


class ElectricityReadingSerializer(serializers.Serializer):
    type = serializers.CharField()
    start_reading = serializers.FloatField(min_value=0)
    end_reading = serializers.FloatField(min_value=0, required=False, default=0)
    unit_type = serializers.CharField()
    cost_per_unit = serializers.FloatField(min_value=0, required=False, default=0)
    remarks = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        start, end = attrs["start_reading"], attrs["end_reading"]
        if end and end < start:
            raise serializers.ValidationError("End reading must not be below the start reading")
        units = end - start if end else 0
        attrs["units_consumed"] = units
        attrs["total"] = round_amount(units * attrs["cost_per_unit"])
        return attrs


def validated_rows(serializer_class, rows):
    serializer = serializer_class(data=rows, many=True)
    serializer.is_valid(raise_exception=True)
    return [dict(row) for row in serializer.validated_data]


class LogBookEntrySerializer(serializers.ModelSerializer):
    """
    Only ``booking_number`` and ``items_issued`` are required on create;
    guest name, mobile, property type and dates default to the booking's.
    """
    items_issued = serializers.ListField(child=serializers.DictField())
    electricity_readings = serializers.ListField(child=serializers.DictField(), required=False)

    class Meta:
        model = LogBookEntry
        fields = [
            "id",
            "booking_number",
            "customer_name",
            "mobile_no",
            "property_type",
            "event_type",
            "date_from",
            "date_to",
            "check_in_time",
            "notes",
            "items_issued",
            "electricity_readings",
            "total_amount",
            "status",
            "damage_loss_summary",
            "total_recovery_amount",
            "grand_total",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id", "status", "damage_loss_summary", "total_recovery_amount", "grand_total",
            "created_at", "updated_at",
        ]
        extra_kwargs = {
            "booking_number": {
                "validators": [
                    UniqueValidator(
                        queryset=LogBookEntry.objects.all(),
                        message="A log entry for this booking already exists",
                    )
                ]
            },
            "customer_name": {"required": False},
            "property_type": {"required": False},
            "date_from": {"required": False},
            "date_to": {"required": False},
        }

    def validate_items_issued(self, value):
        if not value:
            raise serializers.ValidationError("At least one item must be issued")
        return validated_rows(IssuedItemSerializer, value)

    def validate_electricity_readings(self, value):
        return validated_rows(ElectricityReadingSerializer, value)

    def validate(self, attrs):
        if self.instance is not None:
            return self._validate_edit(attrs)

        booking = Booking.objects.filter(booking_number=attrs["booking_number"]).first()
        if booking is None:
            raise serializers.ValidationError("Booking not found")
        attrs["booking"] = booking
        attrs.setdefault("customer_name", booking.full_name)
        attrs.setdefault("mobile_no", booking.mobile_no)
        attrs.setdefault("property_type", booking.property_type)
        attrs.setdefault("event_type", booking.event_type)
        attrs.setdefault("date_from", booking.check_in_date)
        attrs.setdefault("date_to", booking.check_out_date)
        attrs.setdefault("check_in_time", f"{timezone.localtime(booking.check_in_date):%H:%M}")
        return self._check_period(attrs)

    def _validate_edit(self, attrs):
        if self.instance.status == LogStatus.VERIFIED:
            raise serializers.ValidationError("A verified log entry can no longer be edited")
        number = attrs.get("booking_number")
        if number and number != self.instance.booking_number:
            raise serializers.ValidationError("The booking of a log entry cannot be changed")
        return self._check_period(attrs)

    def _check_period(self, attrs):
        def current(name):
            return attrs.get(name, getattr(self.instance, name, None))

        if current("property_type") == PropertyKind.HALL and not current("event_type"):
            raise serializers.ValidationError("Event type is required for hall bookings")
        start, end = current("date_from"), current("date_to")
        if start and end and end < start:
            raise serializers.ValidationError("Log end date must not be before the start date")
        return attrs


class LogVerificationSerializer(serializers.Serializer):
    """Body of the verify call; recovery defaults to the sum of damage amounts."""
    damage_loss_summary = serializers.ListField(child=serializers.DictField(), required=False, default=list)
    electricity_readings = serializers.ListField(child=serializers.DictField(), required=False)
    total_recovery_amount = serializers.IntegerField(min_value=0, required=False)

    def validate_damage_loss_summary(self, value):
        return validated_rows(DamagedItemSerializer, value)

    def validate_electricity_readings(self, value):
        return validated_rows(ElectricityReadingSerializer, value)

    def validate(self, attrs):
        attrs.setdefault(
            "total_recovery_amount", sum(row["amount"] for row in attrs["damage_loss_summary"])
        )
        return attrs
