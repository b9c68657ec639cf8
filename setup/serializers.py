from rest_framework import serializers
from .models import (
    PropertyType, EventType, SpecialOffering, TimeSlot, HotelService,
    HotelProfile, Department, Shift, Policy, ExpenseHead,
    PaymentGatewayKeys, EmailConfiguration,
)


class NamedLookupSerializer(serializers.ModelSerializer):
    class Meta:
        fields = ["id", "name", "code", "is_active", "created_at", "updated_at"]
        read_only_fields = ["id", "code", "created_at", "updated_at"]


class PropertyTypeSerializer(NamedLookupSerializer):
    class Meta(NamedLookupSerializer.Meta):
        model = PropertyType


class EventTypeSerializer(NamedLookupSerializer):
    class Meta(NamedLookupSerializer.Meta):
        model = EventType


class SpecialOfferingSerializer(NamedLookupSerializer):
    class Meta(NamedLookupSerializer.Meta):
        model = SpecialOffering


class TimeSlotSerializer(serializers.ModelSerializer):
    class Meta:
        model = TimeSlot
        fields = ["id", "name", "from_time", "to_time"]

    def validate(self, attrs):
        start = attrs.get("from_time", getattr(self.instance, "from_time", None))
        end = attrs.get("to_time", getattr(self.instance, "to_time", None))
        if start and end and start >= end:
            raise serializers.ValidationError("Slot end time must be after its start time")
        return attrs


class HotelServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = HotelService
        fields = ["id", "name", "price", "is_active"]


class HotelProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = HotelProfile
        fields = [
            "id", "hotel_name", "gst_no", "door_no", "street_name", "district",
            "state", "pincode", "email_id", "mobile_no", "website", "updated_at",
        ]
        read_only_fields = ["id", "updated_at"]


class DepartmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ["id", "name", "description", "created_at"]
        read_only_fields = ["id", "created_at"]


class ShiftSerializer(serializers.ModelSerializer):
    class Meta:
        model = Shift
        fields = ["id", "name", "start_time", "end_time"]


class PolicySerializer(serializers.ModelSerializer):
    class Meta:
        model = Policy
        fields = ["id", "terms_and_conditions", "payment_policy", "privacy_policy", "updated_at"]
        read_only_fields = ["id", "updated_at"]


class ExpenseHeadSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExpenseHead
        fields = ["id", "kind", "name"]


class PaymentGatewayKeysSerializer(serializers.ModelSerializer):
    secret_key = serializers.CharField(write_only=True)

    class Meta:
        model = PaymentGatewayKeys
        fields = ["id", "api_key", "secret_key", "updated_at"]
        read_only_fields = ["id", "updated_at"]


class EmailConfigurationSerializer(serializers.ModelSerializer):
    smtp_password = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = EmailConfiguration
        fields = [
            "id", "smtp_host", "smtp_port", "smtp_username", "smtp_password",
            "sender_email", "use_tls", "updated_at",
        ]
        read_only_fields = ["id", "updated_at"]
