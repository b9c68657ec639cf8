from rest_framework import serializers

from .models import Enquiry


class EnquirySerializer(serializers.ModelSerializer):
    class Meta:
        model = Enquiry
        fields = [
            "id",
            "first_name",
            "last_name",
            "email",
            "mobile_no",
            "property_type",
            "event_type",
            "event_start_date",
            "event_end_date",
            "notes",
            "moved_to_booking",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate(self, attrs):
        start = attrs.get("event_start_date", getattr(self.instance, "event_start_date", None))
        end = attrs.get("event_end_date", getattr(self.instance, "event_end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError("Event end date must not be before the start date")
        return attrs
