from rest_framework import serializers

from .models import Room, RoomUnit, RoomAvailability, OccupancyStatus


class RoomUnitSerializer(serializers.ModelSerializer):
    class Meta:
        model = RoomUnit
        fields = ["id", "number", "booked_dates"]
        read_only_fields = ["id", "booked_dates"]


class RoomSerializer(serializers.ModelSerializer):
    """
    ``numbers`` (write only) replaces the unit list; numbers that already
    exist keep their booked dates.
    """
    units = RoomUnitSerializer(many=True, read_only=True)
    numbers = serializers.ListField(
        child=serializers.CharField(max_length=20), write_only=True, required=False
    )
    number_of_units = serializers.SerializerMethodField()

    class Meta:
        model = Room
        fields = [
            "id", "type", "name", "description", "price", "igst", "additional_guest_costs",
            "size", "capacity", "bed_model", "max_guests", "amenities", "complementary_foods",
            "main_image", "thumbnail_images", "units", "numbers", "number_of_units",
            "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def get_number_of_units(self, obj):
        return obj.units.count()

    def validate_numbers(self, value):
        cleaned = [v.strip() for v in value if v and v.strip()]
        if len(set(cleaned)) != len(cleaned):
            raise serializers.ValidationError("Room numbers must be unique within a category")
        return cleaned

    def _sync_units(self, room, numbers):
        if numbers is None:
            return
        room.units.exclude(number__in=numbers).delete()
        existing = set(room.units.values_list("number", flat=True))
        RoomUnit.objects.bulk_create(
            [RoomUnit(room=room, number=n) for n in numbers if n not in existing]
        )

    def create(self, validated_data):
        numbers = validated_data.pop("numbers", None)
        room = super().create(validated_data)
        self._sync_units(room, numbers)
        return room

    def update(self, instance, validated_data):
        numbers = validated_data.pop("numbers", None)
        room = super().update(instance, validated_data)
        self._sync_units(room, numbers)
        return room


class RoomAvailabilitySerializer(serializers.ModelSerializer):
    class Meta:
        model = RoomAvailability
        fields = ["id", "room", "room_number", "room_type", "booking_history", "updated_at"]


class AvailabilityUpsertSerializer(serializers.Serializer):
    room_id = serializers.PrimaryKeyRelatedField(queryset=Room.objects.all(), source="room")
    room_number = serializers.CharField(max_length=20)
    room_type = serializers.CharField(max_length=150, required=False, allow_blank=True)
    booking_number = serializers.CharField(max_length=30)
    check_in = serializers.DateTimeField()
    check_out = serializers.DateTimeField()
    status = serializers.ChoiceField(choices=OccupancyStatus.choices, default=OccupancyStatus.BOOKED)
    guests = serializers.JSONField(required=False, default=dict)
    customer_name = serializers.CharField(required=False, allow_blank=True, default="")
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    customer_phone = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs["check_out"] <= attrs["check_in"]:
            raise serializers.ValidationError("Check-out must be after check-in")
        return attrs
