from rest_framework import serializers

from .models import InventoryItem, ComplementaryItem


class InventoryItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryItem
        fields = [
            "id", "supplier_name", "category", "sub_category", "brand_name", "model_number",
            "price", "gst", "quantity_in_stock", "low_quantity_alert", "description",
            "status", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "status", "created_at", "updated_at"]


class ComplementaryItemSerializer(serializers.ModelSerializer):
    room_name = serializers.CharField(source="room.name", read_only=True)

    class Meta:
        model = ComplementaryItem
        fields = [
            "id", "room", "room_name", "category", "sub_category", "brand_name", "quantity",
            "last_inventory_update", "inventory_update_status",
        ]
        read_only_fields = ["id", "last_inventory_update", "inventory_update_status"]
