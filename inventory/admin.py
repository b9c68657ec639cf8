from django.contrib import admin

from .models import InventoryItem, ComplementaryItem


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("brand_name", "category", "sub_category", "quantity_in_stock", "low_quantity_alert", "status")
    list_filter = ("status", "category")
    readonly_fields = ("status",)


@admin.register(ComplementaryItem)
class ComplementaryItemAdmin(admin.ModelAdmin):
    list_display = ("room", "category", "sub_category", "brand_name", "quantity", "inventory_update_status")
