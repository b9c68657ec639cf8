from django.contrib import admin

from .models import Room, RoomUnit, RoomAvailability


class RoomUnitInline(admin.TabularInline):
    model = RoomUnit
    extra = 0
    fields = ("number", "booked_dates")


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "price", "capacity", "max_guests")
    list_filter = ("type",)
    inlines = [RoomUnitInline]


@admin.register(RoomAvailability)
class RoomAvailabilityAdmin(admin.ModelAdmin):
    list_display = ("room", "room_number", "room_type", "updated_at")
    search_fields = ("room_number", "room_type")
