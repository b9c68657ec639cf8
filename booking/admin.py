from django.contrib import admin

from .models import Booking, GuestInfo


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_number",
        "first_name",
        "last_name",
        "property_type",
        "check_in_date",
        "check_out_date",
        "status",
        "payment_status",
        "invoice_number",
    )
    list_filter = ("status", "payment_status", "property_type")
    search_fields = ("booking_number", "email", "mobile_no", "guest_id")
    readonly_fields = ("booking_number", "invoice_number", "status_timestamps")


@admin.register(GuestInfo)
class GuestInfoAdmin(admin.ModelAdmin):
    list_display = ("guest_id", "first_name", "last_name", "email", "mobile_no", "total_visits")
    search_fields = ("guest_id", "email", "mobile_no")
