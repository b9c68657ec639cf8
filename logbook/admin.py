from django.contrib import admin

from .models import LogBookEntry


@admin.register(LogBookEntry)
class LogBookEntryAdmin(admin.ModelAdmin):
    list_display = ("booking_number", "customer_name", "property_type", "date_from", "status", "grand_total")
    list_filter = ("status", "property_type")
    search_fields = ("booking_number", "customer_name", "mobile_no")
