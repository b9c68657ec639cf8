from django.contrib import admin

from .models import Enquiry


@admin.register(Enquiry)
class EnquiryAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "email", "event_type", "event_start_date", "moved_to_booking")
    list_filter = ("property_type", "moved_to_booking")
    search_fields = ("first_name", "last_name", "email", "mobile_no")
