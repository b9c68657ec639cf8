from django.contrib import admin
from .models import (
    PropertyType, EventType, SpecialOffering, TimeSlot, HotelService,
    HotelProfile, Department, Shift, Policy, ExpenseHead,
    PaymentGatewayKeys, EmailConfiguration,
)
admin.site.register([PropertyType, EventType, SpecialOffering, TimeSlot, HotelService, Department, Shift, Policy, ExpenseHead])


@admin.register(HotelProfile)
class HotelProfileAdmin(admin.ModelAdmin):
    list_display = ("hotel_name", "gst_no", "email_id", "mobile_no")


@admin.register(PaymentGatewayKeys)
class PaymentGatewayKeysAdmin(admin.ModelAdmin):
    list_display = ("api_key", "updated_at")


@admin.register(EmailConfiguration)
class EmailConfigurationAdmin(admin.ModelAdmin):
    list_display = ("smtp_host", "smtp_port", "sender_email", "updated_at")
