from django.contrib import admin

from .models import Employee


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("employee_id", "first_name", "last_name", "role", "department", "shift", "date_of_hiring")
    list_filter = ("department", "role", "week_off")
    search_fields = ("employee_id", "first_name", "last_name", "email", "mobile_no")
