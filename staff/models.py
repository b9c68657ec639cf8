# staff/models
from django.contrib.auth.models import Group
from django.db import models

from booking.models import Gender
from setup.models import Department, Shift, TimeStamped


class WeekDay(models.TextChoices):
    SUNDAY = "sunday", "Sunday"
    MONDAY = "monday", "Monday"
    TUESDAY = "tuesday", "Tuesday"
    WEDNESDAY = "wednesday", "Wednesday"
    THURSDAY = "thursday", "Thursday"
    FRIDAY = "friday", "Friday"
    SATURDAY = "saturday", "Saturday"


class Employee(TimeStamped):
    """
    A member of hotel staff. ``role`` is an auth group, so a login with the
    same email picks up the role's permissions.
    """
    employee_id = models.CharField(max_length=20, unique=True, editable=False)
    role = models.ForeignKey(Group, on_delete=models.PROTECT, related_name="employees")
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    gender = models.CharField(max_length=10, choices=Gender.choices)
    date_of_birth = models.DateField()
    email = models.EmailField(unique=True)
    mobile_no = models.CharField(max_length=20)
    date_of_hiring = models.DateField()
    department = models.ForeignKey(Department, on_delete=models.PROTECT, related_name="employees")
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="employees")
    week_off = models.CharField(max_length=10, choices=WeekDay.choices)
    avatar = models.JSONField(null=True, blank=True)
    documents = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["date_of_hiring", "id"]

    def __str__(self):
        return f"{self.employee_id} {self.first_name} {self.last_name}"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()
