from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from .models import Employee


class EmployeeSerializer(serializers.ModelSerializer):
    role_name = serializers.CharField(source="role.name", read_only=True)
    department_name = serializers.CharField(source="department.name", read_only=True)
    shift_name = serializers.CharField(source="shift.name", read_only=True)

    class Meta:
        model = Employee
        fields = [
            "id",
            "employee_id",
            "role",
            "role_name",
            "first_name",
            "last_name",
            "gender",
            "date_of_birth",
            "email",
            "mobile_no",
            "date_of_hiring",
            "department",
            "department_name",
            "shift",
            "shift_name",
            "week_off",
            "avatar",
            "documents",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "employee_id", "avatar", "documents", "created_at", "updated_at"]
        extra_kwargs = {
            "email": {
                "validators": [UniqueValidator(queryset=Employee.objects.all(), message="Email already exists")]
            },
        }

    def validate(self, attrs):
        born = attrs.get("date_of_birth", getattr(self.instance, "date_of_birth", None))
        hired = attrs.get("date_of_hiring", getattr(self.instance, "date_of_hiring", None))
        if born and hired and hired <= born:
            raise serializers.ValidationError("Date of hiring must be after the date of birth")
        return attrs
