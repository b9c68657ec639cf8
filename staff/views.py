# staff/views.py
import logging

from rest_framework import filters, viewsets
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated

from common.mixins import SuccessEnvelopeMixin
from common.utils import best_effort, parse_json_field
from . import services
from .models import Employee
from .serializers import EmployeeSerializer

log = logging.getLogger(__name__)


class EmployeeViewSet(SuccessEnvelopeMixin, viewsets.ModelViewSet):
    """
    /api/employees
      GET    -> staff list (?department=<id>, ?search=)
      POST   -> new employee, multipart with optional avatar / documents
    /api/employees/{employee_id}
      GET / PUT / PATCH / DELETE
      PUT / PATCH accept ``existing_documents`` (paths to keep) next to new uploads
    """
    queryset = Employee.objects.select_related("role", "department", "shift")
    serializer_class = EmployeeSerializer
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    filter_backends = [filters.SearchFilter]
    search_fields = ["employee_id", "first_name", "last_name", "email", "mobile_no"]
    lookup_field = "employee_id"
    envelope_key = "employees"

    def get_queryset(self):
        qs = super().get_queryset()
        department = self.request.query_params.get("department")
        if department:
            qs = qs.filter(department_id=department)
        return qs

    def _uploads(self):
        files = self.request.FILES
        return files.get("avatar"), files.getlist("documents")

    def perform_create(self, serializer):
        avatar, documents = self._uploads()
        stored_avatar, stored_docs = services.store_files(avatar, documents)
        employee = serializer.save(
            employee_id=services.next_employee_id(serializer.validated_data["date_of_hiring"]),
            avatar=stored_avatar,
            documents=stored_docs,
        )
        log.info("Employee %s added", employee.employee_id)
        best_effort("login_role", services.sync_login_role, employee)

    def perform_update(self, serializer):
        employee = serializer.instance
        avatar, documents = self._uploads()
        stored_avatar, stored_docs = services.store_files(avatar, documents)

        kept = employee.documents or []
        keep_paths = parse_json_field(self.request.data.get("existing_documents"))
        if keep_paths is not None:
            kept, _ = services.prune_documents(employee, keep_paths)

        changes = {"documents": kept + stored_docs}
        if stored_avatar is not None:
            services.drop_avatar(employee)
            changes["avatar"] = stored_avatar
        employee = serializer.save(**changes)
        best_effort("login_role", services.sync_login_role, employee)

    def perform_destroy(self, instance):
        services.remove_employee_files(instance)
        log.info("Employee %s removed", instance.employee_id)
        instance.delete()
