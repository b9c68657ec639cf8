from django.contrib.auth.models import Group
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient

from setup.models import Department, Shift
from staff.models import Employee
from tests.helpers import make_user


class EmployeeAPITests(TestCase):
    url = "/api/employees/"

    def setUp(self):
        self.staff = APIClient()
        self.staff.force_authenticate(make_user())
        self.role = Group.objects.create(name="Front desk")
        self.department = Department.objects.create(name="Housekeeping")
        self.shift = Shift.objects.create(name="Morning", start_time="06:00", end_time="14:00")

    def payload(self, **overrides):
        data = {
            "role": self.role.pk,
            "first_name": "Kiran",
            "last_name": "Das",
            "gender": "female",
            "date_of_birth": "1995-06-01",
            "email": "kiran@example.com",
            "mobile_no": "9000011111",
            "date_of_hiring": "2024-01-15",
            "department": self.department.pk,
            "shift": self.shift.pk,
            "week_off": "monday",
        }
        data.update(overrides)
        return data

    def test_create_assigns_employee_id(self):
        resp = self.staff.post(self.url, self.payload(), format="json")
        self.assertEqual(resp.status_code, 201, resp.data)
        employee = resp.data["employees"]
        self.assertEqual(employee["employee_id"], "EMP-150124-0001")
        self.assertEqual(employee["role_name"], "Front desk")
        self.assertEqual(employee["shift_name"], "Morning")

        resp = self.staff.post(
            self.url, self.payload(email="ravi@example.com", date_of_hiring="2024-03-02"), format="json"
        )
        self.assertEqual(resp.data["employees"]["employee_id"], "EMP-020324-0002")

    def test_ids_are_not_renumbered(self):
        first = self.staff.post(self.url, self.payload(date_of_hiring="2024-05-01"), format="json")
        self.staff.post(self.url, self.payload(email="early@example.com", date_of_hiring="2023-01-01"), format="json")

        resp = self.staff.get(self.url)
        ids = [e["employee_id"] for e in resp.data["employees"]]
        self.assertEqual(ids, ["EMP-010123-0002", first.data["employees"]["employee_id"]])

    def test_duplicate_email(self):
        self.staff.post(self.url, self.payload(), format="json")
        resp = self.staff.post(self.url, self.payload(), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "email: Email already exists")

    def test_hiring_must_follow_birth(self):
        resp = self.staff.post(self.url, self.payload(date_of_hiring="1990-01-01"), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "Date of hiring must be after the date of birth")

    def test_login_gets_employee_role(self):
        user = make_user("kiran")
        user.email = "KIRAN@example.com"
        user.save()

        self.staff.post(self.url, self.payload(), format="json")
        self.assertEqual(list(user.groups.all()), [self.role])

        manager = Group.objects.create(name="Manager")
        employee_id = Employee.objects.get().employee_id
        resp = self.staff.patch(f"{self.url}{employee_id}", {"role": manager.pk}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(list(user.groups.all()), [manager])

    def test_documents_on_update(self):
        resp = self.staff.post(
            self.url,
            dict(self.payload(), documents=SimpleUploadedFile("id.pdf", b"%PDF-1.4", content_type="application/pdf")),
            format="multipart",
        )
        self.assertEqual(resp.status_code, 201, resp.data)
        employee = resp.data["employees"]
        self.assertEqual(len(employee["documents"]), 1)
        self.assertEqual(employee["documents"][0]["name"], "id.pdf")

        resp = self.staff.patch(
            f"{self.url}{employee['employee_id']}",
            {
                "existing_documents": "[]",
                "documents": SimpleUploadedFile("offer.pdf", b"%PDF-1.4", content_type="application/pdf"),
            },
            format="multipart",
        )
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual([d["name"] for d in resp.data["employees"]["documents"]], ["offer.pdf"])

    def test_rejects_unsupported_upload(self):
        resp = self.staff.post(
            self.url,
            dict(self.payload(), avatar=SimpleUploadedFile("run.sh", b"echo", content_type="text/x-sh")),
            format="multipart",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(Employee.objects.exists())

    def test_requires_login(self):
        resp = APIClient().get(self.url)
        self.assertEqual(resp.status_code, 401)

    def test_filter_by_department_and_delete(self):
        kitchen = Department.objects.create(name="Kitchen")
        self.staff.post(self.url, self.payload(), format="json")
        self.staff.post(self.url, self.payload(email="chef@example.com", department=kitchen.pk), format="json")

        resp = self.staff.get(self.url, {"department": kitchen.pk})
        self.assertEqual([e["email"] for e in resp.data["employees"]], ["chef@example.com"])

        employee_id = resp.data["employees"][0]["employee_id"]
        resp = self.staff.delete(f"{self.url}{employee_id}")
        self.assertEqual(resp.data, {"success": True, "message": "Deleted successfully"})
        self.assertEqual(Employee.objects.count(), 1)
