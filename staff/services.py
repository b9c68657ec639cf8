# staff/services.py
import logging

from django.contrib.auth import get_user_model

from common.utils import SideEffectResult, delete_upload, save_upload, validate_upload
from .models import Employee

log = logging.getLogger(__name__)

AVATAR_FOLDER = "employees/avatars"
DOCUMENT_FOLDER = "employees/documents"


def next_employee_id(date_of_hiring):
    """
    EMP-DDMMYY-NNNN from the hiring date; NNNN is the head count plus one,
    bumped until free. Issued ids are never renumbered.
    """
    prefix = f"EMP-{date_of_hiring:%d%m%y}-"
    sequence = Employee.objects.count() + 1
    candidate = f"{prefix}{sequence:04d}"
    while Employee.objects.filter(employee_id=candidate).exists():
        sequence += 1
        candidate = f"{prefix}{sequence:04d}"
    return candidate


def store_files(avatar=None, documents=()):
    for upload in [avatar, *documents]:
        if upload is not None:
            validate_upload(upload)
    stored_avatar = save_upload(avatar, AVATAR_FOLDER) if avatar is not None else None
    return stored_avatar, [save_upload(d, DOCUMENT_FOLDER) for d in documents]


def prune_documents(employee, keep_paths):
    """Drop every stored document whose path is not in ``keep_paths``."""
    keep = set(keep_paths)
    kept, results = [], []
    for doc in employee.documents or []:
        if doc.get("path") in keep:
            kept.append(doc)
        else:
            results.append(delete_upload(doc.get("path")))
    return kept, results


def sync_login_role(employee):
    """Give the login that shares the employee's email the employee's role."""
    user = get_user_model().objects.filter(email__iexact=employee.email).first()
    if user is None:
        return SideEffectResult("login_role", detail={"skipped": "no login"})
    user.groups.set([employee.role])
    log.info("Login %s now has role %s", user.pk, employee.role.name)
    return SideEffectResult("login_role", detail={"user_id": user.pk, "role": employee.role.name})


def remove_employee_files(employee):
    paths = [d.get("path") for d in employee.documents or []]
    if employee.avatar:
        paths.append(employee.avatar.get("path"))
    return [delete_upload(p) for p in paths]


def drop_avatar(employee):
    if not employee.avatar:
        return SideEffectResult("delete_file", detail={"skipped": "no avatar"})
    return delete_upload(employee.avatar.get("path"))
