import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hotelbook.settings")

app = Celery("hotelbook")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
