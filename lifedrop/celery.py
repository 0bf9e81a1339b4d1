import os

from celery import Celery
from dotenv import load_dotenv

load_dotenv(override=False)

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "lifedrop.settings")

app = Celery("lifedrop")

# CELERY_* values in settings.py, including the beat schedule
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up blood/tasks.py
app.autodiscover_tasks()
