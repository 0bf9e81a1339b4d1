"""WSGI entry point for LifeDrop; exposes ``application`` for gunicorn and friends."""

import os

from dotenv import load_dotenv
from django.core.wsgi import get_wsgi_application

load_dotenv(override=False)

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'lifedrop.settings')

application = get_wsgi_application()
