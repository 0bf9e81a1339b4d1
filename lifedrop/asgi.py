"""ASGI entry point for LifeDrop; exposes ``application``."""

import os

from dotenv import load_dotenv
from django.core.asgi import get_asgi_application

load_dotenv(override=False)

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'lifedrop.settings')

application = get_asgi_application()
