#!/usr/bin/env python
"""Command-line entry point for LifeDrop administrative tasks."""
import os
import sys

from dotenv import load_dotenv


def main():
    """Load .env, then hand over to Django's management utility."""
    load_dotenv(override=False)
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'lifedrop.settings')
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
