#!/usr/bin/env python
"""
Command line entry point for the chemviz backend.

Typical local workflow:

    python manage.py migrate
    python manage.py createsuperuser
    python manage.py runserver
"""
import os
import sys


def main() -> None:
    """Run administrative tasks."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "chemviz.settings")
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Install the backend dependencies with "
            "`pip install -e .` and activate that virtual environment."
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
