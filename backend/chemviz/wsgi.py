"""
WSGI entry point for the chemviz backend.

Point gunicorn (or any WSGI server) at `chemviz.wsgi:application`.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "chemviz.settings")

application = get_wsgi_application()
