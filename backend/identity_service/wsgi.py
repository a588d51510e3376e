"""WSGI entry point for gunicorn (``identity_service.wsgi:app``)."""

from identity_service import create_app

app = create_app()
