"""
WSGI / Flask CLI entry point.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi seed-demo
    gunicorn wsgi:app
"""

from maturity_tracker import create_app

app = create_app()
