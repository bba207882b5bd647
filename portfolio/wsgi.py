"""
WSGI config for the portfolio contact backend.

It exposes the WSGI callable as a module-level variable named ``application``.
Served by gunicorn with deployment/gunicorn/gunicorn_config.py.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'portfolio.settings')

application = get_wsgi_application()
