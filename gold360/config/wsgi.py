"""
WSGI config for the Gold360 API.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'gold360.config.settings')

application = get_wsgi_application()
