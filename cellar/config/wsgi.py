"""
WSGI config for the cellar backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'cellar.config.settings')

application = get_wsgi_application()
