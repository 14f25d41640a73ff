"""
WSGI config for casa_di_barbara project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'casa_di_barbara.settings')

application = get_wsgi_application()
