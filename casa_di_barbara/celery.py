# casa_di_barbara/celery.py

import os
from celery import Celery

# Default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'casa_di_barbara.settings')

app = Celery('casa_di_barbara')

# Read CELERY_* keys from the Django settings.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load tasks.py from every installed app.
app.autodiscover_tasks()
