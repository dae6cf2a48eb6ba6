"""
Celery configuration for GreekDash backend.
"""
import os
from celery import Celery

# Set the default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('greekdash')

# Load config from Django settings, namespace='CELERY'
app.config_from_object('django.conf:settings', namespace='CELERY')

# Autodiscover tasks in all installed apps (notifications delivery lives there)
app.autodiscover_tasks()

app.conf.timezone = 'UTC'
