""" Workers are started with "celery -A jw_project worker -l info"
    -A jw_project imports jw_project/__init__.py,
    which exposes celery_app. """
from __future__ import annotations
import os
from celery import Celery

# ensure Django settings are set for Celery
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "jw_project.settings")

celery_app = Celery("jw_project")

# read config from Django settings, using CELERY_ prefix
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# autoload tasks from installed apps
celery_app.autodiscover_tasks()
