# Celery instance is defined in jw_project/celery.py
# It points the celery_app object at the Django settings
from .celery import celery_app

# 'from jw_project import *', only exports celery_app
__all__ = ("celery_app",)
