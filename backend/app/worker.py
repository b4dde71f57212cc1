# backend/app/worker.py

"""
Celery worker entry point.
Importing the tasks module registers the @celery_app.task decorators, so
`celery -A app.worker worker` finds everything it needs.
"""

import logging

from app.core.celery_app import celery_app
from app.core.config import settings
import app.background.tasks

logging.basicConfig(level=settings.LOG_LEVEL)
