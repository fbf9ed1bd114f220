"""Celery application configuration for background cache maintenance."""

import os

from celery import Celery
from celery.schedules import crontab

from pantryplanner.config import get_settings

# Redis serves as both broker and result store
REDIS_URL = get_settings().redis_url

# Create Celery application
celery_app = Celery(
    "pantryplanner",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["pantryplanner.tasks.cache"],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="America/Los_Angeles",
    enable_utc=True,
    # Task execution settings
    task_acks_late=True,  # Acknowledge after task completes
    task_reject_on_worker_lost=True,  # Requeue if worker dies
    worker_prefetch_multiplier=1,
    # Result settings
    result_expires=86400,
    # Retry settings (default for all tasks)
    task_default_retry_delay=60,
    task_max_retries=3,
    # Beat scheduler settings
    beat_schedule={
        "daily-recipe-cache-warm": {
            "task": "pantryplanner.tasks.cache.warm_recipe_cache_task",
            "schedule": crontab(hour=5, minute=0),  # Before the pantry opens
            "options": {"queue": "cache"},
        },
        "weekly-recipe-cache-prune": {
            "task": "pantryplanner.tasks.cache.prune_recipe_cache_task",
            "schedule": crontab(hour=3, minute=0, day_of_week=0),  # Sundays
            "options": {"queue": "cache"},
        },
    },
    # Queue routing
    task_routes={
        "pantryplanner.tasks.cache.*": {"queue": "cache"},
    },
    # Logging
    worker_hijack_root_logger=False,
)

if os.name == "nt":
    celery_app.conf.update(
        worker_pool="solo",
    )
