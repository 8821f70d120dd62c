### app/worker/config.py

"""
Celery configuration settings

This file contains all the Celery configurations including:
- Broker and result backend settings
- Task serialization settings
- Beat schedule for periodic tasks
"""

# Third party imports
from celery.schedules import crontab

# Local imports
from app.core.config import settings

# Broker and result backend configurations
broker_url = settings.celery_broker
result_backend = settings.celery_backend

# Task serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"
timezone = "UTC"
enable_utc = True

# Task settings
task_track_started = True
task_time_limit = 10 * 60  # 10 minutes
task_soft_time_limit = 8 * 60  # 8 minutes
worker_prefetch_multiplier = 1
task_acks_late = True


# Beat schedule configuration
beat_schedule = {
    # Switch off lease plans past their end date, shortly after midnight
    "deactivate-expired-lease-plans": {
        "task": "app.rates.tasks.deactivate_expired_lease_plans",
        "schedule": crontab(hour=0, minute=5),
        "options": {
            "timezone": "America/New_York"
        }
    },
}

# Worker configuration
worker_hijack_root_logger = False
worker_log_color = False
