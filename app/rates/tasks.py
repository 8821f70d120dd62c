### app/rates/tasks.py

# Standard library imports
from datetime import date

# Third party imports
from celery import shared_task

# Local imports
from app.core.db import SessionLocal
from app.rates.services import LeasePlanService
from app.utils.logger import get_logger

logger = get_logger(__name__)


@shared_task(bind=True, name="app.rates.tasks.deactivate_expired_lease_plans")
def deactivate_expired_lease_plans(self):
    """
    Switch off lease plans whose end date has passed.
    Runs nightly from the beat schedule.
    """
    task_id = self.request.id
    logger.info(f"[Task ID: {task_id}] Deactivating expired lease plans")
    db = SessionLocal()
    try:
        count = LeasePlanService(db).auto_deactivate_expired_plans(date.today())
        logger.info(f"[Task ID: {task_id}] Deactivated {count} expired lease plans")
        return {"deactivated": count}
    finally:
        db.close()
