## app/core/celery_app.py

"""
Main Celery Application Configuration

Sets up the Celery instance with Redis as broker and result backend, using
the worker configuration module.
"""

# Third party imports
from celery import Celery

# Create Celery Instance
app = Celery("fleet_scheduler")

# Configure celery from separate config file
app.config_from_object("app.worker.config")

# Auto discover tasks.py modules
app.autodiscover_tasks([
    "app.rates",
])

if __name__ == "__main__":
    app.start()
