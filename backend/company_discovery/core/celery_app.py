from celery import Celery

from .config import get_settings
from .logging import configure_logging

settings = get_settings()
configure_logging()

# Without REDIS_URL the app still imports; producers check the setting and skip.
_broker = settings.REDIS_URL or "memory://"

celery_app = Celery(
    "company_discovery",
    broker=_broker,
    backend=settings.REDIS_URL,
)

celery_app.conf.update(
    task_routes={
        "company_discovery.services.notifications.send_partnership_inquiry_email": {
            "queue": "notifications"
        }
    },
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    imports=("company_discovery.services.notifications",),
)
