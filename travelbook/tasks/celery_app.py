from urllib.parse import urlparse, urlunparse, parse_qs, urlencode

from celery import Celery
from celery.signals import setup_logging
from travelbook.core.config import settings
from travelbook.core.logging import configure_logging


def _redis_url_for_celery(url: str) -> str:
    """Celery requires ssl_cert_reqs for rediss:// (e.g. Upstash TLS)."""
    if not url or not url.strip().lower().startswith("rediss://"):
        return url
    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    if "ssl_cert_reqs" not in qs:
        qs["ssl_cert_reqs"] = ["CERT_NONE"]
        new_query = urlencode(qs, doseq=True)
        return urlunparse(parsed._replace(query=new_query))
    return url


_redis_url = _redis_url_for_celery(settings.REDIS_URL)

celery = Celery(
    "travelbook",
    broker=_redis_url,
    backend=_redis_url,
    include=["travelbook.tasks.jobs"],
)

celery.conf.timezone = "Asia/Jakarta"


@setup_logging.connect
def on_setup_logging(**kwargs):
    configure_logging()


celery.conf.beat_schedule = {
    "mark-expired-bookings": {
        "task": "travelbook.tasks.jobs.mark_expired_bookings",
        "schedule": settings.SWEEP_INTERVAL_SECONDS,
    },
}
