from travelbook.tasks.celery_app import celery
from travelbook.tasks import worker_jobs

@celery.task(name="travelbook.tasks.jobs.mark_expired_bookings")
def mark_expired_bookings():
    return worker_jobs.mark_expired_bookings()
