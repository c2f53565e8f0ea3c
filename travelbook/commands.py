"""Out-of-band entry point for the expiry sweep: ``bookings-mark-expired``."""
import argparse
import logging
import sys

from travelbook.core.logging import configure_logging

logger = logging.getLogger("travelbook.commands")


def mark_expired(argv: list[str] | None = None, session_factory=None) -> int:
    parser = argparse.ArgumentParser(prog="bookings-mark-expired", description="Mark overdue bookings as expired")
    notify = parser.add_mutually_exclusive_group()
    notify.add_argument("--notify", dest="notify", action="store_true", default=None,
                        help="send booking_expired notifications to owners")
    notify.add_argument("--no-notify", dest="notify", action="store_false")
    args = parser.parse_args(argv)

    configure_logging()
    from travelbook.tasks import worker_jobs

    logger.info("Checking for expired bookings...")
    kwargs = {"notify": args.notify}
    if session_factory is not None:
        kwargs["session_factory"] = session_factory
    result = worker_jobs.mark_expired_bookings(**kwargs)
    if result.get("skipped"):
        logger.error("Expiry sweep skipped: %s", result.get("reason"))
        return 1
    if result["expired"]:
        logger.info("Marked %d bookings as expired.", result["expired"])
    else:
        logger.info("No expired bookings found.")
    if result["failed"]:
        logger.warning("%d bookings could not be expired; they will be retried on the next run.", result["failed"])
    return 0


def main() -> None:
    sys.exit(mark_expired())


if __name__ == "__main__":
    main()
