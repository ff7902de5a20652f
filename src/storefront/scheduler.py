"""
Periodic maintenance for the stock-state stores.

Reservations expire lazily; the sweeper removes them on a fixed interval so
the ledger does not grow between requests. Inside the web process use
``start_sweeper_thread``; as a separate process,
``python -m storefront.scheduler`` calls the expire endpoint of a running app.
"""

import logging
import threading
from typing import Callable, Optional

import requests
import schedule

from storefront.core.config import Config, config as default_config
from storefront.services.reservation_service import ReservationStore

logger = logging.getLogger(__name__)

SweepJob = Callable[[], int]


def run_sweep(job: SweepJob) -> int:
    """Run one sweep; failures are logged and the next tick tries again."""
    try:
        return job()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error(f"Reservation sweep failed: {e}")
    except Exception as e:
        logger.exception(f"Unexpected error during reservation sweep: {e}")
    return 0


def build_scheduler(job: SweepJob, interval_seconds: int) -> schedule.Scheduler:
    scheduler = schedule.Scheduler()
    scheduler.every(interval_seconds).seconds.do(run_sweep, job)
    return scheduler


def run_sweeper(
    job: SweepJob,
    interval_seconds: int,
    stop_event: Optional[threading.Event] = None,
) -> None:
    """Block, sweeping every `interval_seconds`, until `stop_event` is set."""
    scheduler = build_scheduler(job, interval_seconds)
    stop_event = stop_event or threading.Event()
    logger.info(f"Reservation sweeper started (every {interval_seconds}s)")

    while not stop_event.is_set():
        scheduler.run_pending()
        stop_event.wait(1)

    scheduler.clear()
    logger.info("Reservation sweeper stopped")


def start_sweeper_thread(store: ReservationStore, interval_seconds: int) -> threading.Event:
    """Sweep `store` on a daemon thread; set the returned event to stop it."""
    stop_event = threading.Event()
    thread = threading.Thread(
        target=run_sweeper,
        args=(store.sweep, interval_seconds, stop_event),
        name="reservation-sweeper",
        daemon=True,
    )
    thread.start()
    return stop_event


def remote_sweep_job(base_url: str, timeout: int = 10) -> SweepJob:
    """A sweep that asks a running app to expire its reservations."""
    url = f"{base_url.rstrip('/')}/api/stock/reservations/expire"

    def job() -> int:
        response = requests.post(url, timeout=timeout)
        response.raise_for_status()
        cleaned = response.json().get("cleaned", 0)
        if cleaned:
            logger.info(f"Remote sweep removed {cleaned} expired reservation(s)")
        return cleaned

    return job


def main(app_config: Optional[Config] = None) -> None:
    app_config = app_config or default_config
    logging.basicConfig(
        level=getattr(logging, app_config.app.log_level.upper(), logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    try:
        run_sweeper(
            remote_sweep_job(app_config.app.base_url),
            app_config.stock.sweep_interval_seconds,
        )
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
