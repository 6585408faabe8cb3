import asyncio
import threading
import schedule
import logging
from backend.poller import Poller


def run_schedule(poller: Poller, interval_seconds: float = 300, tick_seconds: float = 1.0) -> threading.Event:
    """Schedule periodic poll cycles in a background thread. Set the returned event to stop it."""

    scheduler = schedule.Scheduler()
    stop_event = threading.Event()

    def job() :
        try :
            asyncio.run(poller.run_cycle())
        except Exception as e :
            logging.error(f"Scheduled poll failed: {e}")

    scheduler.every(max(1, int(interval_seconds))).seconds.do(job)

    def run_continuously() :
        while not stop_event.is_set() :
            scheduler.run_pending()
            stop_event.wait(tick_seconds)
        scheduler.clear()

    thread = threading.Thread(target = run_continuously, daemon = True, name = "aqi-poll-scheduler")
    thread.start()
    logging.info(f"Scheduler started in background thread, polling every {interval_seconds:.0f}s")
    return stop_event
