"""
Uygulama içi otomasyon zamanlayıcısı (APScheduler).

AUTOMATION_INTERVAL_MINUTES > 0 ise tick bu süreçte periyodik çalışır.
0 ise kapalıdır; tick dış cron ile /api/cron veya scripts/run_automation_tick.py üzerinden tetiklenir.
Aynı anda birden fazla süreç tick çalıştırsa da gönderim işaretlerinin tekil kısıtı çift gönderimi engeller.
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import Session

from app.core.config import settings
from app.core.database import engine
from app.core.exceptions import PushError
from app.services.automation import TickResult, process_tick
from app.services.push import get_push_service

log = logging.getLogger("pushcast.scheduler")

scheduler: BackgroundScheduler | None = None


def run_automation_tick() -> TickResult | None:
    """Kendi oturumunu açar; hata loglanır, zamanlayıcı thread'i düşmez."""
    try:
        push = get_push_service()
        with Session(engine) as db:
            return process_tick(db, push)
    except PushError as e:
        log.warning("Automation tick skipped: %s", e)
    except Exception as e:
        log.exception("Automation tick failed: %s", e)
    return None


def get_scheduler() -> BackgroundScheduler:
    global scheduler
    if scheduler is None:
        scheduler = BackgroundScheduler(
            job_defaults={
                "coalesce": True,  # Kaçırılan çalıştırmalar tek seferde birleşir
                "max_instances": 1,
                "misfire_grace_time": 60,
            }
        )
    return scheduler


def start_scheduler() -> bool:
    minutes = settings.automation_interval_minutes
    if minutes <= 0:
        log.info("In-process automation scheduler disabled (AUTOMATION_INTERVAL_MINUTES=0)")
        return False
    sched = get_scheduler()
    sched.add_job(
        run_automation_tick,
        trigger=IntervalTrigger(minutes=minutes),
        id="automation_tick",
        name="Process active automation flows",
        replace_existing=True,
    )
    if not sched.running:
        sched.start()
    log.info("Automation scheduler started (every %d minutes)", minutes)
    return True


def stop_scheduler() -> None:
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=True)
        log.info("Automation scheduler stopped")
    scheduler = None
