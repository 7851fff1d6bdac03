# scripts/run_automation_tick.py
"""
Bir otomasyon tick'ini senkron çalıştırır ve sonucu JSON olarak basar.
Sistem cron'u için: */15 * * * * cd /srv/pushcast && python scripts/run_automation_tick.py
"""
import json
import sys
from pathlib import Path

# Proje kökünü sys.path'e ekle (app.* importları için)
BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))

from dotenv import load_dotenv  # noqa: E402

load_dotenv(BASE_DIR / ".env")

from app.core.config import settings  # noqa: E402
from app.core.database import init_db  # noqa: E402
from app.logging import setup_logging  # noqa: E402
from app.tasks.scheduler import run_automation_tick  # noqa: E402


def run() -> int:
    setup_logging(level=settings.log_level)
    init_db()
    result = run_automation_tick()
    if result is None:
        print(json.dumps({"success": False}))
        return 1
    print(json.dumps({
        "success": True,
        "total_sent": result.total_sent,
        "processed_at": result.processed_at.isoformat(),
    }, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(run())
