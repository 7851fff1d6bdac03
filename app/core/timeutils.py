from datetime import datetime, timezone


def utcnow() -> datetime:
    """Şu an, UTC (naive). DateTime kolonları timezone'suz; sqlmodel 0.0.45 altına sabit (pyproject)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def epoch_ms(dt: datetime | None = None) -> int:
    """Bildirim payload'ındaki timestamp: epoch milisaniye."""
    dt = dt or utcnow()
    return int(dt.replace(tzinfo=timezone.utc).timestamp() * 1000)
