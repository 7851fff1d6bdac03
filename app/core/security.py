import hmac


def constant_time_compare(provided: str | None, expected: str | None) -> bool:
    """Timing-safe karşılaştırma; detay sızdırmaz."""
    p = (provided or "").encode("utf-8")
    e = (expected or "").encode("utf-8")
    if len(p) != len(e):
        # Sabit süre için aynı uzunlukta karşılaştır (dummy ile)
        dummy = b"\x00" * max(len(p), len(e))
        hmac.compare_digest(p if len(p) >= len(e) else dummy[: len(p)], e if len(e) >= len(p) else dummy[: len(e)])
        return False
    return hmac.compare_digest(p, e)
