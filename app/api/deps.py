"""Yetki: operatör işlemleri X-Admin-Secret, otomasyon tick'i Bearer CRON_SECRET ile."""
from fastapi import Depends, Header, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.security import constant_time_compare

security = HTTPBearer(auto_error=False)


def require_admin(
    x_admin_secret: str | None = Header(None, alias="X-Admin-Secret"),
    admin_secret: str | None = Query(None, description="Admin şifresi"),
) -> None:
    """Header veya query ile secret kontrolü (constant-time compare)."""
    if not settings.admin_secret:
        raise HTTPException(status_code=503, detail="Admin işlemleri yapılandırılmamış (ADMIN_SECRET yok).")
    secret = (x_admin_secret or admin_secret) or ""
    if not constant_time_compare(secret, settings.admin_secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Yetkisiz.")


def require_cron_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> None:
    if not settings.cron_secret:
        raise HTTPException(status_code=503, detail="Cron yapılandırılmamış (CRON_SECRET yok).")
    if not credentials or not constant_time_compare(credentials.credentials, settings.cron_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Yetkisiz.",
            headers={"WWW-Authenticate": "Bearer"},
        )
