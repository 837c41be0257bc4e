"""Admin auth: X-Admin-Secret header on the JSON admin API."""
import hmac
import logging

from fastapi import Depends, Header, HTTPException, Request
from sqlmodel import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import client_ip
from app.models import SecurityLog

log = logging.getLogger("bazar.admin")


def secret_matches(provided: str | None, expected: str) -> bool:
    """Constant-time compare of the X-Admin-Secret header against ADMIN_SECRET."""
    return hmac.compare_digest((provided or "").strip().encode("utf-8"), expected.encode("utf-8"))


def require_admin(
    request: Request,
    x_admin_secret: str | None = Header(None, alias="X-Admin-Secret"),
    db: Session = Depends(get_db),
) -> None:
    expected = settings.admin_secret
    if not expected:
        raise HTTPException(status_code=503, detail="Admin API is not configured (ADMIN_SECRET missing).")
    if not secret_matches(x_admin_secret, expected):
        ip = client_ip(request)
        log.warning("admin secret rejected ip=%s path=%s", ip, request.url.path)
        db.add(SecurityLog(event="admin_denied", ip=ip, endpoint=request.url.path, detail="Invalid X-Admin-Secret"))
        db.commit()
        raise HTTPException(status_code=403, detail="Forbidden.")
