"""Security events: rate limit hits, rejected admin secrets."""
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.core.clock import utc_now


class SecurityLog(SQLModel, table=True):
    __tablename__ = "security_logs"
    id: int | None = Field(default=None, primary_key=True)
    event: str = Field(index=True)  # rate_limit | admin_denied
    ip: str | None = None
    endpoint: str | None = None
    detail: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
