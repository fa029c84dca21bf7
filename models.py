from typing import Optional
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Field, create_engine
from datetime import datetime, timezone

def utcnow():
    return datetime.now(timezone.utc)

class Widget(SQLModel, table=True):
    """Ledger row for one hosted challenge. Never used to restore a challenge."""
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True)    # widget code (6 hex)
    created_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    duration_sec: int = 120
    verdict: str = "pending"
    reason: str = "none"
    time_remaining: Optional[int] = None
    placed_count: int = 0

def make_engine(uri: str):
    # in-memory sqlite must share one connection across green threads
    if uri in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(uri, echo=False, poolclass=StaticPool,
                             connect_args={"check_same_thread": False})
    return create_engine(uri, echo=False)
