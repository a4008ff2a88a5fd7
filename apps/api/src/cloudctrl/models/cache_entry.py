"""Cached provider responses and the daily refresh log."""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class CacheEntry(Base):
    """One cached payload per (user, provider, data type)."""

    __tablename__ = "cache_entries"
    __table_args__ = (
        UniqueConstraint("user_id", "provider", "data_type", name="uq_cache_entry_key"),
        Index("ix_cache_entries_expires_at", "expires_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String(16), nullable=False)
    data_type: Mapped[str] = mapped_column(String(128), nullable=False)
    data: Mapped[Any] = mapped_column(JSON, nullable=False)

    # Timestamps are written by the cache from its own clock so expiry
    # comparisons never mix DB time and application time
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<CacheEntry {self.user_id}:{self.provider}:{self.data_type}>"


class RefreshLog(Base):
    """Append-only record of completed daily refreshes."""

    __tablename__ = "refresh_log"
    __table_args__ = (
        Index("ix_refresh_log_lookup", "user_id", "provider", "refreshed_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    provider: Mapped[str] = mapped_column(String(16), nullable=False)
    refreshed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<RefreshLog {self.user_id}:{self.provider} at {self.refreshed_at}>"
