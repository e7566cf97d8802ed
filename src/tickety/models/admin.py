# src/tickety/models/admin.py
"""Persisted administrator allow-list."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from tickety.db.session import Base


class AdminWallet(Base):
    """Wallet address granted the admin role."""

    __tablename__ = "admin_wallet"

    # Lowercase 0x-prefixed address; the same normalization used for sessions.
    address: Mapped[str] = mapped_column(String(42), primary_key=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
