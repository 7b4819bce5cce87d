"""SQLAlchemy model for externally produced trading signals."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from signal_notify.core.database import UUIDv7TimestampedBase
from signal_notify.core.database.types import UTCDateTime


class AlertSignal(UUIDv7TimestampedBase):
    """A buy or sell signal fired for a symbol.

    Rows are written by the signal generator; this service only reads them
    to build notification content.
    """

    __tablename__ = "alert_signals"

    symbol: Mapped[str] = mapped_column(String(32), nullable=False, comment="Ticker, e.g. BTCUSD")
    action: Mapped[str] = mapped_column(String(10), nullable=False, comment="buy or sell")
    price: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)
    timeframe: Mapped[str] = mapped_column(String(10), nullable=False, comment="e.g. 1H, 4H, 1D")
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)
    signal_timestamp: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)

    __table_args__ = (Index("idx_alert_signals_symbol_timestamp", "symbol", "signal_timestamp"),)

    def __repr__(self) -> str:
        return f"<AlertSignal(id={self.id}, {self.action} {self.symbol} @ {self.price})>"
