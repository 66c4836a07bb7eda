from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, Integer, func
from app.db import Base


class TradeSnapshot(Base):
    __tablename__ = "trade_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # One row per storage key; the whole trade history lives in `payload`
    storage_key: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    payload: Mapped[str] = mapped_column(Text)

    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
