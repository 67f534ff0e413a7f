from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, DateTime, CheckConstraint, func
from backoffice.db import Base, utcnow

class UserBalance(Base):
    """
    Two-field points balance per user.
      - available => spendable points
      - frozen    => points reserved by pending withdrawal requests
    Both columns are non-negative; every write goes through a guarded UPDATE
    so a racing writer fails the guard instead of driving a column below zero.
    """
    __tablename__ = "user_balances"

    # users live in the front-end database, so no FK
    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    frozen: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("available >= 0", name="ck_user_balances_available_nonneg"),
        CheckConstraint("frozen >= 0", name="ck_user_balances_frozen_nonneg"),
    )
