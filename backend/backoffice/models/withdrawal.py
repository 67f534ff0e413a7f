from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Numeric, DateTime, CheckConstraint, Index, func
from backoffice.db import Base, utcnow

PENDING = "pending"
SETTLED = "settled"

class WithdrawalRequest(Base):
    """
    A user's request to cash out points.
    Lifecycle: pending -> settled (terminal) or pending -> removed (cancel).
    While pending, `points` sits in the owner's frozen balance.
    """
    __tablename__ = "withdrawal_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)

    points: Mapped[int] = mapped_column(Integer, nullable=False)
    money: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)   # display amount only

    bank_name: Mapped[str] = mapped_column(String(60), nullable=False, default="")
    bank_no: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    payee_name: Mapped[str] = mapped_column(String(60), nullable=False, default="")

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=PENDING)  # pending | settled
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    settled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("points > 0", name="ck_withdrawal_requests_points_pos"),
        CheckConstraint("status IN ('pending', 'settled')", name="ck_withdrawal_requests_status"),
        Index("ix_withdrawal_requests_status", "status"),
        # ids stay unique after deletes; ledger rows keep referring to old ones
        {"sqlite_autoincrement": True},
    )
