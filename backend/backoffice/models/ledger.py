from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, UniqueConstraint, func
from backoffice.db import Base, utcnow

class LedgerType:
    """Points event kinds. Sign convention for points_delta in brackets."""
    RECHARGE = "recharge"              # +  voucher / purchase
    REGISTER_PROMO = "register_promo"  # +  referral sign-up reward
    VISIT_PROMO = "visit_promo"        # +  referral visit reward
    DISTRIBUTION_1 = "distribution_1"  # +  first-level commission
    DISTRIBUTION_2 = "distribution_2"  # +
    DISTRIBUTION_3 = "distribution_3"  # +
    UPGRADE = "upgrade"                # -  group upgrade
    CONSUME = "consume"                # -  paid content
    WITHDRAWAL = "withdrawal"          # -  settled cash-out

    ALL = (
        RECHARGE, REGISTER_PROMO, VISIT_PROMO,
        DISTRIBUTION_1, DISTRIBUTION_2, DISTRIBUTION_3,
        UPGRADE, CONSUME, WITHDRAWAL,
    )


class LedgerEntry(Base):
    """
    Append-only log of balance-affecting events per user.
    Rows are never updated or deleted here.
    """
    __tablename__ = "ledger_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    points_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    remarks: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Outlives the withdrawal row it refers to, so no FK
    ref_withdrawal_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        # one withdrawal entry per request; NULL refs never collide
        UniqueConstraint("type", "ref_withdrawal_id", name="uq_ledger_entries_type_ref"),
    )
