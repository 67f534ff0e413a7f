from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, SmallInteger, DateTime, UniqueConstraint, func
from backoffice.db import Base, utcnow

class Voucher(Base):
    """
    Prepaid points card. `code` is the lookup key and globally unique;
    `password` is random per card but may repeat across cards.
    use_status moves 0 -> 1 only through front-end redemption.
    """
    __tablename__ = "vouchers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(32), nullable=False)
    password: Mapped[str] = mapped_column(String(32), nullable=False)

    face_value: Mapped[int] = mapped_column(Integer, nullable=False)
    point_value: Mapped[int] = mapped_column(Integer, nullable=False)

    sale_status: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)  # 0 unsold | 1 sold
    use_status: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)   # 0 unused | 1 used
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("code", name="uq_vouchers_code"),
    )
