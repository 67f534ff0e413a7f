from __future__ import annotations
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.db import utcnow
from backoffice.errors import StateError, ValidationError
from backoffice.models.ledger import LedgerEntry, LedgerType


class DuplicateLedgerEntry(StateError):
    reason = "duplicate_ledger_entry"


async def append_entry(
    session: AsyncSession,
    *,
    user_id: int,
    type: str,
    points_delta: int,
    remarks: str | None = None,
    ref_withdrawal_id: int | None = None,
) -> LedgerEntry:
    """
    Append one event. With a ref_withdrawal_id the (type, ref) pair is unique,
    so a second writer for the same request fails here and its unit rolls back.
    """
    if type not in LedgerType.ALL:
        raise ValidationError(f"unknown ledger type {type!r}")
    entry = LedgerEntry(
        user_id=user_id,
        type=type,
        points_delta=int(points_delta),
        remarks=remarks,
        ref_withdrawal_id=ref_withdrawal_id,
        created_at=utcnow(),
    )
    session.add(entry)
    try:
        await session.flush()
    except IntegrityError as e:
        raise DuplicateLedgerEntry(
            f"{type} entry already exists for withdrawal {ref_withdrawal_id}", ref_withdrawal_id=ref_withdrawal_id
        ) from e
    return entry


async def list_entries(
    session: AsyncSession,
    *,
    user_id: int | None = None,
    type: str | None = None,
    limit: int = 100,
) -> list[LedgerEntry]:
    q = select(LedgerEntry)
    if user_id is not None:
        q = q.where(LedgerEntry.user_id == user_id)
    if type is not None:
        q = q.where(LedgerEntry.type == type)
    q = q.order_by(LedgerEntry.id.desc()).limit(limit)
    return list((await session.execute(q)).scalars().all())


async def ledger_total(session: AsyncSession, user_id: int) -> int:
    total = await session.scalar(
        select(func.coalesce(func.sum(LedgerEntry.points_delta), 0)).where(LedgerEntry.user_id == user_id)
    )
    return int(total or 0)
