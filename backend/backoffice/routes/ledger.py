from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.db import get_session
from backoffice.models.ledger import LedgerType
from backoffice.schemas.ledger import BalancePublic, LedgerEntryPublic, LedgerSnapshot
from backoffice.services.balance import get_balance
from backoffice.services.ledger import ledger_total, list_entries

router = APIRouter(tags=["ledger"])

@router.get("/admin/ledger", response_model=LedgerSnapshot)
async def get_ledger(
    user_id: int | None = Query(default=None, ge=1),
    type: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    session: AsyncSession = Depends(get_session),
):
    if type is not None and type not in LedgerType.ALL:
        raise HTTPException(status_code=400, detail="Unknown ledger type")
    entries = await list_entries(session, user_id=user_id, type=type, limit=limit)
    bal = None
    total = sum(e.points_delta for e in entries)
    if user_id is not None:
        row = await get_balance(session, user_id)
        bal = BalancePublic.model_validate(row) if row else None
        total = await ledger_total(session, user_id)
    return LedgerSnapshot(
        user_id=user_id,
        balance=bal,
        total_delta=total,
        entries=[LedgerEntryPublic.model_validate(e) for e in entries],
    )
