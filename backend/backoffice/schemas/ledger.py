from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from datetime import datetime

class LedgerEntryPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: str
    points_delta: int
    remarks: str | None = None
    ref_withdrawal_id: int | None = None
    created_at: datetime

class BalancePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    available: int
    frozen: int

class LedgerSnapshot(BaseModel):
    user_id: int | None = None
    balance: BalancePublic | None = None
    total_delta: int
    entries: list[LedgerEntryPublic]
