from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, model_validator

class WithdrawalApply(BaseModel):
    user_id: int = Field(gt=0)
    money: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    bank_name: str = Field(min_length=1, max_length=60)
    bank_no: str = Field(min_length=1, max_length=64)
    payee_name: str = Field(min_length=1, max_length=60)

class WithdrawalPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    points: int
    money: Decimal
    bank_name: str
    bank_no: str
    payee_name: str
    status: str
    requested_at: datetime
    settled_at: datetime | None = None

class WithdrawalPage(BaseModel):
    total: int
    page: int
    limit: int
    items: list[WithdrawalPublic]

class SettleRequest(BaseModel):
    ids: list[int] = Field(min_length=1)

class CancelRequest(BaseModel):
    ids: list[int] = Field(default_factory=list)
    all: bool = False

    @model_validator(mode="after")
    def _ids_or_all(self):
        if not self.all and not self.ids:
            raise ValueError("either ids or all=true is required")
        return self
