from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

class VoucherBatchCreate(BaseModel):
    count: int = Field(gt=0, description="Number of cards to generate")
    face_value: int = Field(gt=0)
    point_value: int = Field(gt=0)
    code_rule: str = "digits"
    pwd_rule: str = "digits"

class VoucherPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    password: str
    face_value: int
    point_value: int
    sale_status: int = 0
    use_status: int = 0
    user_id: int | None = None
    used_at: datetime | None = None
    created_at: datetime

class VoucherPage(BaseModel):
    total: int
    page: int
    limit: int
    items: list[VoucherPublic]

class VoucherDelete(BaseModel):
    ids: list[int] = Field(default_factory=list)
    all: bool = False
