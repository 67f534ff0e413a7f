from __future__ import annotations
from typing import Literal
from pydantic import BaseModel, Field, computed_field

from backoffice.schemas.voucher import VoucherPublic

Outcome = Literal["ok", "partial", "failed"]

class ItemFailure(BaseModel):
    id: int
    reason: str                 # not_found | already_settled | storage_error | ...
    detail: str = ""
    retryable: bool = False

class BatchResult(BaseModel):
    requested: int
    succeeded: list[int] = Field(default_factory=list)
    skipped: list[ItemFailure] = Field(default_factory=list)   # idempotent no-ops
    failures: list[ItemFailure] = Field(default_factory=list)

    @computed_field
    @property
    def outcome(self) -> Outcome:
        if not self.failures:
            return "ok"
        if self.succeeded or self.skipped:
            return "partial"
        return "failed"

class CancelResult(BatchResult):
    # ids whose pending reservation was handed back to `available`
    released: list[int] = Field(default_factory=list)

class SlotFailure(BaseModel):
    slot: int
    reason: str
    attempts: int
    detail: str = ""
    retryable: bool = False

class GenerationResult(BaseModel):
    requested: int
    created: list[VoucherPublic] = Field(default_factory=list)
    failed_slots: list[SlotFailure] = Field(default_factory=list)

    @computed_field
    @property
    def outcome(self) -> Outcome:
        if not self.failed_slots:
            return "ok"
        return "partial" if self.created else "failed"
