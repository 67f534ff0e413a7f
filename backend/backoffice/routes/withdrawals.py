from __future__ import annotations
from typing import Literal
from fastapi import APIRouter, Depends, HTTPException, Query

from backoffice.deps import get_withdrawal_workflow
from backoffice.errors import BackofficeError
from backoffice.routes.errors import http_error
from backoffice.schemas.results import BatchResult, CancelResult
from backoffice.schemas.withdrawal import (
    CancelRequest, SettleRequest, WithdrawalApply, WithdrawalPage, WithdrawalPublic,
)
from backoffice.services.withdrawals import WithdrawalWorkflow

router = APIRouter(tags=["withdrawals"])

@router.post("/withdrawals", response_model=WithdrawalPublic, status_code=201)
async def apply_withdrawal(payload: WithdrawalApply, wf: WithdrawalWorkflow = Depends(get_withdrawal_workflow)):
    """Front-end cash-out request: reserves points and leaves the request pending."""
    try:
        req = await wf.apply(
            user_id=payload.user_id,
            money=payload.money,
            bank_name=payload.bank_name,
            bank_no=payload.bank_no,
            payee_name=payload.payee_name,
        )
    except BackofficeError as e:
        raise http_error(e)
    return WithdrawalPublic.model_validate(req)

@router.get("/admin/withdrawals", response_model=WithdrawalPage)
async def list_withdrawals(
    status: Literal["pending", "settled"] | None = Query(default=None),
    uid: int | None = Query(default=None, ge=1),
    wd: str | None = Query(default=None, max_length=64, description="bank account contains"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=500),
    wf: WithdrawalWorkflow = Depends(get_withdrawal_workflow),
):
    try:
        total, rows = await wf.list_requests(status=status, user_id=uid, bank_no_like=wd, page=page, limit=limit)
    except BackofficeError as e:
        raise http_error(e)
    return WithdrawalPage(total=total, page=page, limit=limit, items=[WithdrawalPublic.model_validate(r) for r in rows])

@router.post("/admin/withdrawals/settle", response_model=BatchResult)
async def settle_withdrawals(payload: SettleRequest, wf: WithdrawalWorkflow = Depends(get_withdrawal_workflow)):
    try:
        return await wf.settle(payload.ids)
    except BackofficeError as e:
        raise http_error(e)

@router.post("/admin/withdrawals/cancel", response_model=CancelResult)
async def cancel_withdrawals(payload: CancelRequest, wf: WithdrawalWorkflow = Depends(get_withdrawal_workflow)):
    try:
        return await wf.cancel(payload.ids, all=payload.all)
    except BackofficeError as e:
        raise http_error(e)
