from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from typing import Literal
from fastapi import APIRouter, Depends, Query, Response

from backoffice.config import settings
from backoffice.deps import get_voucher_service
from backoffice.errors import BackofficeError
from backoffice.routes.errors import http_error
from backoffice.schemas.results import GenerationResult
from backoffice.schemas.voucher import VoucherBatchCreate, VoucherDelete, VoucherPage, VoucherPublic
from backoffice.services.export import export_vouchers
from backoffice.services.vouchers import VoucherBatchService

router = APIRouter(prefix="/admin/vouchers", tags=["vouchers"])

# one export is capped like the admin page does
EXPORT_LIMIT = 9999

@router.post("/batch", response_model=GenerationResult, status_code=201)
async def generate_batch(payload: VoucherBatchCreate, svc: VoucherBatchService = Depends(get_voucher_service)):
    try:
        return await svc.generate(
            payload.count, payload.face_value, payload.point_value, payload.code_rule, payload.pwd_rule
        )
    except BackofficeError as e:
        raise http_error(e)

@router.get("", response_model=VoucherPage)
async def list_vouchers(
    sale_status: Literal[0, 1] | None = Query(default=None),
    use_status: Literal[0, 1] | None = Query(default=None),
    wd: str | None = Query(default=None, max_length=32, description="code contains"),
    time: int | None = Query(default=None, ge=1, le=365, description="1 = latest batch, N = last N days"),
    export: int = Query(default=0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=500),
    svc: VoucherBatchService = Depends(get_voucher_service),
):
    if export == 1:
        page, limit = 1, EXPORT_LIMIT
    total, rows = await svc.list_vouchers(
        sale_status=sale_status,
        use_status=use_status,
        code_like=wd,
        days=time if time and time != 1 else None,
        latest_batch=time == 1,
        page=page,
        limit=limit,
    )
    if export == 1:
        body = export_vouchers(rows, settings.voucher_export_header, settings.export_timezone)
        filename = f"card_{datetime.now(dt_tz.utc).strftime('%Y-%m-%d')}.csv"
        return Response(
            content=body,
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}", "Cache-Control": "must-revalidate"},
        )
    return VoucherPage(total=total, page=page, limit=limit, items=[VoucherPublic.model_validate(r) for r in rows])

@router.post("/delete")
async def delete_vouchers(payload: VoucherDelete, svc: VoucherBatchService = Depends(get_voucher_service)):
    try:
        removed = await svc.delete_vouchers(payload.ids, all=payload.all)
    except BackofficeError as e:
        raise http_error(e)
    return {"removed": removed}
