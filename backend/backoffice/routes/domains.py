from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from backoffice.deps import get_domain_store
from backoffice.errors import StorageError
from backoffice.routes.errors import http_error
from backoffice.schemas.domain import DomainEntry, ImportSummary
from backoffice.services.export import dump_settings
from backoffice.services.settings_store import FlatFileStore, import_settings

router = APIRouter(prefix="/admin/domains", tags=["domains"])

@router.get("", response_model=list[DomainEntry])
async def list_domains(store: FlatFileStore = Depends(get_domain_store)):
    try:
        return [DomainEntry(**row) for _k, row in store.items()]
    except StorageError as e:
        raise http_error(e)

@router.get("/export")
async def export_domains(store: FlatFileStore = Depends(get_domain_store)):
    try:
        body = dump_settings(dict(store.items()))
    except StorageError as e:
        raise http_error(e)
    return Response(
        content=body.encode("utf-8"),
        media_type="application/octet-stream",
        headers={"Content-Disposition": "attachment; filename=mac_domains.txt"},
    )

@router.post("/import", response_model=ImportSummary)
async def import_domains(request: Request, store: FlatFileStore = Depends(get_domain_store)):
    """Body is the raw exchange file, one `$`-delimited entry per line."""
    try:
        text = (await request.body()).decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Import file must be UTF-8 text")
    try:
        imported, skipped = import_settings(store, text)
    except StorageError as e:
        raise http_error(e)
    return ImportSummary(imported=imported, skipped_lines=skipped)

@router.get("/{key:path}", response_model=DomainEntry)
async def get_domain(key: str, store: FlatFileStore = Depends(get_domain_store)):
    try:
        row = store.get(key)
    except StorageError as e:
        raise http_error(e)
    if row is None:
        raise HTTPException(status_code=404, detail="Domain not found")
    return DomainEntry(**row)

@router.put("/{key:path}", response_model=DomainEntry)
async def put_domain(key: str, payload: DomainEntry, store: FlatFileStore = Depends(get_domain_store)):
    if payload.site_url != key:
        raise HTTPException(status_code=400, detail="site_url must match the key")
    try:
        saved = store.set(key, payload.model_dump())
    except StorageError as e:
        raise http_error(e)
    if not saved:
        raise HTTPException(status_code=503, detail="Could not save settings")
    return payload

@router.delete("/{key:path}", status_code=204)
async def delete_domain(key: str, store: FlatFileStore = Depends(get_domain_store)):
    try:
        removed = store.delete(key)
    except StorageError as e:
        raise http_error(e)
    if not removed:
        raise HTTPException(status_code=404, detail="Domain not found")
    return Response(status_code=204)
