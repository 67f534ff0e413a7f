from __future__ import annotations
from functools import lru_cache
from pathlib import Path
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backoffice.config import settings
from backoffice.db import get_session_factory
from backoffice.services.settings_store import FlatFileStore
from backoffice.services.vouchers import VoucherBatchService
from backoffice.services.withdrawals import WithdrawalPolicy, WithdrawalWorkflow


def get_withdrawal_workflow(
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> WithdrawalWorkflow:
    return WithdrawalWorkflow(sessions, WithdrawalPolicy.from_settings(settings))


def get_voucher_service(
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> VoucherBatchService:
    return VoucherBatchService(
        sessions,
        max_batch=settings.voucher_max_batch,
        max_attempts=settings.voucher_max_attempts,
        code_length=settings.voucher_code_length,
        pwd_length=settings.voucher_pwd_length,
    )


@lru_cache(maxsize=None)
def store_for(path: str) -> FlatFileStore:
    """One store per file, so its lock covers every writer in this process."""
    return FlatFileStore(path)


def get_domain_store() -> FlatFileStore:
    return store_for(str(Path(settings.settings_dir).resolve() / "domain.json"))
