from __future__ import annotations
import secrets
from datetime import datetime, timedelta

import structlog
from sqlalchemy import select, delete, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backoffice.db import utcnow
from backoffice.errors import ConflictError, StorageError, ValidationError
from backoffice.models.voucher import Voucher
from backoffice.schemas.results import GenerationResult, SlotFailure
from backoffice.schemas.voucher import VoucherPublic
from backoffice.services.codes import Chooser, generate_code, normalize_rule

log = structlog.get_logger()


def _insert_for(session: AsyncSession):
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return pg_insert
    if name == "sqlite":
        return sqlite_insert
    raise StorageError(f"insert-if-absent not supported on {name}")


class VoucherBatchService:
    """
    Bulk prepaid-card generation.

    Codes are unique across the table and within a batch; every card is its
    own INSERT ... ON CONFLICT (code) DO NOTHING, so two batch jobs racing for
    the same code cannot both commit it. A slot that keeps colliding gives up
    after `max_attempts` draws instead of spinning as the code space fills.
    """

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        *,
        max_batch: int = 9999,
        max_attempts: int = 10,
        code_length: int = 16,
        pwd_length: int = 8,
        choice: Chooser = secrets.choice,
    ):
        self._sessions = sessions
        self.max_batch = max_batch
        self.max_attempts = max_attempts
        self.code_length = code_length
        self.pwd_length = pwd_length
        self._choice = choice

    async def generate(
        self,
        count: int,
        face_value: int,
        point_value: int,
        code_rule: str | int,
        pwd_rule: str | int,
    ) -> GenerationResult:
        if count <= 0 or count > self.max_batch:
            raise ValidationError(f"count must be between 1 and {self.max_batch}", count=count)
        if face_value <= 0 or point_value <= 0:
            raise ValidationError("face_value and point_value must be > 0")
        code_rule = normalize_rule(code_rule)
        pwd_rule = normalize_rule(pwd_rule)

        batch_at = utcnow()
        seen: set[str] = set()
        result = GenerationResult(requested=count)

        for slot in range(count):
            try:
                v = await self._fill_slot(seen, face_value, point_value, code_rule, pwd_rule, batch_at)
            except ConflictError as e:
                log.warning("voucher_slot_exhausted", slot=slot, attempts=self.max_attempts)
                result.failed_slots.append(SlotFailure(slot=slot, reason=e.reason, attempts=self.max_attempts, detail=e.message))
            except StorageError as e:
                result.failed_slots.append(
                    SlotFailure(slot=slot, reason=e.reason, attempts=e.context.get("attempt", 0), detail=e.message, retryable=True)
                )
            else:
                result.created.append(v)

        log.info(
            "voucher_batch_generated",
            requested=count,
            created=len(result.created),
            failed=len(result.failed_slots),
            code_rule=code_rule,
            pwd_rule=pwd_rule,
        )
        return result

    async def _fill_slot(
        self,
        seen: set[str],
        face_value: int,
        point_value: int,
        code_rule: str,
        pwd_rule: str,
        created_at: datetime,
    ) -> VoucherPublic:
        for attempt in range(1, self.max_attempts + 1):
            code = generate_code(self.code_length, code_rule, self._choice)
            if code in seen:
                continue
            seen.add(code)
            password = generate_code(self.pwd_length, pwd_rule, self._choice)
            try:
                vid = await self._insert_if_absent(code, password, face_value, point_value, created_at)
            except SQLAlchemyError as e:
                raise StorageError("voucher insert failed", attempt=attempt) from e
            if vid is not None:
                return VoucherPublic(
                    id=vid, code=code, password=password,
                    face_value=face_value, point_value=point_value, created_at=created_at,
                )
        raise ConflictError(f"no free code after {self.max_attempts} draws")

    async def _insert_if_absent(self, code: str, password: str, face_value: int, point_value: int, created_at: datetime) -> int | None:
        async with self._sessions() as session:
            async with session.begin():
                insert = _insert_for(session)
                stmt = (
                    insert(Voucher.__table__)
                    .values(
                        code=code,
                        password=password,
                        face_value=face_value,
                        point_value=point_value,
                        sale_status=0,
                        use_status=0,
                        created_at=created_at,
                    )
                    .on_conflict_do_nothing(index_elements=["code"])
                    .returning(Voucher.__table__.c.id)
                )
                return (await session.execute(stmt)).scalar_one_or_none()

    # ---------- listing / removal ----------

    async def list_vouchers(
        self,
        *,
        sale_status: int | None = None,
        use_status: int | None = None,
        code_like: str | None = None,
        days: int | None = None,
        latest_batch: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[int, list[Voucher]]:
        page = max(1, int(page))
        limit = max(1, int(limit))
        conds = []
        if sale_status is not None:
            conds.append(Voucher.sale_status == sale_status)
        if use_status is not None:
            conds.append(Voucher.use_status == use_status)
        if code_like:
            conds.append(Voucher.code.contains(code_like, autoescape=True))

        async with self._sessions() as session:
            if latest_batch:
                newest = await session.scalar(select(func.max(Voucher.created_at)))
                if newest is not None:
                    conds.append(Voucher.created_at >= newest)
            elif days:
                since = utcnow().replace(hour=0, minute=0, second=0, microsecond=0) - timedelta(days=int(days))
                conds.append(Voucher.created_at >= since)

            total = await session.scalar(select(func.count()).select_from(Voucher).where(*conds))
            rows = (await session.execute(
                select(Voucher).where(*conds).order_by(Voucher.id.desc()).offset((page - 1) * limit).limit(limit)
            )).scalars().all()
        return int(total or 0), list(rows)

    async def delete_vouchers(self, ids: list[int] | None = None, *, all: bool = False) -> int:
        """Plain row removal; balances are never touched."""
        if not all and not ids:
            raise ValidationError("no voucher ids given")
        stmt = delete(Voucher)
        if not all:
            stmt = stmt.where(Voucher.id.in_([int(i) for i in ids]))
        try:
            async with self._sessions() as session:
                async with session.begin():
                    res = await session.execute(stmt.execution_options(synchronize_session=False))
        except SQLAlchemyError as e:
            raise StorageError("voucher delete failed") from e
        log.info("vouchers_deleted", count=res.rowcount, all=all)
        return int(res.rowcount or 0)
