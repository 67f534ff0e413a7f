from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN
from typing import Iterable

import structlog
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backoffice.db import utcnow
from backoffice.errors import BackofficeError, NotFoundError, StateError, StorageError, ValidationError
from backoffice.models.ledger import LedgerType
from backoffice.models.withdrawal import WithdrawalRequest, PENDING, SETTLED
from backoffice.schemas.results import BatchResult, CancelResult, ItemFailure
from backoffice.services.balance import release_frozen, reserve_points, unfreeze_points
from backoffice.services.ledger import append_entry

log = structlog.get_logger()

_CENT = Decimal("0.01")


class AlreadySettled(StateError):
    reason = "already_settled"


class WithdrawalsDisabled(StateError):
    reason = "withdrawals_disabled"


class StatusChanged(StateError):
    """The row moved between our read and our conditional write."""
    reason = "status_changed"
    retryable = True


@dataclass(frozen=True)
class WithdrawalPolicy:
    enabled: bool = True
    min_money: Decimal = Decimal("1")
    points_per_money: Decimal = Decimal("100")

    @classmethod
    def from_settings(cls, s) -> "WithdrawalPolicy":
        return cls(
            enabled=bool(s.withdraw_enabled),
            min_money=Decimal(str(s.withdraw_min_money)),
            points_per_money=Decimal(str(s.withdraw_points_per_money)),
        )

    def points_for(self, money: Decimal) -> int:
        return int((money * self.points_per_money).to_integral_value(rounding=ROUND_DOWN))


def _unique_ids(ids: Iterable[int]) -> list[int]:
    seen: dict[int, None] = {}
    for i in ids:
        seen.setdefault(int(i), None)
    return list(seen)


def _failure(rid: int, e: BackofficeError) -> ItemFailure:
    return ItemFailure(id=rid, reason=e.reason, detail=e.message, retryable=e.retryable)


class WithdrawalWorkflow:
    """
    Admin side of the withdrawal lifecycle.

    Each request id is its own transaction: the status check and transition
    are a single conditional UPDATE/DELETE, and the balance and ledger writes
    commit or roll back with it. A batch that dies half way leaves the
    finished ids committed; re-running it with the same ids is safe.
    """

    def __init__(self, sessions: async_sessionmaker[AsyncSession], policy: WithdrawalPolicy | None = None):
        self._sessions = sessions
        self.policy = policy or WithdrawalPolicy()

    # ---------- front-end reservation ----------

    async def apply(
        self,
        *,
        user_id: int,
        money: Decimal,
        bank_name: str,
        bank_no: str,
        payee_name: str,
    ) -> WithdrawalRequest:
        """Create a pending request and move its points from available to frozen."""
        if not self.policy.enabled:
            raise WithdrawalsDisabled("withdrawals are closed")
        money = Decimal(str(money)).quantize(_CENT, rounding=ROUND_DOWN)
        if money < self.policy.min_money:
            raise ValidationError(f"minimum withdrawal is {self.policy.min_money}", min_money=str(self.policy.min_money))
        points = self.policy.points_for(money)
        if points <= 0:
            raise ValidationError("amount converts to zero points")

        try:
            async with self._sessions() as session:
                async with session.begin():
                    await reserve_points(session, user_id, points)
                    req = WithdrawalRequest(
                        user_id=user_id,
                        points=points,
                        money=money,
                        bank_name=bank_name.strip(),
                        bank_no=bank_no.strip(),
                        payee_name=payee_name.strip(),
                        status=PENDING,
                        requested_at=utcnow(),
                        settled_at=None,
                    )
                    session.add(req)
                    await session.flush()
        except SQLAlchemyError as e:
            log.warning("withdrawal_apply_storage_error", user_id=user_id, error=str(e))
            raise StorageError("could not record withdrawal request") from e

        log.info("withdrawal_applied", withdrawal_id=req.id, user_id=user_id, points=points)
        return req

    # ---------- settle (audit) ----------

    async def settle(self, ids: Iterable[int]) -> BatchResult:
        ids = _unique_ids(ids)
        if not ids:
            raise ValidationError("no withdrawal ids given")

        result = BatchResult(requested=len(ids))
        for rid in ids:
            try:
                await self._settle_one(rid)
            except AlreadySettled as e:
                result.skipped.append(_failure(rid, e))
            except BackofficeError as e:
                result.failures.append(_failure(rid, e))
            else:
                result.succeeded.append(rid)

        log.info(
            "withdrawals_settle_batch",
            requested=result.requested,
            settled=len(result.succeeded),
            skipped=len(result.skipped),
            failed=len(result.failures),
        )
        return result

    async def _settle_one(self, rid: int) -> None:
        try:
            async with self._sessions() as session:
                async with session.begin():
                    req = await session.get(WithdrawalRequest, rid, with_for_update=True)
                    if req is None:
                        raise NotFoundError(f"withdrawal {rid} not found")
                    if req.status != PENDING:
                        raise AlreadySettled(f"withdrawal {rid} is already settled")

                    user_id, points = req.user_id, req.points
                    res = await session.execute(
                        update(WithdrawalRequest)
                        .where(WithdrawalRequest.id == rid, WithdrawalRequest.status == PENDING)
                        .values(status=SETTLED, settled_at=utcnow())
                        .execution_options(synchronize_session=False)
                    )
                    if res.rowcount != 1:
                        raise AlreadySettled(f"withdrawal {rid} is already settled")

                    await release_frozen(session, user_id, points)
                    await append_entry(
                        session,
                        user_id=user_id,
                        type=LedgerType.WITHDRAWAL,
                        points_delta=-points,
                        remarks=f"withdrawal #{rid} settled",
                        ref_withdrawal_id=rid,
                    )
        except SQLAlchemyError as e:
            log.warning("withdrawal_settle_storage_error", withdrawal_id=rid, error=str(e))
            raise StorageError(f"settling withdrawal {rid} failed") from e

        log.info("withdrawal_settled", withdrawal_id=rid, user_id=user_id, points=points)

    # ---------- cancel (delete) ----------

    async def cancel(self, ids: Iterable[int] | None = None, *, all: bool = False) -> CancelResult:
        if all:
            try:
                async with self._sessions() as session:
                    ids = list((await session.execute(
                        select(WithdrawalRequest.id).order_by(WithdrawalRequest.id)
                    )).scalars().all())
            except SQLAlchemyError as e:
                raise StorageError("could not list withdrawals") from e
        else:
            ids = _unique_ids(ids or [])
            if not ids:
                raise ValidationError("no withdrawal ids given")

        result = CancelResult(requested=len(ids))
        for rid in ids:
            try:
                released = await self._cancel_with_retry(rid)
            except BackofficeError as e:
                result.failures.append(_failure(rid, e))
            else:
                result.succeeded.append(rid)
                if released:
                    result.released.append(rid)

        log.info(
            "withdrawals_cancel_batch",
            requested=result.requested,
            removed=len(result.succeeded),
            released=len(result.released),
            failed=len(result.failures),
            all=all,
        )
        return result

    async def _cancel_with_retry(self, rid: int, attempts: int = 2) -> bool:
        for n in range(1, attempts + 1):
            try:
                return await self._cancel_one(rid)
            except StatusChanged:
                if n == attempts:
                    raise
        return False

    async def _cancel_one(self, rid: int) -> bool:
        """Remove one request. Returns True when a pending reservation was reversed."""
        try:
            async with self._sessions() as session:
                async with session.begin():
                    req = await session.get(WithdrawalRequest, rid, with_for_update=True)
                    if req is None:
                        raise NotFoundError(f"withdrawal {rid} not found")
                    user_id, points, status = req.user_id, req.points, req.status

                    res = await session.execute(
                        delete(WithdrawalRequest)
                        .where(WithdrawalRequest.id == rid, WithdrawalRequest.status == status)
                        .execution_options(synchronize_session=False)
                    )
                    if res.rowcount != 1:
                        raise StatusChanged(f"withdrawal {rid} changed while cancelling")

                    # settled rows already left the balance via the ledger
                    if status == PENDING:
                        await unfreeze_points(session, user_id, points)
        except SQLAlchemyError as e:
            log.warning("withdrawal_cancel_storage_error", withdrawal_id=rid, error=str(e))
            raise StorageError(f"cancelling withdrawal {rid} failed") from e

        log.info("withdrawal_cancelled", withdrawal_id=rid, user_id=user_id, points=points, was=status)
        return status == PENDING

    # ---------- listing ----------

    async def list_requests(
        self,
        *,
        status: str | None = None,
        user_id: int | None = None,
        bank_no_like: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[int, list[WithdrawalRequest]]:
        if status is not None and status not in (PENDING, SETTLED):
            raise ValidationError(f"unknown status {status!r}")
        page = max(1, int(page))
        limit = max(1, int(limit))

        conds = []
        if status is not None:
            conds.append(WithdrawalRequest.status == status)
        if user_id is not None:
            conds.append(WithdrawalRequest.user_id == user_id)
        if bank_no_like:
            conds.append(WithdrawalRequest.bank_no.contains(bank_no_like, autoescape=True))

        async with self._sessions() as session:
            total = await session.scalar(select(func.count()).select_from(WithdrawalRequest).where(*conds))
            rows = (await session.execute(
                select(WithdrawalRequest)
                .where(*conds)
                .order_by(WithdrawalRequest.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )).scalars().all()
        return int(total or 0), list(rows)
