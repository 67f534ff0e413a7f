from __future__ import annotations
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.errors import InsufficientPoints, StateError
from backoffice.models.balance import UserBalance


class BalanceMismatch(StateError):
    """frozen holds less than a request claims; the unit of work must roll back."""
    reason = "balance_mismatch"


async def get_balance(session: AsyncSession, user_id: int) -> UserBalance | None:
    return await session.scalar(select(UserBalance).where(UserBalance.user_id == user_id))


async def ensure_balance(session: AsyncSession, user_id: int, *, available: int = 0, frozen: int = 0) -> UserBalance:
    """Return the user's balance row, creating it with the given opening values if missing."""
    bal = await get_balance(session, user_id)
    if bal is None:
        bal = UserBalance(user_id=user_id, available=int(available), frozen=int(frozen))
        session.add(bal)
        await session.flush()
    return bal


async def reserve_points(session: AsyncSession, user_id: int, points: int) -> None:
    """available -> frozen. Raises InsufficientPoints if available < points."""
    res = await session.execute(
        update(UserBalance)
        .where(UserBalance.user_id == user_id, UserBalance.available >= points)
        .values(available=UserBalance.available - points, frozen=UserBalance.frozen + points)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise InsufficientPoints(f"need {points} available points", user_id=user_id, points=points)


async def release_frozen(session: AsyncSession, user_id: int, points: int) -> None:
    """frozen -> gone (settlement)."""
    res = await session.execute(
        update(UserBalance)
        .where(UserBalance.user_id == user_id, UserBalance.frozen >= points)
        .values(frozen=UserBalance.frozen - points)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise BalanceMismatch(f"frozen balance below {points}", user_id=user_id, points=points)


async def unfreeze_points(session: AsyncSession, user_id: int, points: int) -> None:
    """frozen -> available (reservation reversed)."""
    res = await session.execute(
        update(UserBalance)
        .where(UserBalance.user_id == user_id, UserBalance.frozen >= points)
        .values(available=UserBalance.available + points, frozen=UserBalance.frozen - points)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise BalanceMismatch(f"frozen balance below {points}", user_id=user_id, points=points)
