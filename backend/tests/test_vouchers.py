from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from backoffice.errors import ValidationError
from backoffice.models.voucher import Voucher
from backoffice.services.vouchers import VoucherBatchService


async def _all_codes(sessions) -> list[str]:
    async with sessions() as s:
        return list((await s.execute(select(Voucher.code))).scalars().all())


async def _insert(sessions, code, created_at=None):
    async with sessions() as s:
        async with s.begin():
            s.add(Voucher(code=code, password="00000000", face_value=10, point_value=100,
                          created_at=created_at or datetime.now(timezone.utc)))


@pytest.mark.asyncio
async def test_scenario_c_digit_codes(sessions):
    svc = VoucherBatchService(sessions)
    res = await svc.generate(5, 10, 100, "digits", "digits")

    assert res.outcome == "ok"
    assert len(res.created) == 5
    codes = [v.code for v in res.created]
    assert len(set(codes)) == 5
    for v in res.created:
        assert len(v.code) == 16 and v.code.isdigit()
        assert len(v.password) == 8 and v.password.isdigit()
        assert v.face_value == 10 and v.point_value == 100
        assert v.use_status == 0 and v.sale_status == 0
    assert sorted(await _all_codes(sessions)) == sorted(codes)


@pytest.mark.asyncio
async def test_thousand_codes_unique_against_existing(sessions):
    svc = VoucherBatchService(sessions)
    first = await svc.generate(50, 10, 100, 1, 3)
    existing = {v.code for v in first.created}

    res = await svc.generate(1000, 5, 50, "digits", "digits")

    codes = [v.code for v in res.created]
    assert len(codes) == 1000
    assert len(set(codes)) == 1000
    assert not existing & set(codes)
    assert len(await _all_codes(sessions)) == 1050


@pytest.mark.asyncio
async def test_in_batch_collision_exhausts_slot(sessions):
    # the chooser always draws the same character, so every slot after the first collides
    svc = VoucherBatchService(sessions, code_length=1, pwd_length=1, max_attempts=4, choice=lambda a: a[0])
    res = await svc.generate(3, 10, 100, "digits", "letters")

    assert [v.code for v in res.created] == ["0"]
    assert res.created[0].password == "a"
    assert [(f.slot, f.reason, f.attempts) for f in res.failed_slots] == [(1, "conflict", 4), (2, "conflict", 4)]
    assert res.outcome == "partial"
    assert await _all_codes(sessions) == ["0"]


@pytest.mark.asyncio
async def test_persisted_collision_is_retried(sessions):
    await _insert(sessions, "7")
    draws = iter(["7", "1", "8", "2"])
    svc = VoucherBatchService(sessions, code_length=1, pwd_length=1, choice=lambda a: next(draws))

    res = await svc.generate(1, 10, 100, "digits", "digits")

    assert res.outcome == "ok"
    assert (res.created[0].code, res.created[0].password) == ("8", "2")
    assert sorted(await _all_codes(sessions)) == ["7", "8"]


@pytest.mark.asyncio
async def test_persisted_collision_exhaustion_fails(sessions):
    await _insert(sessions, "0")
    svc = VoucherBatchService(sessions, code_length=1, pwd_length=1, max_attempts=3, choice=lambda a: a[0])

    res = await svc.generate(1, 10, 100, "digits", "digits")

    assert res.created == []
    assert res.outcome == "failed"
    assert res.failed_slots[0].reason == "conflict"


@pytest.mark.asyncio
@pytest.mark.parametrize("count,face,points,rule", [
    (0, 10, 100, "digits"),
    (10_001, 10, 100, "digits"),
    (5, 0, 100, "digits"),
    (5, 10, -1, "digits"),
    (5, 10, 100, "emoji"),
])
async def test_generate_validation(sessions, count, face, points, rule):
    svc = VoucherBatchService(sessions, max_batch=9999)
    with pytest.raises(ValidationError):
        await svc.generate(count, face, points, rule, "digits")
    assert await _all_codes(sessions) == []


@pytest.mark.asyncio
async def test_list_and_delete(sessions):
    svc = VoucherBatchService(sessions)
    old = datetime.now(timezone.utc) - timedelta(days=40)
    await _insert(sessions, "OLD0000000000001", created_at=old)
    res = await svc.generate(3, 10, 100, "digits", "digits")

    total, rows = await svc.list_vouchers(latest_batch=True)
    assert total == 3
    assert {r.code for r in rows} == {v.code for v in res.created}

    total, _ = await svc.list_vouchers(days=7)
    assert total == 3

    total, rows = await svc.list_vouchers(code_like="OLD")
    assert total == 1 and rows[0].code == "OLD0000000000001"

    total, rows = await svc.list_vouchers(limit=2, page=2)
    assert total == 4 and len(rows) == 2

    assert await svc.delete_vouchers([res.created[0].id]) == 1
    assert await svc.delete_vouchers(all=True) == 3
    assert await _all_codes(sessions) == []
    with pytest.raises(ValidationError):
        await svc.delete_vouchers([])
