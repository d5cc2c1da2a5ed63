import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.counters import CounterService
from feedesk.core.counters.generator import (
    RECEIPT_COUNTER,
    format_receipt_number,
    receipt_sequence,
)


class TestReceiptNumberFormat:
    """Tests for receipt number formatting."""

    def test_padded_to_width(self):
        assert format_receipt_number(1) == "REC-0001"
        assert format_receipt_number(42) == "REC-0042"

    def test_grows_past_width(self):
        assert format_receipt_number(12345) == "REC-12345"

    def test_custom_prefix_and_width(self):
        assert format_receipt_number(7, prefix="FEE", width=6) == "FEE-000007"

    def test_receipt_sequence(self):
        assert receipt_sequence("REC-0042") == 42
        assert receipt_sequence("REC-12345") == 12345


class TestCounterService:
    """Tests for CounterService."""

    async def test_first_value_is_one(self, db_session: AsyncSession):
        service = CounterService(db_session)

        assert await service.current_value(RECEIPT_COUNTER) == 0
        assert await service.next_value(RECEIPT_COUNTER) == 1
        assert await service.current_value(RECEIPT_COUNTER) == 1

    async def test_sequential_receipt_numbers(self, db_session: AsyncSession):
        service = CounterService(db_session)

        numbers = [await service.next_receipt_number() for _ in range(3)]
        await db_session.commit()

        assert numbers == ["REC-0001", "REC-0002", "REC-0003"]

    async def test_counters_are_independent(self, db_session: AsyncSession):
        service = CounterService(db_session)

        await service.next_value("a")
        await service.next_value("a")

        assert await service.next_value("b") == 1
        assert await service.next_value("a") == 3

    async def test_rollback_undoes_increment(self, db_session: AsyncSession):
        service = CounterService(db_session)
        await service.next_value(RECEIPT_COUNTER)
        await db_session.commit()

        await service.next_value(RECEIPT_COUNTER)
        await db_session.rollback()

        assert await service.current_value(RECEIPT_COUNTER) == 1
        assert await service.next_receipt_number() == "REC-0002"

    @pytest.mark.parametrize("width", [4, 5])
    async def test_width_setting(self, db_session: AsyncSession, monkeypatch, width):
        from feedesk.core.config import settings

        monkeypatch.setattr(settings, "receipt_number_width", width)

        receipt_no = await CounterService(db_session).next_receipt_number()

        assert receipt_no == "REC-" + "1".rjust(width, "0")
