from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.config import settings
from feedesk.core.counters.models import Counter
from feedesk.core.exceptions import InternalError

RECEIPT_COUNTER = "receiptNo"

_UPSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def format_receipt_number(seq: int, prefix: str | None = None, width: int | None = None) -> str:
    """
    Format a receipt sequence value.

    Examples:
        REC-0001
        REC-0042
        REC-12345   (wider than the padding, never truncated)
    """
    prefix = prefix if prefix is not None else settings.receipt_prefix
    width = width if width is not None else settings.receipt_number_width
    return f"{prefix}-{seq:0{width}d}"


def receipt_sequence(receipt_no: str) -> int:
    """Numeric suffix of a receipt number (REC-0042 -> 42)."""
    return int(receipt_no.rsplit("-", 1)[-1])


class CounterService:
    """
    Allocates values from named counters.

    The increment and the read-back are a single
    INSERT ... ON CONFLICT DO UPDATE ... RETURNING statement, so two
    concurrent callers can never see the same value. The counter row is
    created on first use, which makes the first value 1. The statement runs
    in the caller's transaction: if the caller rolls back, so does the
    increment.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def next_value(self, name: str) -> int:
        """Increment counter `name` and return its new value."""
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise InternalError(f"Counters are not supported on {dialect}")

        stmt = (
            insert(Counter)
            .values(name=name, seq=1)
            .on_conflict_do_update(
                index_elements=[Counter.name],
                set_={"seq": Counter.seq + 1},
            )
            .returning(Counter.seq)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def current_value(self, name: str) -> int:
        """Last allocated value, 0 when the counter was never used."""
        result = await self.session.execute(select(Counter.seq).where(Counter.name == name))
        return result.scalar_one_or_none() or 0

    async def next_receipt_number(self) -> str:
        """Allocate the next receipt number (REC-0001, REC-0002, ...)."""
        seq = await self.next_value(RECEIPT_COUNTER)
        return format_receipt_number(seq)
