from feedesk.core.counters.models import Counter
from feedesk.core.counters.generator import (
    RECEIPT_COUNTER,
    CounterService,
    format_receipt_number,
    receipt_sequence,
)

__all__ = [
    "Counter",
    "RECEIPT_COUNTER",
    "CounterService",
    "format_receipt_number",
    "receipt_sequence",
]
