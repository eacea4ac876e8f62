"""
ReceiptStore - settlement outcomes keyed by transaction digest
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

from x402_sui.types import PaymentResponse

PENDING = "pending"
SETTLED = "settled"
FAILED = "failed"


@dataclass(frozen=True)
class ReceiptRecord:
    """Settlement state of one verified payment"""

    status: str
    receipt: Optional[PaymentResponse] = None
    error: Optional[str] = None


class ReceiptStore:
    """
    Bounded in-memory record of post-response settlements.

    Settlement runs after the paid response has been sent, so the receipt is
    published here for the client to poll. Oldest entries are evicted once
    ``max_entries`` is exceeded.
    """

    def __init__(self, max_entries: int = 10_000) -> None:
        self._records: OrderedDict[str, ReceiptRecord] = OrderedDict()
        self._max_entries = max_entries

    def __len__(self) -> int:
        return len(self._records)

    def get(self, digest: str) -> Optional[ReceiptRecord]:
        return self._records.get(digest)

    def claim(self, digest: str) -> bool:
        """
        Mark ``digest`` pending unless it is already known.

        Returns False for a digest that is pending, settled or failed, so one
        signed transaction pays for at most one request.
        """
        if digest in self._records:
            return False
        self.mark_pending(digest)
        return True

    def release(self, digest: str) -> None:
        """Forget a pending claim whose payment was never used"""
        record = self._records.get(digest)
        if record is not None and record.status == PENDING:
            del self._records[digest]

    def mark_pending(self, digest: str) -> None:
        self._put(digest, ReceiptRecord(status=PENDING))

    def mark_settled(self, digest: str, receipt: PaymentResponse) -> None:
        self._put(digest, ReceiptRecord(status=SETTLED, receipt=receipt))

    def mark_failed(self, digest: str, error: str) -> None:
        self._put(digest, ReceiptRecord(status=FAILED, error=error))

    def _put(self, digest: str, record: ReceiptRecord) -> None:
        self._records[digest] = record
        self._records.move_to_end(digest)
        while len(self._records) > self._max_entries:
            self._records.popitem(last=False)
