"""
SettlementGuard - rejects repeated settlement of the same transaction.
"""

from collections import OrderedDict

from x402_sui.exceptions import DuplicateSettlementError


class SettlementGuard:
    """
    Tracks in-flight and completed settlements by transaction digest.

    A digest is claimed with ``begin`` before the ledger is called, then
    either ``complete``d or ``release``d. Completed digests are remembered
    up to ``max_completed`` entries, oldest evicted first. Only touched from
    the event loop, so no locking.
    """

    def __init__(self, max_completed: int = 10_000) -> None:
        self._in_flight: set[str] = set()
        self._completed: OrderedDict[str, None] = OrderedDict()
        self._max_completed = max_completed

    def begin(self, digest: str) -> None:
        """Claim a digest; raises DuplicateSettlementError if already claimed or settled"""
        if digest in self._in_flight or digest in self._completed:
            raise DuplicateSettlementError(digest)
        self._in_flight.add(digest)

    def complete(self, digest: str) -> None:
        self._in_flight.discard(digest)
        self._completed[digest] = None
        while len(self._completed) > self._max_completed:
            self._completed.popitem(last=False)

    def release(self, digest: str) -> None:
        """Give a digest back after a failed attempt so it can be retried"""
        self._in_flight.discard(digest)

    def is_settled(self, digest: str) -> bool:
        return digest in self._completed
