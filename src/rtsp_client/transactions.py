"""Bookkeeping for requests awaiting their response."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from .codec import Response
from .errors import UnmatchedTransactionError
from .logger import BoundLogger, create_logger


@dataclass
class Transaction:
    cseq: int
    future: asyncio.Future[Response]
    created_at: float = field(default_factory=time.monotonic)
    sent_at: float | None = None
    deadline: asyncio.TimerHandle | None = None

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.created_at

    def resolve(self, response: Response) -> None:
        self._cancel_deadline()
        if not self.future.done():
            self.future.set_result(response)

    def reject(self, error: BaseException) -> None:
        self._cancel_deadline()
        if not self.future.done():
            self.future.set_exception(error)

    def _cancel_deadline(self) -> None:
        if self.deadline is not None:
            self.deadline.cancel()
            self.deadline = None


class TransactionTable:
    """Allocates CSeq values and maps each one to the future awaiting its response.

    Every method is called from the event loop thread, so the table needs no
    locking. A transaction leaves the table the moment it is settled.
    """

    def __init__(self, *, logger: BoundLogger | None = None) -> None:
        self._next_cseq = 1
        self._transactions: dict[int, Transaction] = {}
        self._logger = (logger or create_logger()).child("transactions")

    def __len__(self) -> int:
        return len(self._transactions)

    def __contains__(self, cseq: object) -> bool:
        return cseq in self._transactions

    @property
    def next_cseq(self) -> int:
        return self._next_cseq

    @property
    def pending(self) -> list[int]:
        return sorted(self._transactions)

    def get(self, cseq: int) -> Transaction | None:
        return self._transactions.get(cseq)

    def allocate(self, loop: asyncio.AbstractEventLoop) -> Transaction:
        cseq = self._next_cseq
        self._next_cseq += 1
        transaction = Transaction(cseq=cseq, future=loop.create_future())
        self._transactions[cseq] = transaction
        self._logger.trace("Allocated CSeq %d (pending=%d)", cseq, len(self._transactions))
        return transaction

    def resolve(self, cseq: int, response: Response) -> Transaction:
        transaction = self._transactions.pop(cseq, None)
        if transaction is None:
            raise UnmatchedTransactionError(cseq, context=response)
        if transaction.future.cancelled():
            self._logger.debug("Dropping response for cancelled CSeq %d", cseq)
        transaction.resolve(response)
        self._logger.trace("Resolved CSeq %d status=%d in %.3fs", cseq, response.status, transaction.elapsed)
        return transaction

    def reject(self, cseq: int, error: BaseException) -> bool:
        transaction = self._transactions.pop(cseq, None)
        if transaction is None:
            return False
        transaction.reject(error)
        self._logger.debug("Rejected CSeq %d: %s", cseq, error)
        return True

    def reject_all(self, error: BaseException) -> int:
        transactions = list(self._transactions.values())
        self._transactions.clear()
        for transaction in transactions:
            transaction.reject(error)
        if transactions:
            self._logger.debug("Rejected %d pending transaction(s): %s", len(transactions), error)
        return len(transactions)


__all__ = ["Transaction", "TransactionTable"]
