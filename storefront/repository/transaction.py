"""Transaction token and its state machine.

    IDLE -> ACTIVE -> {COMMITTED | ABORTED} -> ENDED

A ``Transaction`` owns exactly one ``AsyncSession``. Repository operations join
it when it is passed as ``options.session``; operations on different models
may share one token, which is what makes cross-collection writes atomic.
A token is single-owner: never run two operations on it concurrently.
"""

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.core.enums import TransactionState
from storefront.core.exceptions import TransactionStateError

__all__ = ["Transaction", "run_in_transaction", "transaction_scope"]

logger = structlog.get_logger(__name__)

ResultType = TypeVar("ResultType")


class Transaction:
    """One atomic unit of work bound to a single session."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.transaction_id = uuid.uuid4().hex
        self._session_maker = session_maker
        self._session: AsyncSession | None = None
        self._state = TransactionState.IDLE

    def __repr__(self) -> str:
        return f"<Transaction(id={self.transaction_id}, state={self._state.value})>"

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is TransactionState.ACTIVE

    @property
    def session(self) -> AsyncSession:
        """Session operations execute on; only available while active."""
        if self._state is not TransactionState.ACTIVE or self._session is None:
            raise TransactionStateError(
                f"Transaction {self.transaction_id} is {self._state.value}, not active",
                operation="transaction",
                detail={"transaction_id": self.transaction_id, "state": self._state.value},
            )
        return self._session

    def _transition(self, expected: TransactionState, new: TransactionState) -> None:
        if self._state is not expected:
            raise TransactionStateError(
                f"Cannot move transaction from {self._state.value} to {new.value}",
                operation="transaction",
                detail={"transaction_id": self.transaction_id, "state": self._state.value},
            )
        self._state = new
        logger.debug("transaction_state_changed", transaction_id=self.transaction_id, state=new.value)

    async def begin(self) -> None:
        self._transition(TransactionState.IDLE, TransactionState.ACTIVE)
        self._session = self._session_maker()
        await self._session.begin()

    async def commit(self) -> None:
        session = self.session
        await session.commit()
        self._transition(TransactionState.ACTIVE, TransactionState.COMMITTED)

    async def abort(self) -> None:
        session = self.session
        self._state = TransactionState.ABORTED
        logger.debug("transaction_state_changed", transaction_id=self.transaction_id, state=self._state.value)
        await session.rollback()

    async def end(self) -> None:
        """Release the session. Safe to call in any state, more than once."""
        if self._state is TransactionState.ENDED:
            return
        self._state = TransactionState.ENDED
        if self._session is not None:
            session, self._session = self._session, None
            await session.close()
        logger.debug("transaction_state_changed", transaction_id=self.transaction_id, state=self._state.value)


@asynccontextmanager
async def transaction_scope(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[Transaction]:
    """Open a transaction for the duration of the ``async with`` block.

    Commits when the block exits normally, aborts when the block or the commit
    raises, and always ends the token. The original exception propagates
    unchanged.

    Usage:
        async with transaction_scope(maker) as txn:
            await orders.create(order, WriteOptions(session=txn))
    """
    txn = Transaction(session_maker)
    with structlog.contextvars.bound_contextvars(transaction_id=txn.transaction_id):
        try:
            await txn.begin()
            yield txn
            await txn.commit()
        except BaseException as exc:
            if txn.is_active:
                try:
                    await txn.abort()
                except Exception:
                    logger.exception("transaction_abort_failed")
            logger.info("transaction_aborted", error=type(exc).__name__)
            raise
        else:
            logger.info("transaction_committed")
        finally:
            await txn.end()


async def run_in_transaction(
    session_maker: async_sessionmaker[AsyncSession],
    work: Callable[[Transaction], Awaitable[ResultType]],
) -> ResultType:
    """Run ``work(txn)`` inside a fresh transaction and return its result."""
    async with transaction_scope(session_maker) as txn:
        return await work(txn)
