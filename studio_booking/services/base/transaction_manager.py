"""
Unit-of-work wrapper around a SQLAlchemy session.

A booking mutation runs as one unit: the conflict re-check, the write and
every side effect commit together or roll back together. Work that must
only see committed state (notifications) is queued on the context outbox
and handed to after-commit hooks.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studio_booking.core.logging import get_logger
from studio_booking.utils.datetime_utils import DateTimeHelper

AfterCommitHook = Callable[["TransactionContext"], None]


@dataclass
class TransactionContext:
    transaction_id: str = field(default_factory=lambda: str(uuid4()))
    started_at: datetime = field(default_factory=DateTimeHelper.utc_now)
    isolation_level: Optional[str] = None
    committed: bool = False
    rolled_back: bool = False
    completed_at: Optional[datetime] = None
    outbox: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def duration_ms(self) -> float:
        end = self.completed_at or DateTimeHelper.utc_now()
        return (end - self.started_at).total_seconds() * 1000


class TransactionManager:
    def __init__(self, db_session: Session):
        self.db = db_session
        self._logger = get_logger(self.__class__.__name__)
        self._after_commit_hooks: List[AfterCommitHook] = []

    def add_after_commit_hook(self, hook: AfterCommitHook) -> None:
        self._after_commit_hooks.append(hook)

    @contextmanager
    def start(self, isolation_level: Optional[str] = None) -> Iterator[TransactionContext]:
        """
        Open a unit of work.

        The isolation level can only be chosen before the session has
        issued its first statement; inside an already running transaction
        it is ignored.
        """
        ctx = TransactionContext(isolation_level=isolation_level)
        if isolation_level and not self.db.in_transaction():
            self.db.connection(execution_options={"isolation_level": isolation_level})

        try:
            yield ctx
            self._commit(ctx)
        except Exception as exc:
            if not ctx.rolled_back:
                self._rollback(ctx, exc)
            raise
        finally:
            ctx.completed_at = DateTimeHelper.utc_now()
            self._logger.debug(
                f"Transaction {ctx.transaction_id} "
                f"{'committed' if ctx.committed else 'rolled back'} in {ctx.duration_ms:.2f}ms",
                extra={"transaction_id": ctx.transaction_id, "isolation_level": isolation_level},
            )

    def _commit(self, ctx: TransactionContext) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self._logger.error(
                f"Commit failed for transaction {ctx.transaction_id}: {e}",
                exc_info=True,
                extra={"transaction_id": ctx.transaction_id},
            )
            self._rollback(ctx, e)
            raise
        ctx.committed = True

        # A failing hook never undoes the commit
        for hook in self._after_commit_hooks:
            try:
                hook(ctx)
            except Exception as e:
                self._logger.error(f"After-commit hook failed: {e}", exc_info=True)

    def _rollback(self, ctx: TransactionContext, exc: Exception) -> None:
        self.db.rollback()
        ctx.rolled_back = True
        self._logger.info(
            f"Transaction rolled back: {ctx.transaction_id} - {exc}",
            extra={"transaction_id": ctx.transaction_id, "error": str(exc)},
        )


__all__ = ["TransactionContext", "TransactionManager"]
