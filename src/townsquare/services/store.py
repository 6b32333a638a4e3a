"""Entity store: the single data-access seam for service code.

Wraps a SQLAlchemy session with the four store operations the services rely
on (``get``, ``list``, ``create``, ``update``), an atomic counter increment,
conditional writes for rows that concurrent requests may change, and
translation of driver timeouts into ``TransientStoreFailure``.
"""
from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from townsquare.core.errors import NotFound, TownsquareError, TransientStoreFailure, ValidationFailure
from townsquare.core.settings import settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")
ResultT = TypeVar("ResultT")


def retry_read(fn: Callable[[], ResultT], *, retries: int | None = None) -> ResultT:
    """Run an idempotent read, retrying ``TransientStoreFailure`` with backoff.

    Only reads may go through here; creates and votes are never retried
    automatically since a replayed write could duplicate a row.
    """
    attempts = settings.store_read_retries if retries is None else retries
    for attempt in range(attempts + 1):
        try:
            return fn()
        except TransientStoreFailure:
            if attempt >= attempts:
                raise
            _sleep_backoff(attempt)
    raise AssertionError("unreachable")  # pragma: no cover


def _sleep_backoff(attempt: int) -> None:
    base = settings.store_retry_backoff_seconds * (2 ** attempt)
    jitter = random.uniform(0, settings.store_retry_jitter_seconds)
    time.sleep(base + jitter)


def _matches(model: type, expected: Mapping[str, Any]) -> list[Any]:
    return [getattr(model, name) == value for name, value in expected.items()]


class EntityStore:
    """Thin wrapper around a session for entity access."""

    def __init__(self, session: Session) -> None:
        """Initialize the store with a SQLAlchemy session."""
        self.session = session

    @contextmanager
    def guard(self) -> Iterator[None]:
        """Translate driver timeouts and connectivity errors into ``TransientStoreFailure``."""
        try:
            yield
        except (OperationalError, PoolTimeoutError) as exc:
            logger.warning("Store operation failed: %s", exc.__class__.__name__)
            self._safe_rollback()
            raise TransientStoreFailure() from exc

    def get(self, model: type[ModelT], entity_id: Any) -> ModelT | None:
        """Return an entity by primary key, or None."""
        with self.guard():
            return self.session.get(model, entity_id)

    def get_active(self, model: type[ModelT], entity_id: Any, label: str | None = None) -> ModelT:
        """Return an active entity by primary key.

        Raises:
            NotFound: If the row is missing or its ``is_active`` flag is false.
        """
        entity = self.get(model, entity_id)
        if entity is None or not getattr(entity, "is_active", True):
            raise NotFound(f"{label or model.__name__} not found")
        return entity

    def find_one(self, model: type[ModelT], **filters: Any) -> ModelT | None:
        """Return the first entity matching equality ``filters``."""
        rows = self.list(model, filters, limit=1)
        return rows[0] if rows else None

    def list(
        self,
        model: type[ModelT],
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: Sequence[Any] = (),
        limit: int | None = None,
        extra: Sequence[Any] = (),
    ) -> list[ModelT]:
        """Return entities matching equality ``filters`` and optional extra clauses."""
        stmt = select(model)
        for name, value in (filters or {}).items():
            stmt = stmt.where(getattr(model, name) == value)
        for clause in extra:
            stmt = stmt.where(clause)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.guard():
            return list(self.session.execute(stmt).scalars())

    def create(
        self,
        model: type[ModelT],
        fields: Mapping[str, Any],
        *,
        conflict: TownsquareError | None = None,
    ) -> ModelT:
        """Insert a row and flush so that defaults and the primary key are populated.

        Args:
            model: ORM class to instantiate.
            fields: Column values.
            conflict: Error raised when a uniqueness constraint rejects the row;
                defaults to a generic ``ValidationFailure``.
        """
        entity = model(**fields)
        self.session.add(entity)
        self.flush(conflict=conflict)
        return entity

    def update(
        self,
        entity: ModelT,
        fields: Mapping[str, Any],
        *,
        conflict: TownsquareError | None = None,
    ) -> ModelT:
        """Apply column updates to a loaded entity and flush."""
        for key, value in fields.items():
            setattr(entity, key, value)
        self.flush(conflict=conflict)
        return entity

    def increment(self, model: type, entity_id: Any, **deltas: int) -> int:
        """Atomically add ``deltas`` to counter columns of one row.

        Emits a single ``UPDATE ... SET col = col + :delta`` so concurrent
        writers serialize on the row instead of racing a read-then-write.

        Returns:
            Number of rows updated (0 if the row does not exist).

        Raises:
            ValidationFailure: If a counter check constraint rejects the new value.
        """
        values = {name: getattr(model, name) + delta for name, delta in deltas.items() if delta}
        if not values:
            return 1
        stmt = (
            update(model)
            .where(model.id == entity_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        rowcount = self._execute(stmt, ValidationFailure("Counter out of range"))
        entity = self.session.identity_map.get(self.session.identity_key(model, entity_id))
        if entity is not None:
            self.session.expire(entity, list(values))
        return rowcount

    def update_if(self, entity: Any, expected: Mapping[str, Any], fields: Mapping[str, Any]) -> bool:
        """Write ``fields`` to a loaded row only while it still holds ``expected``.

        Returns:
            False when another transaction changed or removed the row first.
        """
        model = type(entity)
        stmt = (
            update(model)
            .where(model.id == entity.id, *_matches(model, expected))
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        if not self._execute(stmt):
            return False
        self.session.expire(entity, list(fields))
        return True

    def delete_if(self, entity: Any, expected: Mapping[str, Any]) -> bool:
        """Delete a loaded row only while it still holds ``expected``."""
        model = type(entity)
        stmt = (
            delete(model)
            .where(model.id == entity.id, *_matches(model, expected))
            .execution_options(synchronize_session=False)
        )
        if not self._execute(stmt):
            return False
        self.session.expunge(entity)
        return True

    def _execute(self, stmt: Any, conflict: TownsquareError | None = None) -> int:
        """Run a bulk DML statement and return its rowcount."""
        try:
            with self.guard():
                return self.session.execute(stmt).rowcount
        except IntegrityError as exc:
            self._safe_rollback()
            logger.warning("Integrity conflict on %s: %s", stmt.table.name, exc.orig.__class__.__name__)
            raise (conflict or ValidationFailure("Conflicting or invalid data")) from exc

    def delete(self, entity: Any) -> None:
        with self.guard():
            self.session.delete(entity)
            self.session.flush()

    def flush(self, *, conflict: TownsquareError | None = None) -> None:
        try:
            with self.guard():
                self.session.flush()
        except IntegrityError as exc:
            self._safe_rollback()
            logger.info("Integrity conflict on flush: %s", exc.orig.__class__.__name__)
            raise (conflict or ValidationFailure("Conflicting or invalid data")) from exc

    def commit(self, *, conflict: TownsquareError | None = None) -> None:
        try:
            with self.guard():
                self.session.commit()
        except IntegrityError as exc:
            self._safe_rollback()
            raise (conflict or ValidationFailure("Conflicting or invalid data")) from exc

    def rollback(self) -> None:
        self._safe_rollback()

    def _safe_rollback(self) -> None:
        try:
            self.session.rollback()
        except OperationalError:  # pragma: no cover - connection already gone
            logger.warning("Rollback failed after store error")
