"""Shared plumbing for the store-backed repositories."""
import time
from contextlib import contextmanager
from typing import Any, Dict, Hashable, Iterable, Optional, Tuple

from flask import current_app, g, has_app_context
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError

from ligain import db
from ligain.errors import ConflictError, LigainError, NotFoundError, StorageError

from .cache import Cache

_INSERTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


def _check_deadline(operation: str) -> None:
    if not has_app_context():
        return
    deadline = g.get('store_deadline')
    if deadline is not None and time.monotonic() > deadline:
        raise StorageError(operation, 'request deadline exceeded before store call')


@contextmanager
def store_call(operation: str):
    """Run a store call, translating SQLAlchemy failures into domain errors.

    Domain errors raised inside the block pass through untouched.
    """
    _check_deadline(operation)
    try:
        yield
    except LigainError:
        raise
    except NoResultFound as exc:
        raise NotFoundError(f"{operation}: not found") from exc
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[store-conflict] {operation}: {exc.orig}")
        raise ConflictError(f"{operation}: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[store-error] {operation}: {exc}")
        raise StorageError(operation, exc) from exc


def _dialect_insert(model, values: Dict[str, Any]):
    dialect = db.engine.dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise StorageError('upsert', f'unsupported dialect {dialect}')
    return insert(model.__table__).values(**values)


def upsert(model, values: Dict[str, Any], conflict_columns: Iterable[str], update_columns: Iterable[str]) -> None:
    """INSERT ... ON CONFLICT DO UPDATE on *model*'s table, keyed by *conflict_columns*."""
    stmt = _dialect_insert(model, values)
    update = {col: stmt.excluded[col] for col in update_columns}
    if 'updated_at' in model.__table__.c:
        update['updated_at'] = db.func.now()
    stmt = stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=update)
    db.session.execute(stmt)


def insert_or_ignore(model, values: Dict[str, Any], conflict_columns: Iterable[str]) -> None:
    stmt = _dialect_insert(model, values).on_conflict_do_nothing(index_elements=list(conflict_columns))
    db.session.execute(stmt)


class CachedRepository:
    """Base for repositories that sit behind an L1 cache.

    Cache failures are logged and swallowed into a miss (reads) or a no-op
    (writes); the store stays authoritative.
    """

    def __init__(self, cache: Cache):
        self._cache = cache

    @property
    def cache(self) -> Cache:
        return self._cache

    def _cache_get(self, key: Hashable) -> Tuple[Optional[Any], bool]:
        try:
            return self._cache.get(key)
        except Exception as exc:
            current_app.logger.warning(f"[cache-degraded] {type(self).__name__} get {key!r}: {exc}")
            return None, False

    def _cache_set(self, key: Hashable, value: Any) -> None:
        try:
            self._cache.set(key, value)
        except Exception as exc:
            current_app.logger.warning(f"[cache-degraded] {type(self).__name__} set {key!r}: {exc}")

    def _cache_delete(self, key: Hashable) -> None:
        try:
            self._cache.delete(key)
        except Exception as exc:
            current_app.logger.warning(f"[cache-degraded] {type(self).__name__} delete {key!r}: {exc}")
