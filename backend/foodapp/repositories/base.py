"""Persistence primitives shared by repositories.

Repositories stage and query; they never commit. The unit of work (or the
:class:`~foodapp.infra.sql.user_store.SQLAlchemyUserStore` for batch workers)
owns the transaction.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar, cast

from sqlalchemy import Select, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from foodapp.core.extensions import db

E = TypeVar("E")


@dataclass(slots=True)
class Pagination:
    """Requested page: 1-based ``page``, ``limit`` rows, ``sort`` tokens (``-`` = descending)."""

    page: int
    limit: int
    sort: list[str]

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * max(self.limit, 1)


@dataclass(slots=True)
class Page(Generic[E]):
    items: Sequence[E]
    total: int
    page: int
    limit: int


def order_clauses(
    tokens: Iterable[str], columns: Mapping[str, InstrumentedAttribute[Any]]
) -> list[Any]:
    """Translate public sort tokens into ``ORDER BY`` clauses.

    Tokens naming a column outside ``columns`` are skipped silently so clients
    cannot sort on (or probe) private fields such as ``password_hash``.
    """
    clauses: list[Any] = []
    for token in tokens:
        name = token.strip().lstrip("-").strip()
        column = columns.get(name)
        if column is not None:
            clauses.append(column.desc() if token.strip().startswith("-") else column.asc())
    return clauses


class BaseRepository(Generic[E]):
    """
    Repository over one mapped class.

    Subclasses set :attr:`model` and may widen :attr:`sortable` and
    :attr:`updatable`, which are whitelists: nothing outside them can be
    sorted on or mass-assigned.

    :param session: Session of the enclosing unit of work; the request-scoped
        ``db.session`` when omitted.
    """

    model: type[E]
    sortable: ClassVar[frozenset[str]] = frozenset()
    updatable: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else cast(Session, db.session)

    def _column(self, name: str) -> InstrumentedAttribute[Any]:
        return getattr(self.model, name)

    def _sorted(self, stmt: Select[Any], tokens: Iterable[str]) -> Select[Any]:
        columns = {name: self._column(name) for name in self.sortable}
        # ``id`` last keeps pages stable when sort keys tie
        return stmt.order_by(*order_clauses(tokens, columns), self._column("id").asc())

    # Writes

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is known."""
        self.session.add(instance)
        self.session.flush()
        return instance

    def delete(self, instance: E) -> None:
        self.session.delete(instance)
        self.session.flush()

    def flush(self) -> None:
        self.session.flush()

    def assign_updates(self, instance: E, fields: Mapping[str, Any]) -> E:
        """Set whitelisted attributes (model ``@validates`` hooks run) and flush.

        :raises ValueError: If any key is not in :attr:`updatable`.
        """
        rejected = sorted(set(fields) - self.updatable)
        if rejected:
            raise ValueError(f"Unknown or non-updatable fields: {rejected}")
        for name, value in fields.items():
            setattr(instance, name, value)
        self.session.flush()
        return instance

    # Reads

    def get(self, entity_id: Any) -> E | None:
        stmt = select(self.model).where(self._column("id") == entity_id)
        return cast(E | None, self.session.scalars(stmt).first())

    def paginate(self, pagination: Pagination, *, with_total: bool = True) -> Page[E]:
        """One page of rows ordered by the whitelisted ``pagination.sort`` tokens."""
        stmt = self._sorted(select(self.model), pagination.sort)
        total = 0
        if with_total:
            total = self.session.scalar(select(func.count()).select_from(self.model)) or 0
        limit = max(pagination.limit, 1)
        items = self.session.scalars(stmt.limit(limit).offset(pagination.offset)).all()
        return Page(items=list(items), total=int(total), page=max(pagination.page, 1), limit=limit)
