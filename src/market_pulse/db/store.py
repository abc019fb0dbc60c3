"""Generic persistence primitives used by the jobs and routes.

Each call opens one short session. Jobs never need joins beyond
"instrument -> its observations/anomalies" and "user -> their alerts",
so filters are plain SQLAlchemy column expressions.
"""
from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, select

from market_pulse.db.models import Anomaly, Instrument, PriceObservation
from market_pulse.db.sessions import get_session

ModelT = TypeVar("ModelT", bound=SQLModel)


class Store:
    """Insert / find / delete over SQLModel tables."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine

    def insert(self, row: ModelT) -> ModelT:
        """Insert one row and return it with its generated id."""
        with get_session(self._engine) as session:
            session.add(row)
            session.flush()
            session.refresh(row)
        return row

    def insert_many(self, rows: Iterable[SQLModel]) -> int:
        """Insert rows in one transaction; returns the count."""
        items = list(rows)
        if not items:
            return 0
        with get_session(self._engine) as session:
            session.add_all(items)
        return len(items)

    def find_many(
        self,
        model: type[ModelT],
        *filters: Any,
        order_by: Any = None,
        limit: int | None = None,
    ) -> list[ModelT]:
        """Return rows matching all filters, optionally ordered and limited."""
        stmt = select(model)
        for clause in filters:
            stmt = stmt.where(clause)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        with get_session(self._engine) as session:
            return list(session.exec(stmt).all())

    def find_first(
        self,
        model: type[ModelT],
        *filters: Any,
        order_by: Any = None,
    ) -> ModelT | None:
        """Return the first matching row or None."""
        rows = self.find_many(model, *filters, order_by=order_by, limit=1)
        return rows[0] if rows else None

    def get(self, model: type[ModelT], row_id: int) -> ModelT | None:
        """Fetch a row by primary key."""
        with get_session(self._engine) as session:
            return session.get(model, row_id)

    def update(self, row: ModelT) -> ModelT:
        """Persist changes to an existing row."""
        with get_session(self._engine) as session:
            merged = session.merge(row)
            session.flush()
            session.refresh(merged)
        return merged

    def delete(self, model: type[SQLModel], *filters: Any) -> int:
        """Delete rows matching all filters; returns the number deleted."""
        stmt = sa_delete(model)
        for clause in filters:
            stmt = stmt.where(clause)
        with get_session(self._engine) as session:
            result = session.execute(stmt)
            return result.rowcount or 0

    def delete_instrument(self, instrument_id: int) -> None:
        """Delete an instrument with its observations and anomalies.

        Alerts belong to the user and are kept.
        """
        self.delete(PriceObservation, PriceObservation.instrument_id == instrument_id)
        self.delete(Anomaly, Anomaly.instrument_id == instrument_id)
        self.delete(Instrument, Instrument.id == instrument_id)

    def recent_prices(
        self,
        instrument_id: int,
        limit: int,
        *,
        exclude_id: int | None = None,
    ) -> Sequence[PriceObservation]:
        """Latest observations for an instrument, newest first."""
        filters = [PriceObservation.instrument_id == instrument_id]
        if exclude_id is not None:
            filters.append(PriceObservation.id != exclude_id)
        return self.find_many(
            PriceObservation,
            *filters,
            order_by=PriceObservation.timestamp.desc(),
            limit=limit,
        )
