"""
SQLAlchemy implementation of the persistence gateway.

Each call opens its own session, so concurrent coroutines never share
ORM state. Calls run on the event loop thread; the SQLite default keeps
these short enough not to matter at catalog scale.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Type

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, sessionmaker

from ..catalog.enums import Collection
from ..catalog.errors import GatewayError
from ..db.base import Base
from ..db.models import (
    ArtifactKeyStageModel,
    ArtifactModel,
    ArtifactSubjectModel,
    FavoriteModel,
    VoteModel,
)
from .base import Filters, Gateway, Row

logger = logging.getLogger(__name__)

MODELS: Dict[Collection, Type[Base]] = {
    Collection.ARTIFACTS: ArtifactModel,
    Collection.ARTIFACT_SUBJECTS: ArtifactSubjectModel,
    Collection.ARTIFACT_KEY_STAGES: ArtifactKeyStageModel,
    Collection.VOTES: VoteModel,
    Collection.FAVORITES: FavoriteModel,
}

# (parent, child) -> relationship attribute on the parent model
EXPANSIONS: Dict[Tuple[Collection, Collection], str] = {
    (Collection.ARTIFACTS, Collection.ARTIFACT_SUBJECTS): "subjects",
    (Collection.ARTIFACTS, Collection.ARTIFACT_KEY_STAGES): "key_stages",
}


def _plain(value):
    """Unwrap str-backed enums so drivers bind plain strings."""
    return getattr(value, "value", value)


class SqlGateway(Gateway):
    """Gateway backed by the tables in ``teachervibes.db.models``."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self, operation: str, collection: Collection) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"{operation} on {collection.value} failed: {e}")
            raise GatewayError(operation, collection.value, str(e)) from e
        finally:
            session.close()

    @staticmethod
    def _model(operation: str, collection: Collection) -> Type[Base]:
        try:
            return MODELS[Collection(collection)]
        except (KeyError, ValueError):
            raise GatewayError(operation, str(collection), "unknown collection")

    @staticmethod
    def _column(operation: str, collection: Collection, model: Type[Base], name: str):
        column = model.__table__.c.get(name)
        if column is None:
            raise GatewayError(operation, collection.value, f"unknown column '{name}'")
        return column

    def _filtered(
        self,
        operation: str,
        collection: Collection,
        query: Query,
        model: Type[Base],
        filters: Optional[Filters],
    ) -> Query:
        for name, value in (filters or {}).items():
            column = self._column(operation, collection, model, name)
            query = query.filter(column == _plain(value))
        return query

    async def select(
        self,
        collection: Collection,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        expand: Sequence[Collection] = (),
    ) -> List[Row]:
        model = self._model("select", collection)
        relations = []
        for child in expand:
            attr = EXPANSIONS.get((collection, child))
            if attr is None:
                raise GatewayError(
                    "select", collection.value, f"cannot expand '{child.value}'"
                )
            relations.append((child.value, attr))

        with self._session("select", collection) as session:
            query = self._filtered("select", collection, session.query(model), model, filters)
            if order_by:
                column = self._column("select", collection, model, order_by)
                query = query.order_by(desc(column) if descending else column)

            rows = []
            for obj in query.all():
                row = obj.to_dict()
                for key, attr in relations:
                    row[key] = [child.to_dict() for child in getattr(obj, attr)]
                rows.append(row)
            return rows

    async def count(
        self, collection: Collection, filters: Optional[Filters] = None
    ) -> int:
        model = self._model("count", collection)
        with self._session("count", collection) as session:
            query = self._filtered("count", collection, session.query(model), model, filters)
            return query.count()

    async def insert(self, collection: Collection, rows: Iterable[Row]) -> List[Row]:
        model = self._model("insert", collection)
        rows = list(rows)
        for row in rows:
            for name in row:
                self._column("insert", collection, model, name)

        with self._session("insert", collection) as session:
            objs = [model(**{k: _plain(v) for k, v in row.items()}) for row in rows]
            session.add_all(objs)
            session.commit()
            for obj in objs:
                session.refresh(obj)
            logger.debug(f"Inserted {len(objs)} row(s) into {collection.value}")
            return [obj.to_dict() for obj in objs]

    async def update(
        self, collection: Collection, values: Row, filters: Filters
    ) -> None:
        model = self._model("update", collection)
        if not filters:
            raise GatewayError("update", collection.value, "refusing unfiltered update")
        for name in values:
            self._column("update", collection, model, name)

        with self._session("update", collection) as session:
            query = self._filtered("update", collection, session.query(model), model, filters)
            query.update(
                {k: _plain(v) for k, v in values.items()}, synchronize_session=False
            )
            session.commit()

    async def delete(self, collection: Collection, filters: Filters) -> None:
        model = self._model("delete", collection)
        if not filters:
            raise GatewayError("delete", collection.value, "refusing unfiltered delete")

        with self._session("delete", collection) as session:
            query = self._filtered("delete", collection, session.query(model), model, filters)
            deleted = query.delete(synchronize_session=False)
            session.commit()
            logger.debug(f"Deleted {deleted} row(s) from {collection.value}")
