from __future__ import annotations
from contextlib import contextmanager
from functools import cache
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Generic,
    Iterator,
    Sequence,
    Type,
    TypeVar,
)
from sqlalchemy import (
    Engine,
    select,
    create_engine,
    NullPool,
    asc,
    desc,
)
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from lynqai.models.base import Base
from lynqai.settings import config

if TYPE_CHECKING:
    from sqlalchemy import ColumnExpressionArgument

V = TypeVar("V", bound=Type)


@cache
def get_engine(url: str) -> Engine:
    return create_engine(url, poolclass=NullPool)


def init_db(url: str | None = None) -> None:
    """Create every table registered on the declarative base."""
    Base.metadata.create_all(get_engine(url or config.db_url))


class CRUDCapability(Generic[V]):
    resource_db: Type[V]

    def __init__(self, resource_db: Type[V], db_url: str | None = None) -> None:
        self.resource_db = resource_db
        self.db_url = db_url

    def db_row_to_model(self, row: V):
        return {field.name: getattr(row, field.name) for field in row.__table__.c}

    def db_rows_to_model_list(self, rows: Sequence[V]) -> list[dict]:
        return [
            {field.name: getattr(r, field.name) for field in r.__table__.c}
            for r in rows
        ]

    def get_session_factory(self, url: str) -> Callable[..., Session]:
        session_factory: Callable[..., Session] = self.create_factory(url)
        return session_factory

    def create_factory(self, url: str) -> Callable[..., Session]:
        session_factory = sessionmaker(get_engine(url), expire_on_commit=False)
        session_db: Callable[..., Session] = scoped_session(
            session_factory=session_factory
        )
        return session_db

    def get_session(
        self,
        factory: Callable[..., Session],
    ):
        session = factory()
        try:
            yield session

        except Exception as e:
            raise e
        finally:
            session.close()

    def get_sync_session(self) -> Session:
        factory = self.get_session_factory(self.db_url or config.db_url)
        session = next(self.get_session(factory=factory))
        return session

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Yield a session whose work is committed as one unit.

        Anything raised inside the block rolls the whole unit back.
        """
        session = self.get_sync_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def list_resource(
        self,
        where: list["ColumnExpressionArgument[bool]"] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        order_by: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        stmt = select(self.resource_db)
        if where is not None:
            stmt = stmt.where(*where)
        if order_by is not None:
            order_by_clauses = []
            for item in order_by:
                if item.startswith("-"):
                    column = getattr(self.resource_db, item[1:])
                    order_by_clauses.append(desc(column))
                else:
                    column = getattr(self.resource_db, item)
                    order_by_clauses.append(asc(column))
            stmt = stmt.order_by(*order_by_clauses)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)

        session = self.get_sync_session()
        resources = session.scalars(stmt).all()
        session.close()
        return self.db_rows_to_model_list(resources)

    def get_resource(
        self,
        resource_id: str | None,
        where: list["ColumnExpressionArgument[bool]"] | None = None,
    ) -> dict[str, Any] | None:
        stmt = select(self.resource_db)
        if resource_id is not None:
            stmt = stmt.where(self.resource_db.id == resource_id)  # type: ignore
        if where is not None:
            stmt = stmt.where(*where)
        session = self.get_sync_session()
        resource = session.scalars(stmt).first()
        session.close()
        if resource is None:
            return None
        return self.db_row_to_model(resource)
