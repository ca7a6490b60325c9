"""Record store: reads and writes rows of any collection.

Collection tables are created at runtime from field descriptions, so they
are not mapped to ORM models. ``SQLAlchemyRecordStore`` reflects each
table on first use and builds Core statements against it.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import Engine, MetaData, Table, delete, insert, select, update
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from schemaflow.core.exceptions import AdapterExecutionFailure, CollectionNotFound
from schemaflow.core.logging import get_logger

logger = get_logger(__name__)


class RecordStore(ABC):
    """Row access for one database.

    ``where`` arguments map column names to a value (equality) or to a
    list/tuple/set of values (membership).
    """

    @abstractmethod
    def find(self, collection: str, record_id: Any) -> Optional[dict[str, Any]]:
        """Return the row with this primary key, or None."""
        ...

    @abstractmethod
    def find_many(self, collection: str, record_ids: Iterable[Any]) -> list[dict[str, Any]]:
        """Return the rows whose primary key is in ``record_ids`` in one query."""
        ...

    @abstractmethod
    def insert(self, collection: str, data: dict[str, Any]) -> Any:
        """Insert a row and return its primary key value."""
        ...

    @abstractmethod
    def update(self, collection: str, record_id: Any, data: dict[str, Any]) -> int:
        """Update one row and return the number of affected rows."""
        ...

    @abstractmethod
    def delete(self, collection: str, record_ids: Iterable[Any]) -> int:
        ...

    @abstractmethod
    def select(
        self,
        collection: str,
        columns: Optional[Sequence[str]] = None,
        where: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        ...

    def forget(self, collection: str) -> None:
        """Drop anything cached about the collection's table."""
        return None


class SQLAlchemyRecordStore(RecordStore):
    """Record store over a SQLAlchemy engine using reflected tables."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.metadata = MetaData()

    def table(self, collection: str) -> Table:
        """Return the reflected table of a collection.

        Raises:
            CollectionNotFound: If the database has no such table.
        """
        if collection in self.metadata.tables:
            return self.metadata.tables[collection]
        try:
            return Table(collection, self.metadata, autoload_with=self.engine)
        except NoSuchTableError as e:
            raise CollectionNotFound(collection) from e

    def forget(self, collection: str) -> None:
        if collection in self.metadata.tables:
            self.metadata.remove(self.metadata.tables[collection])

    def _primary_key(self, table: Table):
        columns = list(table.primary_key.columns)
        if not columns:
            raise AdapterExecutionFailure("lookup", table.name, "table has no primary key")
        return columns[0]

    def _values(self, table: Table, data: dict[str, Any]) -> dict[str, Any]:
        """Keep the keys that are table columns and convert date strings."""
        values: dict[str, Any] = {}
        for key, value in data.items():
            column = table.columns.get(key)
            if column is None:
                continue
            values[key] = _to_python(column, value)

        ignored = sorted(set(data) - set(values))
        if ignored:
            logger.debug("Ignoring keys without a column", collection=table.name, keys=ignored)
        return values

    def _where(self, table: Table, statement, where: Optional[dict[str, Any]]):
        for key, value in (where or {}).items():
            column = table.columns[key]
            if isinstance(value, (list, tuple, set, frozenset)):
                statement = statement.where(column.in_(list(value)))
            else:
                statement = statement.where(column == value)
        return statement

    def find(self, collection: str, record_id: Any) -> Optional[dict[str, Any]]:
        if record_id is None:
            return None
        table = self.table(collection)
        statement = select(table).where(self._primary_key(table) == record_id)
        rows = self._fetch("find", collection, statement)
        return rows[0] if rows else None

    def find_many(self, collection: str, record_ids: Iterable[Any]) -> list[dict[str, Any]]:
        ids = list(record_ids)
        if not ids:
            return []
        table = self.table(collection)
        statement = select(table).where(self._primary_key(table).in_(ids))
        return self._fetch("find_many", collection, statement)

    def select(
        self,
        collection: str,
        columns: Optional[Sequence[str]] = None,
        where: Optional[dict[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        table = self.table(collection)
        if columns:
            selected = [table.columns[name] for name in columns if name in table.columns]
            statement = select(*selected)
        else:
            statement = select(table)
        statement = self._where(table, statement, where)
        return self._fetch("select", collection, statement)

    def insert(self, collection: str, data: dict[str, Any]) -> Any:
        table = self.table(collection)
        values = self._values(table, data)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(insert(table).values(**values))
                inserted = result.inserted_primary_key
        except SQLAlchemyError as e:
            raise AdapterExecutionFailure("insert", collection, str(e)) from e

        record_id = inserted[0] if inserted else None
        if record_id is None:
            record_id = values.get(self._primary_key(table).name)
        logger.debug("Record inserted", collection=collection, record_id=record_id)
        return record_id

    def update(self, collection: str, record_id: Any, data: dict[str, Any]) -> int:
        table = self.table(collection)
        pk = self._primary_key(table)
        values = self._values(table, data)
        values.pop(pk.name, None)
        if not values:
            return 0
        try:
            with self.engine.begin() as conn:
                result = conn.execute(update(table).where(pk == record_id).values(**values))
        except SQLAlchemyError as e:
            raise AdapterExecutionFailure("update", collection, str(e)) from e
        logger.debug("Record updated", collection=collection, record_id=record_id)
        return result.rowcount

    def delete(self, collection: str, record_ids: Iterable[Any]) -> int:
        ids = list(record_ids)
        if not ids:
            return 0
        table = self.table(collection)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(delete(table).where(self._primary_key(table).in_(ids)))
        except SQLAlchemyError as e:
            raise AdapterExecutionFailure("delete", collection, str(e)) from e
        logger.debug("Records deleted", collection=collection, count=result.rowcount)
        return result.rowcount

    def _fetch(self, operation: str, collection: str, statement) -> list[dict[str, Any]]:
        try:
            with self.engine.connect() as conn:
                return [dict(row) for row in conn.execute(statement).mappings()]
        except SQLAlchemyError as e:
            raise AdapterExecutionFailure(operation, collection, str(e)) from e


def _to_python(column, value: Any) -> Any:
    """Convert ISO date strings for DATE/DATETIME columns."""
    if not isinstance(value, str) or not value:
        return value
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if python_type is datetime:
        return datetime.fromisoformat(value)
    if python_type is date:
        return date.fromisoformat(value[:10])
    return value
