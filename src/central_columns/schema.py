"""
Schema introspection for the registry.

The registry reads live column metadata through the `SchemaInspector`
protocol so that tests (and callers with their own metadata source) can
substitute it. `ConnectionSchemaInspector` answers from a user connection
through the dialect strategies.
"""
import logging
from typing import TYPE_CHECKING, Protocol

from central_columns.exceptions import IntrospectionUnavailable, StoreError
from central_columns.record import TableColumn
from central_columns.strategy import get_db_strategy

if TYPE_CHECKING:
    from central_columns.connection import ConnectionWrapper

logger = logging.getLogger(__name__)

__all__ = ['SchemaInspector', 'ConnectionSchemaInspector']


class SchemaInspector(Protocol):
    """Live schema metadata for the tables of a user database."""

    def get_column_names(self, database: str, table: str) -> list[str]:
        ...

    def get_columns(self, database: str, table: str) -> list[TableColumn]:
        ...

    def get_unique_column_names(self, database: str, table: str) -> list[str]:
        ...

    def get_tables(self, database: str) -> list[str]:
        ...

    def get_create_table(self, database: str, table: str) -> str | None:
        ...


class ConnectionSchemaInspector:
    """Inspector bound to one user database connection.

    The connection already targets a single database, so the `database`
    argument each method takes is accepted for interface symmetry and used
    only in log messages.

    Live metadata is read fresh by default so the registry sees schema
    changes made between calls; pass ``bypass_cache=False`` to serve
    repeated lookups from the introspection cache.
    """

    def __init__(self, cn: 'ConnectionWrapper', bypass_cache: bool = True) -> None:
        self.cn = cn
        self.bypass_cache = bypass_cache

    @property
    def strategy(self):
        return get_db_strategy(self.cn)

    def get_column_names(self, database: str, table: str) -> list[str]:
        return self.strategy.get_columns(self.cn, table, bypass_cache=self.bypass_cache)

    def get_columns(self, database: str, table: str) -> list[TableColumn]:
        """Full metadata for a table's columns.

        Raises
            IntrospectionUnavailable: When the driver fails to describe the table
        """
        try:
            return self.strategy.get_column_definitions(self.cn, table, bypass_cache=self.bypass_cache)
        except StoreError as err:
            logger.warning(f'Cannot introspect {database}.{table}: {err}')
            raise IntrospectionUnavailable(f'{database}.{table}') from err

    def get_unique_column_names(self, database: str, table: str) -> list[str]:
        return self.strategy.get_unique_column_names(self.cn, table, bypass_cache=self.bypass_cache)

    def get_tables(self, database: str) -> list[str]:
        return self.strategy.get_tables(self.cn)

    def get_create_table(self, database: str, table: str) -> str | None:
        return self.strategy.get_create_table(self.cn, table)
