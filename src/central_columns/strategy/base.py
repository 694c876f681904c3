"""
Base strategy interface for schema introspection.

Defines the abstract base class that all database-specific strategy implementations
must inherit from. Each concrete strategy reads live column metadata with
database-specific SQL, but the registry works with any database through this
consistent interface.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from central_columns.record import TableColumn
from central_columns.sql import quote_identifier as sql_quote_identifier

if TYPE_CHECKING:
    from central_columns.connection import ConnectionWrapper
    from central_columns.options import DatabaseOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for database-specific operations.
    """

    @contextmanager
    def _cursor(self, cn: 'ConnectionWrapper', sql: str, params: tuple | None = None):
        """Context manager for cursor lifecycle with SQL standardization.

        Handles cursor creation, SQL execution, and cleanup.
        """
        sql = self.standardize_sql(sql)
        cursor = cn.dbapi_connection.cursor()
        try:
            cursor.execute(sql, params or ())
            yield cursor
        finally:
            cursor.close()

    def _select_raw(self, cn: 'ConnectionWrapper', sql: str,
                    params: tuple | None = None) -> list[dict]:
        """Execute SQL and return results as list of dicts.
        """
        with self._cursor(cn, sql, params) as cursor:
            if cursor.description is None:
                return []
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def _select_column_raw(self, cn: 'ConnectionWrapper', sql: str,
                           params: tuple | None = None) -> list:
        """Execute SQL and return first column as list.
        """
        with self._cursor(cn, sql, params) as cursor:
            return [row[0] for row in cursor.fetchall()]

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'postgresql', 'sqlite')."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> str:
        """Build the database connection URL for this dialect.

        Args:
            options: DatabaseOptions containing connection parameters

        Returns
            Connection URL string suitable for SQLAlchemy
        """

    @abstractmethod
    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for this dialect.
        """

    @abstractmethod
    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings.

        Args:
            conn: Database connection to configure with database-specific settings
        """

    @abstractmethod
    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode.
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def quote_identifier(self, identifier: str) -> str:
        """Quote a database identifier.

        Default implementation uses standard SQL double-quote escaping.
        """
        return sql_quote_identifier(identifier, self.dialect_name)

    def standardize_sql(self, sql: str) -> str:
        """Convert placeholders to this dialect's style.

        Default implementation is a no-op.
        """
        return sql

    @abstractmethod
    def get_columns(self, cn: 'ConnectionWrapper', table: str,
                    bypass_cache: bool = False) -> list[str]:
        """Get all column names for a table ordered by their position.

        Args:
            cn: Database connection object
            table: Table name to get columns for
            bypass_cache: If True, bypass cache and query database directly

        Returns
            list: Column names, empty when the table does not exist
        """

    @abstractmethod
    def get_column_definitions(self, cn: 'ConnectionWrapper', table: str,
                               bypass_cache: bool = False) -> list[TableColumn]:
        """Get full live metadata for every column of a table.

        Raises
            IntrospectionUnavailable: When the dialect cannot describe the table
        """

    @abstractmethod
    def get_primary_keys(self, cn: 'ConnectionWrapper', table: str,
                         bypass_cache: bool = False) -> list[str]:
        """Get primary key columns for a table.
        """

    @abstractmethod
    def get_unique_columns(self, cn: 'ConnectionWrapper', table: str,
                           bypass_cache: bool = False) -> list[list[str]]:
        """Get column groups covered by UNIQUE constraints (excluding primary key).
        """

    @abstractmethod
    def get_tables(self, cn: 'ConnectionWrapper') -> list[str]:
        """List the base tables visible on the connection.
        """

    @abstractmethod
    def get_create_table(self, cn: 'ConnectionWrapper', table: str) -> str | None:
        """Return the table's CREATE TABLE text, or None when unavailable.
        """

    def get_unique_column_names(self, cn: 'ConnectionWrapper', table: str,
                                bypass_cache: bool = False) -> list[str]:
        """Columns whose values are unique: primary key first, then unique constraints.

        Shared implementation used by all database strategies.
        """
        names = list(self.get_primary_keys(cn, table, bypass_cache=bypass_cache))
        for group in self.get_unique_columns(cn, table, bypass_cache=bypass_cache):
            names.extend(col for col in group if col not in names)
        return names
