"""
SQLite-specific strategy implementation.

Column metadata comes from the ``pragma_table_info`` family of table-valued
functions. SQLite does not report auto-increment or collation per column,
so those are recovered from the table's stored CREATE TABLE text.
"""
import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from central_columns.cache import cacheable_strategy
from central_columns.record import TableColumn
from central_columns.sql import quote_identifier, standardize_placeholders
from central_columns.strategy.base import DatabaseStrategy, register_strategy
from central_columns.structure import parse_create_table, unquote_default

if TYPE_CHECKING:
    from central_columns.connection import ConnectionWrapper
    from central_columns.options import DatabaseOptions

logger = logging.getLogger(__name__)


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> str:
        """Build the SQLAlchemy connection URL for SQLite."""
        return f'sqlite:///{options.database}'

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        return {'connect_args': {'check_same_thread': False}}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings for SQLite.
        """
        sqlite_conn = conn
        if hasattr(conn, 'dbapi_connection'):
            sqlite_conn = conn.dbapi_connection

        sqlite_conn.execute('PRAGMA foreign_keys = ON')
        sqlite_conn.row_factory = sqlite3.Row
        self.enable_autocommit(sqlite_conn)

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode for SQLite.
        """
        raw_conn.isolation_level = None

    def standardize_sql(self, sql: str) -> str:
        """Convert PostgreSQL-style placeholders (%s) to SQLite-style (?).
        """
        return standardize_placeholders(sql, dialect='sqlite')

    @cacheable_strategy('table_columns', ttl=300, maxsize=50)
    def get_columns(self, cn: 'ConnectionWrapper', table: str,
                    bypass_cache: bool = False) -> list[str]:
        """Get all column names for a table ordered by their position.
        """
        quoted_table = quote_identifier(table, 'sqlite')
        sql = f"""
SELECT name FROM pragma_table_info({quoted_table})
ORDER BY cid
"""
        return self._select_column_raw(cn, sql)

    @cacheable_strategy('column_definitions', ttl=300, maxsize=50)
    def get_column_definitions(self, cn: 'ConnectionWrapper', table: str,
                               bypass_cache: bool = False) -> list[TableColumn]:
        """Get full live metadata for every column of a table.

        Types, nullability and defaults come from the pragma; modifiers and
        collations come from the parsed CREATE TABLE text.
        """
        quoted_table = quote_identifier(table, 'sqlite')
        sql = f"""
SELECT name, type, "notnull", dflt_value, pk FROM pragma_table_info({quoted_table})
ORDER BY cid
"""
        rows = self._select_raw(cn, sql)
        if not rows:
            return []

        parsed = {col.name: col for col in parse_create_table(self.get_create_table(cn, table))}
        unique = {col for group in self.get_unique_columns(cn, table, bypass_cache=bypass_cache)
                  for col in group}

        columns = []
        for row in rows:
            name = row['name']
            declared = parsed.get(name, TableColumn(name=name))
            if row['pk']:
                key = 'PRI'
            elif name in unique:
                key = 'UNI'
            else:
                key = ''
            columns.append(TableColumn(
                name=name,
                type=row['type'] or '',
                nullable=not (row['notnull'] or row['pk']),
                default=unquote_default(row['dflt_value']),
                extra=declared.extra,
                collation=declared.collation,
                key=key,
            ))
        return columns

    @cacheable_strategy('primary_keys', ttl=300, maxsize=50)
    def get_primary_keys(self, cn: 'ConnectionWrapper', table: str,
                         bypass_cache: bool = False) -> list[str]:
        """Get primary key columns for a table.
        """
        quoted_table = quote_identifier(table, 'sqlite')
        sql = f"""
select l.name as column from pragma_table_info({quoted_table}) as l where l.pk <> 0
order by l.pk
"""
        return self._select_column_raw(cn, sql)

    @cacheable_strategy('unique_columns', ttl=300, maxsize=50)
    def get_unique_columns(self, cn: 'ConnectionWrapper', table: str,
                           bypass_cache: bool = False) -> list[list[str]]:
        """Get columns that have UNIQUE constraints (excluding primary key).
        """
        quoted_table = quote_identifier(table, 'sqlite')
        sql = f'SELECT name FROM pragma_index_list({quoted_table}) WHERE "unique" = 1'
        index_names = self._select_column_raw(cn, sql)

        unique_columns = []
        primary_keys = set(self.get_primary_keys(cn, table, bypass_cache=bypass_cache))

        for idx_name in index_names:
            quoted_idx = quote_identifier(idx_name, 'sqlite')
            col_sql = f'SELECT name FROM pragma_index_info({quoted_idx})'
            cols = self._select_column_raw(cn, col_sql)

            if cols and set(cols) != primary_keys:
                unique_columns.append(cols)

        return unique_columns

    def get_tables(self, cn: 'ConnectionWrapper') -> list[str]:
        """List user tables, skipping SQLite's internal ones.
        """
        sql = """
SELECT name FROM sqlite_master
WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
ORDER BY name
"""
        return self._select_column_raw(cn, sql)

    def get_create_table(self, cn: 'ConnectionWrapper', table: str) -> str | None:
        """Return the CREATE TABLE text SQLite stored for the table.
        """
        sql = "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = %s"
        result = self._select_column_raw(cn, sql, (table,))
        if not result:
            logger.debug(f'No stored structure for table {table}')
            return None
        return result[0]
