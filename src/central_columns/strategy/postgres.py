"""
PostgreSQL-specific strategy implementation.

Column metadata comes from ``information_schema`` and the ``pg_index``
catalog, scoped to the connection's current schema. Serial and identity
columns are reported with the ``auto_increment`` modifier so they line up
with what other engines report.
"""
import logging
from typing import TYPE_CHECKING, Any

from central_columns.cache import cacheable_strategy
from central_columns.record import TableColumn
from central_columns.strategy.base import DatabaseStrategy, register_strategy
from central_columns.structure import unquote_default

if TYPE_CHECKING:
    from central_columns.connection import ConnectionWrapper
    from central_columns.options import DatabaseOptions

logger = logging.getLogger(__name__)

AUTO_INCREMENT = 'auto_increment'


def _column_type(row: dict) -> str:
    """Rebuild a sized type name from information_schema fields.

    >>> _column_type({'data_type': 'character varying', 'character_maximum_length': 100})
    'character varying(100)'
    >>> _column_type({'data_type': 'numeric', 'numeric_precision': 10, 'numeric_scale': 2})
    'numeric(10,2)'
    >>> _column_type({'data_type': 'integer', 'numeric_precision': 32, 'numeric_scale': 0})
    'integer'
    """
    data_type = row['data_type']
    if row.get('character_maximum_length'):
        return f"{data_type}({row['character_maximum_length']})"
    if data_type == 'numeric' and row.get('numeric_precision'):
        return f"{data_type}({row['numeric_precision']},{row.get('numeric_scale') or 0})"
    if data_type == 'USER-DEFINED':
        return row.get('udt_name') or data_type
    return data_type


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> str:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query_parts = []
        if options.timeout:
            query_parts.append(f'connect_timeout={options.timeout}')
        if options.appname:
            query_parts.append(f'application_name={options.appname}')

        url = (f'postgresql+psycopg://{options.username}:{options.password}'
               f'@{options.hostname}:{options.port}/{options.database}')

        if query_parts:
            url += '?' + '&'.join(query_parts)

        return url

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for PostgreSQL."""
        return {}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'password', 'database', 'port', 'timeout']

    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings for PostgreSQL.
        """
        raw_conn = conn
        if hasattr(conn, 'driver_connection'):
            raw_conn = conn.driver_connection
        self.enable_autocommit(raw_conn)

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode for PostgreSQL.
        """
        raw_conn.autocommit = True

    @cacheable_strategy('table_columns', ttl=300, maxsize=50)
    def get_columns(self, cn: 'ConnectionWrapper', table: str,
                    bypass_cache: bool = False) -> list[str]:
        """Get all column names for a table ordered by their position.
        """
        sql = """
select column_name
from information_schema.columns
where table_schema = current_schema() and table_name = %s
order by ordinal_position
"""
        return self._select_column_raw(cn, sql, (table,))

    @cacheable_strategy('column_definitions', ttl=300, maxsize=50)
    def get_column_definitions(self, cn: 'ConnectionWrapper', table: str,
                               bypass_cache: bool = False) -> list[TableColumn]:
        """Get full live metadata for every column of a table.
        """
        sql = """
select
    column_name,
    data_type,
    udt_name,
    character_maximum_length,
    numeric_precision,
    numeric_scale,
    is_nullable,
    column_default,
    collation_name,
    is_identity
from information_schema.columns
where table_schema = current_schema() and table_name = %s
order by ordinal_position
"""
        rows = self._select_raw(cn, sql, (table,))
        if not rows:
            return []

        primary = set(self.get_primary_keys(cn, table, bypass_cache=bypass_cache))
        unique = {col for group in self.get_unique_columns(cn, table, bypass_cache=bypass_cache)
                  for col in group}

        columns = []
        for row in rows:
            name = row['column_name']
            default = row['column_default']
            extra = ''
            if row['is_identity'] == 'YES' or (default or '').startswith('nextval('):
                extra, default = AUTO_INCREMENT, None
            if name in primary:
                key = 'PRI'
            elif name in unique:
                key = 'UNI'
            else:
                key = ''
            columns.append(TableColumn(
                name=name,
                type=_column_type(row),
                nullable=row['is_nullable'] == 'YES',
                default=unquote_default(default),
                extra=extra,
                collation=row['collation_name'] or '',
                key=key,
            ))
        return columns

    @cacheable_strategy('primary_keys', ttl=300, maxsize=50)
    def get_primary_keys(self, cn: 'ConnectionWrapper', table: str,
                         bypass_cache: bool = False) -> list[str]:
        """Get primary key columns for a table.
        """
        sql = """
select a.attname as column
from pg_index i
join pg_attribute a on a.attrelid = i.indrelid and a.attnum = any(i.indkey)
where i.indrelid = to_regclass(%s) and i.indisprimary
order by array_position(i.indkey::int2[], a.attnum)
"""
        return self._select_column_raw(cn, sql, (table,))

    @cacheable_strategy('unique_columns', ttl=300, maxsize=50)
    def get_unique_columns(self, cn: 'ConnectionWrapper', table: str,
                           bypass_cache: bool = False) -> list[list[str]]:
        """Get columns covered by unique indexes (excluding primary key).
        """
        sql = """
select i.indexrelid::regclass::text as index_name, a.attname as column
from pg_index i
join pg_attribute a on a.attrelid = i.indrelid and a.attnum = any(i.indkey)
where i.indrelid = to_regclass(%s) and i.indisunique and not i.indisprimary
order by index_name, array_position(i.indkey::int2[], a.attnum)
"""
        groups: dict[str, list[str]] = {}
        for row in self._select_raw(cn, sql, (table,)):
            groups.setdefault(row['index_name'], []).append(row['column'])
        return list(groups.values())

    def get_tables(self, cn: 'ConnectionWrapper') -> list[str]:
        """List base tables in the current schema.
        """
        sql = """
select table_name
from information_schema.tables
where table_schema = current_schema() and table_type = 'BASE TABLE'
order by table_name
"""
        return self._select_column_raw(cn, sql)

    def get_create_table(self, cn: 'ConnectionWrapper', table: str) -> str | None:
        """PostgreSQL keeps no CREATE TABLE text for its tables.
        """
        logger.warning(f'PostgreSQL does not store CREATE TABLE text for {table}')
        return None
