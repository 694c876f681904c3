"""
Keeping the registry in step with live tables.

- `columns_not_in_registry()` - live columns of a table the registry lacks
- `sync_unique_columns()` - register a table's key columns (or all columns)
- `sync_columns()` - register chosen columns of one table
- `make_consistent_with_list()` - prune rows no listed table carries, then fill
- `delete_columns()` / `delete_table_columns()` - explicit removal

Registry rows are keyed by column name alone, so a renamed column looks
exactly like a dropped one: pruning removes the old name and filling adds
the new one as a fresh row.
"""
import logging
from collections.abc import Iterable, Sequence

from central_columns.exceptions import IntrospectionUnavailable
from central_columns.record import TableColumn, record_from_column
from central_columns.schema import SchemaInspector
from central_columns.store import RegistryStore
from central_columns.structure import parse_create_table

logger = logging.getLogger(__name__)

__all__ = [
    'columns_not_in_registry',
    'sync_unique_columns',
    'sync_columns',
    'make_consistent_with_list',
    'delete_columns',
    'delete_table_columns',
]


def live_columns(inspector: SchemaInspector, database: str, table: str) -> list[TableColumn]:
    """Full live column metadata, reparsed from structure text when needed."""
    try:
        return inspector.get_columns(database, table)
    except IntrospectionUnavailable:
        logger.debug(f'Falling back to structure text for {database}.{table}')
    text = inspector.get_create_table(database, table)
    if not text:
        logger.warning(f'No column metadata available for {database}.{table}')
        return []
    return parse_create_table(text)


def _register(store: RegistryStore, inspector: SchemaInspector, database: str,
              table: str, names: Sequence[str], seen: set[str]) -> bool:
    """Insert registry rows for the listed columns of a table not yet present."""
    if not names:
        return True

    present = set(store.existing_names(database, names))
    missing = [name for name in names if name not in present and name not in seen]
    if present:
        logger.debug(f'Already registered in {database}: {sorted(present)}')
    if not missing:
        return True

    definitions = {column.name: column for column in live_columns(inspector, database, table)}
    for name in missing:
        column = definitions.get(name)
        if column is None:
            logger.warning(f'Column {name} not found in {database}.{table}')
            continue
        if not store.insert(record_from_column(database, column)):
            return False
        seen.add(name)
    return True


def columns_not_in_registry(store: RegistryStore, inspector: SchemaInspector,
                            database: str, table: str) -> list[str]:
    """Live column names of `table` that the registry does not hold for `database`.
    """
    if not store.options.is_enabled:
        return []
    names = inspector.get_column_names(database, table)
    if not names:
        return []
    existing = set(store.existing_names(database, names))
    return [name for name in names if name not in existing]


def sync_unique_columns(store: RegistryStore, inspector: SchemaInspector, database: str,
                        tables: Iterable[str], add_all: bool = False) -> bool:
    """Register each table's primary-key and unique columns, or every column with `add_all`.

    Already registered names are skipped, so repeating a call is harmless.

    Returns
        False as soon as an insert fails, True otherwise
    """
    if not store.options.is_enabled:
        return True

    seen: set[str] = set()
    for table in tables:
        if add_all:
            names = inspector.get_column_names(database, table)
        else:
            names = inspector.get_unique_column_names(database, table)
        if not _register(store, inspector, database, table, names, seen):
            return False
    return True


def sync_columns(store: RegistryStore, inspector: SchemaInspector, database: str,
                 table: str, columns: Sequence[str]) -> bool:
    """Register the chosen columns of one table."""
    if not store.options.is_enabled:
        return True
    return _register(store, inspector, database, table, list(columns), set())


def make_consistent_with_list(store: RegistryStore, inspector: SchemaInspector,
                              database: str, tables: Sequence[str]) -> bool:
    """Bring a database's registry in line with `tables`.

    First every registry row whose name is not a live column of any listed
    table is deleted, then every live column of the listed tables missing
    from the registry is added. Both phases always run; the result is False
    when any statement failed.
    """
    if not store.options.is_enabled:
        return True

    tables = list(tables)
    live: set[str] = set()
    for table in tables:
        live.update(inspector.get_column_names(database, table))

    ok = True
    for record in store.raw_list(database):
        if record.name not in live:
            logger.info(f'Pruning {database}.{record.name}: not in any listed table')
            ok = store.delete(database, [record.name]) and ok

    seen: set[str] = set()
    for table in tables:
        names = inspector.get_column_names(database, table)
        ok = _register(store, inspector, database, table, names, seen) and ok
    return ok


def delete_columns(store: RegistryStore, database: str, names: Sequence[str]) -> bool:
    """Remove registry rows by column name."""
    return store.delete(database, list(names))


def delete_table_columns(store: RegistryStore, inspector: SchemaInspector,
                         database: str, tables: Iterable[str]) -> bool:
    """Remove the registry rows named after the live columns of `tables`."""
    names: list[str] = []
    for table in tables:
        for name in inspector.get_column_names(database, table):
            if name not in names:
                names.append(name)
    return store.delete(database, names)
