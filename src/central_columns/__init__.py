"""
Central column registry with support for PostgreSQL and SQLite.

Registry operations can be called either as:
- Module functions: central_columns.count(registry, 'shop')
- CentralColumns methods: registry.count('shop')

The module functions are thin facades over the methods.
"""
__version__ = '0.1.0'

from collections.abc import Iterable, Sequence

from central_columns.connection import ConnectionWrapper, connect
from central_columns.exceptions import ConnectionFailure, DatabaseError
from central_columns.exceptions import DriverError, IntegrityError
from central_columns.exceptions import IntegrityViolationError
from central_columns.exceptions import IntrospectionUnavailable
from central_columns.exceptions import QueryError, StoreError
from central_columns.exceptions import ValidationError
from central_columns.options import DatabaseOptions, RegistryOptions
from central_columns.record import ColumnChange, ColumnRecord, TableColumn
from central_columns.registry import CentralColumns
from central_columns.schema import ConnectionSchemaInspector, SchemaInspector


def count(registry: CentralColumns, database: str) -> int:
    """Number of registry rows for a database.
    """
    return registry.count(database)


def list_columns(registry: CentralColumns, database: str, offset: int = 0,
                 limit: int | None = None) -> list[ColumnRecord]:
    """Registry rows for a database, optionally one page of them.
    """
    return registry.list_columns(database, offset, limit)


def columns_not_in_registry(registry: CentralColumns, database: str, table: str) -> list[str]:
    """Live columns of a table that the registry does not hold.
    """
    return registry.columns_not_in_registry(database, table)


def sync_unique_columns(registry: CentralColumns, database: str, tables: Iterable[str],
                        add_all: bool = False) -> bool:
    """Register the key columns (or all columns) of each table.
    """
    return registry.sync_unique_columns(database, tables, add_all)


def make_consistent_with_list(registry: CentralColumns, database: str,
                              tables: Sequence[str]) -> bool:
    """Prune and fill the registry against a list of tables.
    """
    return registry.make_consistent_with_list(database, tables)


def update_many(registry: CentralColumns, database: str,
                changes: Iterable[ColumnChange]) -> bool:
    """Apply column changes in order, stopping at the first failure.
    """
    return registry.update_many(database, changes)


__all__ = [
    'connect',
    'ConnectionWrapper',
    'DatabaseOptions',
    'RegistryOptions',
    'CentralColumns',
    'ColumnRecord',
    'ColumnChange',
    'TableColumn',
    'SchemaInspector',
    'ConnectionSchemaInspector',
    'count',
    'list_columns',
    'columns_not_in_registry',
    'sync_unique_columns',
    'make_consistent_with_list',
    'update_many',
    'IntegrityError',
    'DriverError',
    'StoreError',
    'ConnectionFailure',
    'ValidationError',
    'DatabaseError',
    'IntegrityViolationError',
    'IntrospectionUnavailable',
    'QueryError',
]
