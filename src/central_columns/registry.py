"""
The central columns registry.

`CentralColumns` binds the three collaborators every operation needs: the
control connection the bookkeeping table lives on, a schema inspector for
the user's databases, and the registry configuration. Configuration is
passed in per instance; nothing is looked up globally::

    registry = CentralColumns(control, ConnectionSchemaInspector(user_cn),
                              {'user': 'pma_user', 'database': 'phpmyadmin',
                               'table': 'pma__central_columns'})
    registry.sync_unique_columns('shop', ['orders'])
"""
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import fields
from typing import Any

import pandas as pd
from central_columns import sync
from central_columns.bulk import changes_from_params
from central_columns.exceptions import ValidationError
from central_columns.options import RegistryOptions
from central_columns.record import ColumnChange, ColumnRecord
from central_columns.schema import SchemaInspector
from central_columns.store import RegistryStore

logger = logging.getLogger(__name__)

__all__ = ['CentralColumns']


class CentralColumns:
    """Registry of canonical column definitions per database.

    Args:
        control: Control connection holding the bookkeeping table
        inspector: Live schema metadata for user databases
        options: `RegistryOptions` or a dict of its fields
    """

    def __init__(self, control: Any, inspector: SchemaInspector,
                 options: RegistryOptions | Mapping[str, Any]) -> None:
        if not isinstance(options, RegistryOptions):
            options = RegistryOptions(**options)
        self.options = options
        self.inspector = inspector
        self.store = RegistryStore(control, options)

    def get_params(self) -> dict[str, str]:
        """The control user, bookkeeping database and registry table, or {} when disabled."""
        if not self.options.is_enabled:
            return {}
        return {
            'user': self.options.user,
            'db': self.options.database,
            'table': self.options.table,
        }

    def create_table(self) -> bool:
        return self.store.create_table()

    def list_columns(self, database: str, offset: int = 0,
                     limit: int | None = None) -> list[ColumnRecord]:
        return self.store.list_columns(database, offset, limit)

    def count(self, database: str) -> int:
        return self.store.count(database)

    def list_frame(self, database: str) -> pd.DataFrame:
        """The database's registry as a DataFrame, one denormalized record per row."""
        columns = [field.name for field in fields(ColumnRecord)]
        records = self.store.list_columns(database)
        if not records:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame.from_records([record.to_dict() for record in records], columns=columns)

    def get_from_table(self, database: str, table: str,
                       all_fields: bool = False) -> list[str] | list[ColumnRecord]:
        """Registry entries matching the live columns of `table`."""
        names = self.inspector.get_column_names(database, table)
        return self.store.columns_of_table(database, names, all_fields)

    def get_list_raw(self, database: str, table: str = '') -> list[ColumnRecord]:
        """Registry rows, excluding the live columns of `table` when one is named."""
        exclude = self.inspector.get_column_names(database, table) if table else None
        return self.store.raw_list(database, exclude)

    def find_existing(self, database: str, names: Sequence[str],
                      full_record: bool = False) -> list[str] | list[ColumnRecord]:
        return self.store.existing_names(database, names, full_record)

    def columns_not_in_registry(self, database: str, table: str) -> list[str]:
        return sync.columns_not_in_registry(self.store, self.inspector, database, table)

    def sync_unique_columns(self, database: str, tables: Iterable[str],
                            add_all: bool = False) -> bool:
        return sync.sync_unique_columns(self.store, self.inspector, database, tables, add_all)

    def sync_columns(self, database: str, table: str, columns: Sequence[str]) -> bool:
        return sync.sync_columns(self.store, self.inspector, database, table, columns)

    def make_consistent_with_list(self, database: str, tables: Sequence[str]) -> bool:
        return sync.make_consistent_with_list(self.store, self.inspector, database, tables)

    def make_consistent(self, database: str) -> bool:
        """Reconcile against every table the database currently has."""
        tables = self.inspector.get_tables(database)
        return self.make_consistent_with_list(database, tables)

    def delete_columns(self, database: str, names: Sequence[str]) -> bool:
        return sync.delete_columns(self.store, database, names)

    def delete_table_columns(self, database: str, tables: Iterable[str]) -> bool:
        return sync.delete_table_columns(self.store, self.inspector, database, tables)

    def add_column(self, record: ColumnRecord) -> bool:
        """Register a caller-built record."""
        return self.store.insert(record)

    def update_one(self, database: str, change: ColumnChange) -> bool:
        return self.store.update_one(database, change)

    def update_many(self, database: str, changes: Iterable[ColumnChange]) -> bool:
        return self.store.update_many(database, changes)

    def update_from_params(self, params: Mapping[str, Any]) -> bool:
        """Apply a positional edit bundle; ``params['db']`` names the database.

        Raises
            ValidationError: The bundle is malformed; nothing was written
        """
        if not params.get('db'):
            raise ValidationError('Missing required field db')
        changes = changes_from_params(params)
        return self.store.update_many(params['db'], changes)
