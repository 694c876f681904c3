"""
Registry store accessor.

All SQL text against the bookkeeping table is built here. Values are
rendered as quoted literals through the control connection's quoting
(``quote_string`` / ``quote_identifier``) and every statement is issued
on the control connection, never on a user connection.

Two behaviours wrap every public method (see `registry_call`):

- a disabled registry returns the call's neutral value without issuing a
  statement (empty list, zero, or True for mutations)
- a store failure is logged and mapped to the call's failure value (empty
  list, zero, or False for mutations)
"""
import copy
import logging
from collections.abc import Iterable, Sequence
from functools import wraps
from typing import Any

from central_columns.exceptions import IntegrityViolationError, StoreError
from central_columns.options import RegistryOptions
from central_columns.record import ColumnChange, ColumnRecord, STORAGE_FIELDS
from central_columns.record import denormalize_row, join_extra, normalize_record
from central_columns.sql import in_list

logger = logging.getLogger(__name__)

__all__ = ['RegistryStore', 'registry_call']


def registry_call(disabled: Any, failure: Any):
    """Short-circuit a store method when the registry is disabled and map
    store failures to `failure`.
    """
    def decorator(func):
        @wraps(func)
        def inner(self, *args, **kwargs):
            if not self.options.is_enabled:
                logger.warning(f'Central columns registry is disabled, skipping {func.__name__}')
                return copy.copy(disabled)
            try:
                return func(self, *args, **kwargs)
            except IntegrityViolationError as err:
                logger.error(f'{func.__name__} would duplicate a row in {self.options.table}: {err}')
                return copy.copy(failure)
            except StoreError as err:
                logger.error(f'{func.__name__} failed against {self.options.table}: {err}')
                return copy.copy(failure)
        return inner
    return decorator


class RegistryStore:
    """Queries against the central columns bookkeeping table.

    Args:
        cn: Control connection (anything with ``execute``, ``select_rows``,
            ``select_column``, ``select_scalar``, ``quote_identifier`` and
            ``quote_string``)
        options: Registry configuration naming the bookkeeping table
    """

    def __init__(self, cn: Any, options: RegistryOptions) -> None:
        self.cn = cn
        self.options = options

    @property
    def table(self) -> str:
        return self.cn.quote_identifier(self.options.table)

    def _where(self, database: str) -> str:
        return f'WHERE db_name = {self.cn.quote_string(database)}'

    def _names(self, names: Iterable[str]) -> str:
        return in_list(names, quote=self.cn.quote_string)

    @registry_call(disabled=True, failure=False)
    def create_table(self) -> bool:
        """Create the bookkeeping table when it does not exist yet."""
        sql = f"""CREATE TABLE IF NOT EXISTS {self.table} (
    db_name varchar(64) NOT NULL,
    table_name varchar(64) DEFAULT NULL,
    col_name varchar(64) NOT NULL,
    col_type varchar(64) NOT NULL,
    col_length text,
    col_collation varchar(64) NOT NULL,
    col_isNull smallint NOT NULL,
    col_extra varchar(255) DEFAULT '',
    col_default text,
    PRIMARY KEY (db_name, col_name)
);"""
        self.cn.execute(sql)
        logger.debug(f'Ensured bookkeeping table {self.options.table}')
        return True

    @registry_call(disabled=[], failure=[])
    def list_columns(self, database: str, offset: int = 0,
                     limit: int | None = None) -> list[ColumnRecord]:
        """All registry rows for a database, optionally one page of them.

        A falsy `limit` returns every row.
        """
        sql = f'SELECT * FROM {self.table} {self._where(database)}'
        if limit:
            sql += f' LIMIT {int(limit)} OFFSET {int(offset)}'
        rows = self.cn.select_rows(sql + ';')
        return [denormalize_row(row) for row in rows]

    @registry_call(disabled=0, failure=0)
    def count(self, database: str) -> int:
        """Number of registry rows for a database."""
        sql = f'SELECT count(db_name) FROM {self.table} {self._where(database)};'
        return int(self.cn.select_scalar(sql) or 0)

    @registry_call(disabled=[], failure=[])
    def existing_names(self, database: str, names: Sequence[str],
                       full_record: bool = False) -> list[str] | list[ColumnRecord]:
        """The subset of `names` present in the registry.

        With `full_record` the matching rows are returned as records.
        """
        if not names:
            return []
        select = '*' if full_record else 'col_name'
        sql = (f'SELECT {select} FROM {self.table} {self._where(database)}'
               f' AND col_name IN ({self._names(names)});')
        if full_record:
            return [denormalize_row(row) for row in self.cn.select_rows(sql)]
        return list(self.cn.select_column(sql))

    def columns_of_table(self, database: str, column_names: Sequence[str],
                         all_fields: bool = False) -> list[str] | list[ColumnRecord]:
        """Registry entries for a table's live column names."""
        return self.existing_names(database, column_names, full_record=all_fields)

    @registry_call(disabled=[], failure=[])
    def raw_list(self, database: str,
                 exclude_columns: Sequence[str] | None = None) -> list[ColumnRecord]:
        """Registry rows for a database, minus any named in `exclude_columns`.

        An empty exclusion list issues the unfiltered query.
        """
        sql = f'SELECT * FROM {self.table} {self._where(database)}'
        if exclude_columns:
            sql += f' AND col_name NOT IN ({self._names(exclude_columns)})'
        rows = self.cn.select_rows(sql + ';')
        return [denormalize_row(row) for row in rows]

    @registry_call(disabled=True, failure=False)
    def insert(self, record: ColumnRecord) -> bool:
        """Write one new registry row."""
        row = normalize_record(record)
        values = ','.join(str(row[field]) if field == 'col_isNull' else self.cn.quote_string(row[field])
                          for field in STORAGE_FIELDS)
        sql = (f'INSERT INTO {self.table} ({", ".join(STORAGE_FIELDS)})'
               f' VALUES ({values});')
        self.cn.execute(sql)
        logger.info(f'Registered column {record.database}.{record.name}')
        return True

    @registry_call(disabled=True, failure=False)
    def update_one(self, database: str, change: ColumnChange) -> bool:
        """Rewrite the registry row named `change.original_name`.

        An empty original name is skipped and still reports success.
        """
        if not change.original_name:
            logger.debug('Skipping column change without an original name')
            return True

        q = self.cn.quote_string
        sql = (f'UPDATE {self.table} SET'
               f' col_name = {q(change.name or change.original_name)},'
               f' col_type = {q(change.type)},'
               f' col_length = {q(change.length)},'
               f' col_isNull = {1 if change.is_nullable else 0},'
               f' col_collation = {q(change.collation)},'
               f' col_extra = {q(join_extra(change.attribute, change.extra))},'
               f' col_default = {q(change.default)}'
               f' {self._where(database)} AND col_name = {q(change.original_name)};')
        rowcount = self.cn.execute(sql)
        if rowcount == 0:
            logger.debug(f'No registry row named {change.original_name} in {database}')
        return True

    @registry_call(disabled=True, failure=False)
    def update_many(self, database: str, changes: Iterable[ColumnChange]) -> bool:
        """Apply changes in order, stopping at the first failure.

        Changes applied before the failure are kept.
        """
        for position, change in enumerate(changes):
            if not self.update_one(database, change):
                logger.error(f'Stopped batch update of {database} at position {position}')
                return False
        return True

    @registry_call(disabled=True, failure=False)
    def delete(self, database: str, names: Sequence[str]) -> bool:
        """Remove the named registry rows of a database."""
        if not names:
            return True
        sql = (f'DELETE FROM {self.table} {self._where(database)}'
               f' AND col_name IN ({self._names(names)});')
        self.cn.execute(sql)
        logger.info(f'Removed {len(names)} column(s) from {database} registry')
        return True
