"""
Cursor wrapper for PostgreSQL and SQLite connections.

Implements the subset of Python DB-API 2.0 (PEP-249) the registry needs,
with SQL logging and per-connection call timing.
"""
import logging
import sqlite3
import time
from collections.abc import Sequence
from functools import wraps
from typing import Any

from central_columns.exceptions import DriverError, IntegrityError
from central_columns.exceptions import IntegrityViolationError, QueryError
from central_columns.strategy import get_db_strategy
from psycopg.rows import dict_row

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL queries and parameters."""
    @wraps(func)
    def wrapper(self, operation: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{operation}\nargs: {args}')
        try:
            return func(self, operation, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}\nargs: {args}')
            raise
        finally:
            elapsed = time.time() - start
            self.connwrapper.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Cursor:
    """Cursor class delegating to the driver cursor.

    Uses the strategy pattern to handle dialect-specific placeholder
    conversion (%s vs ?) automatically.
    """

    def __init__(self, cursor: Any, connection_wrapper: Any, strategy: Any = None) -> None:
        self.dbapi_cursor = cursor
        self.connwrapper = connection_wrapper
        self._strategy = strategy

    @property
    def strategy(self) -> Any:
        """Get the database strategy, lazily initializing if needed."""
        if self._strategy is None:
            self._strategy = get_db_strategy(self.connwrapper)
        return self._strategy

    def __getattr__(self, name: str) -> Any:
        """Delegate members to underlying cursor."""
        return getattr(self.dbapi_cursor, name)

    @property
    def description(self) -> list[tuple] | None:
        """Column descriptions for last query."""
        return self.dbapi_cursor.description

    @property
    def rowcount(self) -> int:
        """Number of rows produced/affected by last operation."""
        return self.dbapi_cursor.rowcount

    def close(self) -> None:
        self.dbapi_cursor.close()

    def fetchall(self) -> list[Any]:
        return self.dbapi_cursor.fetchall()

    @dumpsql
    def execute(self, operation: str, *args: Any) -> int:
        """Execute a database operation.

        Raises
            IntegrityViolationError: A constraint rejected the statement
            QueryError: Any other driver failure
        """
        operation = self.strategy.standardize_sql(operation)

        try:
            if args:
                params = args[0] if len(args) == 1 and isinstance(args[0], Sequence) \
                    and not isinstance(args[0], str) else args
                self.dbapi_cursor.execute(operation, params)
            else:
                self.dbapi_cursor.execute(operation)
        except IntegrityError as err:
            raise IntegrityViolationError(str(err)) from err
        except DriverError as err:
            raise QueryError(str(err)) from err

        return self.dbapi_cursor.rowcount


def get_dict_cursor(cn: Any) -> Cursor:
    """Get cursor that returns rows as dictionaries."""
    raw_conn = cn.dbapi_connection
    strategy = get_db_strategy(cn)

    if cn.dialect == 'postgresql':
        cursor = raw_conn.cursor(row_factory=dict_row)
        return Cursor(cursor, cn, strategy)

    if cn.dialect == 'sqlite':
        sqlite_conn = raw_conn
        if hasattr(raw_conn, 'dbapi_connection'):
            sqlite_conn = raw_conn.dbapi_connection
        sqlite_conn.row_factory = sqlite3.Row
        cursor = sqlite_conn.cursor()
        return Cursor(cursor, cn, strategy)

    raise ValueError(f'Unknown connection type: {cn.dialect}')


def column_names(cursor: Cursor) -> list[str]:
    """Column names from the cursor description of the last query."""
    if cursor.description is None:
        return []
    return [desc[0] for desc in cursor.description]


def load_data(cursor: Cursor, **kwargs: Any) -> Any:
    """Process cursor results into the connection's configured format."""
    columns = column_names(cursor)
    rows = cursor.fetchall() if columns else []
    data = [dict(row) if isinstance(row, dict) else dict(zip(columns, row)) for row in rows]

    data_loader = cursor.connwrapper.options.data_loader
    return data_loader(data, columns, **kwargs)
