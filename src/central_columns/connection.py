"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for creating new database connections
2. The `ConnectionWrapper` class that wraps SQLAlchemy connections with query methods
3. Engine creation and management through a thread-safe registry

The ConnectionWrapper is the client the registry store and the schema
inspector talk to:
- execute(sql, *args) - Execute SQL and return affected row count
- select(sql, *args) - Execute SELECT and return results via the data loader
- select_rows(sql, *args) - Execute SELECT and return a list of dicts
- select_column(sql, *args) - Execute SELECT and return the first column
- select_scalar(sql, *args) - Execute SELECT expecting exactly 1 value
"""
import atexit
import itertools
import logging
import threading
from collections.abc import Callable
from dataclasses import fields
from typing import Any, Self

import pandas as pd
import sqlalchemy as sa
from central_columns.cursor import Cursor, get_dict_cursor, load_data
from central_columns.exceptions import ConnectionFailure
from central_columns.options import DatabaseOptions, use_iterdict_data_loader
from central_columns.sql import quote_string
from central_columns.strategy import get_db_strategy, get_dialect_name
from central_columns.strategy import get_strategy
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = [
    'ConnectionWrapper',
    'connect',
    'configure_connection',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()

# Introspection cache identity, never reused within a process
_cache_tokens = itertools.count(1)


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Connections are not pooled: every `connect()` opens a fresh driver
    connection and closing the wrapper closes it.
    """
    key = str(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        strategy = get_strategy(options.drivername)
        url = strategy.build_connection_url(options)

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(strategy.get_engine_kwargs(options))
        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in list(_engine_registry.values()):
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ConnectionWrapper:
    """Wraps a SQLAlchemy connection object to track calls and execution time

    This class provides a thin wrapper around SQLAlchemy connection objects that:
    1. Tracks query execution counts and timing
    2. Quotes identifiers and string literals for its dialect
    3. Supports context manager protocol for explicit resource management
    4. Provides access to the underlying DBAPI connection via dbapi_connection
    """

    def __init__(self, sa_connection: sa.engine.Connection | None = None,
                 options: DatabaseOptions | None = None) -> None:
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine if sa_connection else None
        self.options = options
        self.dbapi_connection = sa_connection.connection if sa_connection else None
        self._dialect = get_dialect_name(sa_connection) if sa_connection else None
        self.calls = 0
        self.time = 0
        self.cache_token = f'cn{next(_cache_tokens)}'

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()
        logger.debug('Closed connection via context manager')

    def cursor(self) -> Cursor:
        """Get a wrapped cursor for this connection
        """
        if getattr(self.sa_connection, 'closed', False):
            self.sa_connection = _open_connection(self.engine)
            self.dbapi_connection = self.sa_connection.connection

        return get_dict_cursor(self)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    @property
    def dialect(self) -> str:
        """Return the dialect name ('postgresql' or 'sqlite')."""
        return self._dialect

    def quote_identifier(self, identifier: str) -> str:
        """Quote a table or column name for this connection's dialect."""
        return get_db_strategy(self).quote_identifier(identifier)

    def quote_string(self, value: Any) -> str:
        """Quote a value as a SQL string literal."""
        return quote_string(value)

    def close(self) -> None:
        """Close the SQLAlchemy connection.
        """
        if self.sa_connection is None or self.sa_connection.closed:
            return
        self.sa_connection.close()
        logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s '
                     f'(avg: {self.time/max(1, self.calls):.3f}s per query)')

    def execute(self, sql: str, *args: Any) -> int:
        """Execute a SQL statement with the given parameters and return affected row count.
        """
        cursor = self.cursor()
        try:
            cursor.execute(sql, *args)
            return cursor.rowcount
        finally:
            cursor.close()

    def select(self, sql: str, *args: Any, **kwargs: Any) -> list[dict[str, Any]] | pd.DataFrame:
        """Execute a SELECT query and hand the rows to the configured data loader.
        """
        cursor = self.cursor()
        try:
            cursor.execute(sql, *args)
            result = load_data(cursor, **kwargs)
        finally:
            cursor.close()
        logger.debug(f'Select query returned {len(result)} rows')
        return result

    @use_iterdict_data_loader
    def select_rows(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """Execute a query and return the rows as dictionaries.
        """
        return self.select(sql, *args)

    @use_iterdict_data_loader
    def select_column(self, sql: str, *args: Any) -> list[Any]:
        """Execute a query and return a single column as a list.
        """
        return [next(iter(row.values())) for row in self.select(sql, *args)]

    @use_iterdict_data_loader
    def select_scalar(self, sql: str, *args: Any) -> Any:
        """Execute a query and return a single scalar value.

        Raises AssertionError if the query returns zero or multiple rows.
        """
        data = self.select(sql, *args)
        assert len(data) == 1, f'Expected one row, got {len(data)}'
        return next(iter(data[0].values()))


def configure_connection(sa_connection: sa.engine.Connection) -> None:
    """Configure a SQLAlchemy connection with database-specific settings.
    """
    strategy = get_db_strategy(sa_connection)
    strategy.configure_connection(sa_connection.connection)


def _open_connection(engine: Engine) -> sa.engine.Connection:
    """Open and configure a new connection on the engine.

    Raises
        ConnectionFailure: When the database cannot be reached
    """
    try:
        sa_connection = engine.connect()
    except sa.exc.DBAPIError as err:
        logger.error(f'Cannot connect to {engine.url.render_as_string(hide_password=True)}: {err}')
        raise ConnectionFailure(str(err.orig or err)) from err
    configure_connection(sa_connection)
    return sa_connection


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> ConnectionWrapper:
    """Connect to a database using SQLAlchemy for connection management

    Args:
        options: Can be:
                - DatabaseOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        ConnectionWrapper object for connecting to the database
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options)
    sa_connection = _open_connection(engine)

    return ConnectionWrapper(sa_connection, options)
