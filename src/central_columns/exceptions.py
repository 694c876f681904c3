"""
Registry-specific exception classes.
"""
import sqlite3

import psycopg


class DatabaseError(Exception):
    """Base class for all central_columns errors.
    """


class ConnectionFailure(DatabaseError):
    """Error establishing or maintaining database connection.
    """


class QueryError(DatabaseError):
    """Error in query syntax or execution.
    """


class IntegrityViolationError(DatabaseError):
    """Database constraint violation error.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class IntrospectionUnavailable(DatabaseError):
    """Live column metadata cannot be read for a table.
    """


# Driver errors raised by either supported DBAPI module
DriverError = (
    psycopg.Error,
    sqlite3.Error,
    )

IntegrityError = (
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    )

# Anything the bookkeeping store can raise while executing a statement
StoreError = DriverError + (
    QueryError,
    IntegrityViolationError,
    ConnectionFailure,
    )
