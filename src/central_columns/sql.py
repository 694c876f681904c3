"""
SQL text helpers shared by the registry store and the dialect strategies.

All literal values that end up in registry statements pass through
`quote_string`, and every identifier through `quote_identifier`, so the
quoting convention is enforced in one place:

- `quote_identifier()` - Quote table/column names for a dialect
- `quote_string()` - Render a value as a single-quoted SQL literal
- `in_list()` - Render a quoted, comma-joined IN (...) body
- `standardize_placeholders()` - Convert %s to ? for dialects that need it
"""
import re
from collections.abc import Callable, Iterable
from typing import Any

# String literals protected from placeholder rewriting
_STRING_LITERAL = re.compile(r"'[^']*'|\"[^\"]*\"")


def quote_identifier(identifier: str, dialect: str = 'postgresql') -> str:
    """Safely quote database identifiers.

    Parameters
        identifier: Table or column name
        dialect: Database dialect

    Returns
        Quoted identifier

    Raises
        ValueError: If dialect is unsupported

    >>> quote_identifier('my"table')
    '"my""table"'
    >>> quote_identifier('pma__central_columns', 'mysql')
    '`pma__central_columns`'
    """
    if dialect in {'postgresql', 'sqlite'}:
        return '"' + identifier.replace('"', '""') + '"'
    if dialect == 'mysql':
        return '`' + identifier.replace('`', '``') + '`'

    raise ValueError(f'Unknown dialect: {dialect}')


def quote_string(value: Any) -> str:
    """Render a value as a single-quoted SQL string literal.

    None renders as an empty string literal, matching how the registry stores
    absent defaults and collations.

    >>> quote_string("O'Brien")
    "'O''Brien'"
    >>> quote_string(None)
    "''"
    """
    if value is None:
        value = ''
    return "'" + str(value).replace("'", "''") + "'"


def in_list(values: Iterable[Any], quote: Callable[[Any], str] = quote_string) -> str:
    """Render values as the body of an IN (...) clause.

    >>> in_list(['id', 'col1'])
    "'id','col1'"
    """
    return ','.join(quote(value) for value in values)


def standardize_placeholders(sql: str, dialect: str = 'postgresql') -> str:
    """Standardize SQL placeholders between ? and %s based on database type.

    Placeholders inside string literals are left alone.

    >>> standardize_placeholders("SELECT * FROM t WHERE a = %s AND b LIKE '%s.jpg'", 'sqlite')
    "SELECT * FROM t WHERE a = ? AND b LIKE '%s.jpg'"
    """
    if not sql or dialect != 'sqlite':
        return sql

    literals = []

    def replace_literal(match):
        literals.append(match.group(0))
        return f'__LITERAL_{len(literals)-1}__'

    protected_sql = _STRING_LITERAL.sub(replace_literal, sql)
    converted_sql = protected_sql.replace('%s', '?')

    for i, literal in enumerate(literals):
        converted_sql = converted_sql.replace(f'__LITERAL_{i}__', literal)

    return converted_sql


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
