"""
Recover column definitions from table structure text.

When live column metadata cannot be read, a table's ``CREATE TABLE``
statement is enough to rebuild each column's type, nullability, default,
collation and modifiers. The parser understands the MySQL, SQLite and
PostgreSQL spellings the registry meets in practice; it is not a general
SQL parser.
"""
import logging
import re

from central_columns.record import EXTRA_SEPARATOR, TableColumn

logger = logging.getLogger(__name__)

__all__ = [
    'parse_create_table',
    'split_sql_list',
    'unquote_identifier',
    'unquote_default',
]

_CREATE_TABLE = re.compile(r'\bCREATE\s+(?:TEMP(?:ORARY)?\s+)?TABLE\b', re.IGNORECASE)

_QUOTE_PAIRS = {"'": "'", '"': '"', '`': '`', '[': ']'}

# Leading words of a table-level constraint rather than a column
_TABLE_CONSTRAINTS = {
    'PRIMARY', 'UNIQUE', 'KEY', 'INDEX', 'CONSTRAINT', 'FOREIGN',
    'CHECK', 'FULLTEXT', 'SPATIAL', 'EXCLUDE',
}

# Words that end the type portion of a column definition
_CLAUSE_WORDS = {
    'NOT', 'NULL', 'DEFAULT', 'PRIMARY', 'UNIQUE', 'KEY', 'AUTO_INCREMENT',
    'AUTOINCREMENT', 'COLLATE', 'CHARSET', 'COMMENT', 'REFERENCES', 'CHECK',
    'ON', 'GENERATED', 'CONSTRAINT', 'AS', 'INVISIBLE', 'VISIBLE',
}

# Postgres literal with a type cast: 'abc'::character varying
_CAST_LITERAL = re.compile(r"^(?P<literal>'(?:[^']|'')*')::[\w\s\"\[\]().]+$")


def split_sql_list(expr: str, separator: str | None = ',') -> list[str]:
    """Split text on a separator at parenthesis depth zero, outside quotes.

    A separator of None splits on whitespace.

    >>> split_sql_list("id int, name varchar(10) DEFAULT 'a,b', PRIMARY KEY (id)")
    ['id int', "name varchar(10) DEFAULT 'a,b'", 'PRIMARY KEY (id)']
    >>> split_sql_list("decimal(10, 2) NOT NULL", None)
    ['decimal(10, 2)', 'NOT', 'NULL']
    """
    out: list[str] = []
    buf: list[str] = []
    depth = 0
    closing = None

    def flush():
        token = ''.join(buf).strip()
        if token:
            out.append(token)
        buf.clear()

    for ch in expr:
        if closing:
            buf.append(ch)
            if ch == closing:
                closing = None
            continue
        if ch in _QUOTE_PAIRS:
            closing = _QUOTE_PAIRS[ch]
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth = max(0, depth - 1)
        elif depth == 0 and (ch.isspace() if separator is None else ch == separator):
            flush()
            continue
        buf.append(ch)

    flush()
    return out


def unquote_identifier(name: str) -> str:
    """Strip identifier quoting.

    >>> unquote_identifier('`PMA_table`')
    'PMA_table'
    >>> unquote_identifier('"my ""col"')
    'my "col'
    """
    name = name.strip()
    if len(name) >= 2 and name[0] in _QUOTE_PAIRS and name[-1] == _QUOTE_PAIRS[name[0]]:
        quote = _QUOTE_PAIRS[name[0]]
        return name[1:-1].replace(quote * 2, quote)
    return name


def unquote_default(value: str | None) -> str | None:
    """Turn a default expression into the value the registry stores.

    NULL becomes None, string literals lose their quotes (and any
    PostgreSQL cast), keywords and expressions are kept verbatim.

    >>> unquote_default("'abc'::character varying")
    'abc'
    >>> unquote_default('CURRENT_TIMESTAMP')
    'CURRENT_TIMESTAMP'
    >>> unquote_default('NULL') is None
    True
    """
    if value is None:
        return None
    value = value.strip()
    if value.upper() == 'NULL':
        return None
    cast = _CAST_LITERAL.match(value)
    if cast:
        value = cast.group('literal')
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1].replace(value[0] * 2, value[0])
    return value


def _table_body(sql: str) -> str | None:
    """Text between the parentheses that follow CREATE TABLE <name>."""
    match = _CREATE_TABLE.search(sql)
    if not match:
        return None

    start = None
    depth = 0
    closing = None
    for idx in range(match.end(), len(sql)):
        ch = sql[idx]
        if closing:
            if ch == closing:
                closing = None
            continue
        if ch in _QUOTE_PAIRS:
            closing = _QUOTE_PAIRS[ch]
        elif ch == '(':
            if start is None:
                start = idx + 1
            depth += 1
        elif ch == ')' and start is not None:
            depth -= 1
            if depth == 0:
                return sql[start:idx]
    return None


def _key_columns(definition: str) -> list[str]:
    """Column names inside the first parenthesized list of a constraint."""
    match = re.search(r'\((.*)\)', definition, re.DOTALL)
    if not match:
        return []
    # strip prefix lengths and sort order: `name`(10) DESC
    return [unquote_identifier(split_sql_list(re.sub(r'\(\d+\)', '', part), None)[0])
            for part in split_sql_list(match.group(1))]


def _parse_column(definition: str) -> TableColumn | None:
    tokens = split_sql_list(definition, None)
    if not tokens:
        return None

    column = TableColumn(name=unquote_identifier(tokens[0]))

    idx = 1
    type_words = []
    while idx < len(tokens):
        word = tokens[idx].upper()
        if word in _CLAUSE_WORDS:
            break
        if word == 'CHARACTER' and type_words and idx + 1 < len(tokens) \
                and tokens[idx + 1].upper() == 'SET':
            break
        type_words.append(tokens[idx])
        idx += 1
    column.type = ' '.join(type_words)

    extras = []
    while idx < len(tokens):
        word = tokens[idx].upper()
        following = tokens[idx + 1] if idx + 1 < len(tokens) else ''
        if word == 'NOT' and following.upper() == 'NULL':
            column.nullable = False
            idx += 2
        elif word == 'NULL':
            column.nullable = True
            idx += 1
        elif word == 'DEFAULT' and following:
            column.default = unquote_default(following)
            idx += 2
        elif word == 'PRIMARY' and following.upper() == 'KEY':
            column.key = 'PRI'
            column.nullable = False
            idx += 2
        elif word == 'UNIQUE':
            column.key = column.key or 'UNI'
            idx += 2 if following.upper() == 'KEY' else 1
        elif word in {'AUTO_INCREMENT', 'AUTOINCREMENT'}:
            extras.append('auto_increment')
            idx += 1
        elif word == 'ON' and following.upper() == 'UPDATE' and idx + 2 < len(tokens):
            extras.append(f'on update {tokens[idx + 2]}')
            idx += 3
        elif word == 'COLLATE' and following:
            column.collation = unquote_identifier(following)
            idx += 2
        elif word in {'CHARSET', 'COMMENT'} and following:
            idx += 2
        elif word == 'CHARACTER' and following.upper() == 'SET':
            idx += 3
        else:
            idx += 1

    column.extra = EXTRA_SEPARATOR.join(extras)
    return column


def parse_create_table(sql: str | None) -> list[TableColumn]:
    """Parse the columns out of a CREATE TABLE statement.

    Text that holds no recognizable statement yields an empty list.

    >>> [c.name for c in parse_create_table('CREATE table `PMA_table` (id integer)')]
    ['id']
    """
    body = _table_body(sql or '')
    if body is None:
        logger.warning(f'No CREATE TABLE statement found in structure text: {(sql or "")[:60]!r}')
        return []

    columns: list[TableColumn] = []
    primary: list[str] = []
    unique: list[str] = []

    for definition in split_sql_list(body):
        first = split_sql_list(definition, None)[0].upper()
        if first in _TABLE_CONSTRAINTS:
            upper = definition.upper()
            if 'PRIMARY KEY' in upper:
                primary.extend(_key_columns(definition))
            elif first == 'UNIQUE' or ' UNIQUE' in upper:
                unique.extend(_key_columns(definition))
            continue
        column = _parse_column(definition)
        if column is not None:
            columns.append(column)

    for column in columns:
        if column.name in primary:
            column.key = 'PRI'
            column.nullable = False
        elif column.name in unique and not column.key:
            column.key = 'UNI'

    return columns


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
