"""
Column records and the storage codec.

The registry table keeps storage modifiers in a single `col_extra` column
(for example ``UNSIGNED,auto_increment``). In memory a `ColumnRecord` splits
that text into the one recognized *attribute* and the remaining *extra*:

- `denormalize_row()` - storage row -> ColumnRecord
- `normalize_record()` - ColumnRecord -> storage row
- `split_extra()` / `join_extra()` - the modifier split and its inverse
- `extract_column_spec()` - split a live raw type like ``int(10) unsigned``
- `record_from_column()` - build a registry record from a live column
"""
import logging
import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any, Self

logger = logging.getLogger(__name__)

__all__ = [
    'ColumnRecord',
    'ColumnChange',
    'TableColumn',
    'EXTRA_SEPARATOR',
    'STORAGE_FIELDS',
    'split_extra',
    'join_extra',
    'denormalize_row',
    'normalize_record',
    'extract_column_spec',
    'record_from_column',
]

EXTRA_SEPARATOR = ','

STORAGE_FIELDS = (
    'db_name',
    'col_name',
    'col_type',
    'col_length',
    'col_collation',
    'col_isNull',
    'col_extra',
    'col_default',
)

ON_UPDATE_PREFIX = 'on update '
BINARY = 'BINARY'
UNSIGNED = 'UNSIGNED'
UNSIGNED_ZEROFILL = 'UNSIGNED ZEROFILL'

# Bracketed size/precision at the end of the base type: varchar(100), decimal(10,2)
_TYPE_SPEC = re.compile(r'^\s*(?P<type>[^(]+?)\s*\((?P<spec>.*)\)\s*(?P<rest>[^)]*)$')

_MODIFIER_WORDS = {'unsigned', 'zerofill', 'binary'}

_ATTRIBUTE_PRIORITY = (
    lambda token: token.startswith(ON_UPDATE_PREFIX),
    lambda token: token == BINARY,
    lambda token: token in {UNSIGNED, UNSIGNED_ZEROFILL},
)


@dataclass(slots=True)
class TableColumn:
    """Read-only snapshot of one live column of a table.

    `type` is the raw type text as the engine reports it (``varchar(100)``,
    ``int(10) unsigned``); `extra` is the engine's free-form modifier text
    (``auto_increment``, ``on update CURRENT_TIMESTAMP``); `key` is ``PRI``,
    ``UNI`` or empty.
    """
    name: str
    type: str = ''
    nullable: bool = True
    default: str | None = None
    extra: str = ''
    collation: str = ''
    key: str = ''


@dataclass(slots=True)
class ColumnRecord:
    """One row of the central column registry, keyed by (database, name)."""
    database: str
    name: str
    type: str = ''
    length: str = ''
    is_nullable: bool = False
    collation: str = ''
    default: str = ''
    extra: str = ''
    attribute: str = ''

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ColumnChange:
    """Replacement values for one existing registry row.

    An empty `original_name` marks a position the caller wants skipped; an
    empty `name` keeps the original name.
    """
    original_name: str
    name: str = ''
    type: str = ''
    length: str = ''
    collation: str = ''
    is_nullable: bool = False
    extra: str = ''
    attribute: str = ''
    default: str = ''

    @classmethod
    def from_record(cls, record: ColumnRecord, original_name: str | None = None) -> Self:
        return cls(
            original_name=original_name or record.name,
            name=record.name,
            type=record.type,
            length=record.length,
            collation=record.collation,
            is_nullable=record.is_nullable,
            extra=record.extra,
            attribute=record.attribute,
            default=record.default,
        )


def _text(value: Any) -> str:
    if value is None:
        return ''
    return str(value)


def split_extra(raw: str | None) -> tuple[str, str]:
    """Split a stored modifier string into (attribute, extra).

    Recognized attributes, first match wins: an ``on update`` clause, the
    binary marker, the unsigned marker (optionally zero-filled). Every other
    token stays in extra, in its original order.

    >>> split_extra('UNSIGNED,auto_increment')
    ('UNSIGNED', 'auto_increment')
    >>> split_extra('on update CURRENT_TIMESTAMP')
    ('on update CURRENT_TIMESTAMP', '')
    >>> split_extra('auto_increment')
    ('', 'auto_increment')
    """
    tokens = [token.strip() for token in _text(raw).split(EXTRA_SEPARATOR)]
    tokens = [token for token in tokens if token]

    attribute = ''
    for matches in _ATTRIBUTE_PRIORITY:
        attribute = next((token for token in tokens if matches(token)), '')
        if attribute:
            break

    if not attribute:
        return '', EXTRA_SEPARATOR.join(tokens)

    rest = list(tokens)
    rest.remove(attribute)
    return attribute, EXTRA_SEPARATOR.join(rest)


def join_extra(attribute: str, extra: str) -> str:
    """Recombine attribute and extra into the stored modifier string.

    >>> join_extra('UNSIGNED', 'auto_increment')
    'UNSIGNED,auto_increment'
    >>> join_extra('', '')
    ''
    """
    return EXTRA_SEPARATOR.join(part for part in (_text(attribute), _text(extra)) if part)


def _length(value: Any) -> str:
    if value in {None, 0, '0'}:
        return ''
    return str(value)


def denormalize_row(row: Mapping[str, Any]) -> ColumnRecord:
    """Convert a storage row into a ColumnRecord.

    Column names are matched case-insensitively since some engines fold
    unquoted identifiers (PostgreSQL reports ``col_isnull``). A row that
    already carries ``col_attribute`` is taken as split.
    """
    values = {str(key).lower(): value for key, value in row.items()}

    if 'col_attribute' in values:
        attribute = _text(values['col_attribute'])
        extra = _text(values.get('col_extra'))
    else:
        attribute, extra = split_extra(values.get('col_extra'))

    return ColumnRecord(
        database=_text(values.get('db_name')),
        name=_text(values.get('col_name')),
        type=_text(values.get('col_type')),
        length=_length(values.get('col_length')),
        is_nullable=bool(int(values.get('col_isnull') or 0)),
        collation=_text(values.get('col_collation')),
        default=_text(values.get('col_default')),
        extra=extra,
        attribute=attribute,
    )


def normalize_record(record: ColumnRecord) -> dict[str, Any]:
    """Convert a ColumnRecord into a storage row.
    """
    return {
        'db_name': _text(record.database),
        'col_name': _text(record.name),
        'col_type': _text(record.type),
        'col_length': _text(record.length),
        'col_collation': _text(record.collation),
        'col_isNull': 1 if record.is_nullable else 0,
        'col_extra': join_extra(record.attribute, record.extra),
        'col_default': _text(record.default),
    }


def extract_column_spec(column_type: str) -> tuple[str, str, str]:
    """Split a raw column type into (type, length, attribute).

    >>> extract_column_spec('varchar(100)')
    ('varchar', '100', '')
    >>> extract_column_spec('int(10) unsigned zerofill')
    ('int', '10', 'UNSIGNED ZEROFILL')
    >>> extract_column_spec('DATETIME')
    ('DATETIME', '', '')
    """
    column_type = _text(column_type).strip()
    match = _TYPE_SPEC.match(column_type)
    if match:
        base, length, rest = match.group('type'), match.group('spec').strip(), match.group('rest')
    else:
        base, length, rest = column_type, '', ''

    modifiers = rest.lower().split()
    words = base.split()
    # a lone BINARY word is the type itself, not a modifier
    while len(words) > 1 and words[-1].lower() in _MODIFIER_WORDS:
        modifiers.insert(0, words.pop().lower())
    base = ' '.join(words)

    if 'zerofill' in modifiers:
        attribute = UNSIGNED_ZEROFILL
    elif 'unsigned' in modifiers:
        attribute = UNSIGNED
    elif 'binary' in modifiers:
        attribute = BINARY
    else:
        attribute = ''

    return base.strip(), length, attribute


def record_from_column(database: str, column: TableColumn) -> ColumnRecord:
    """Build the registry record describing a live column.

    The attribute comes from the type text when it carries one, otherwise
    from an ``on update`` clause in the column's extra text.
    """
    base, length, attribute = extract_column_spec(column.type)
    extra_attribute, extra = split_extra(column.extra)
    if not attribute:
        attribute = extra_attribute
    elif extra_attribute:
        extra = join_extra(extra_attribute, extra)

    return ColumnRecord(
        database=database,
        name=column.name,
        type=base,
        length=length,
        is_nullable=bool(column.nullable),
        collation=_text(column.collation),
        default=_text(column.default),
        extra=extra,
        attribute=attribute,
    )


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
