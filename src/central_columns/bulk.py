"""
Batch edits of registry rows from a positional parameter bundle.

An edit form posts one array per field, aligned by position::

    {
        'db': 'phpmyadmin',
        'orig_col_name': ['col1', 'col2'],
        'field_name': ['col1', 'col2'],
        'field_type': ['varchar', 'DATETIME'],
        'field_default_type': ['NONE', 'CURRENT_TIMESTAMP'],
        'field_null': {1: 'on'},
        ...
    }

`changes_from_params()` turns the bundle into an ordered list of
`ColumnChange` descriptors, rejecting bundles whose arrays do not line up
before anything is written.
"""
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from central_columns.exceptions import ValidationError
from central_columns.record import ColumnChange

logger = logging.getLogger(__name__)

__all__ = ['changes_from_params', 'DEFAULT_NONE', 'DEFAULT_USER_DEFINED']

DEFAULT_NONE = 'NONE'
DEFAULT_USER_DEFINED = 'USER_DEFINED'

REQUIRED_FIELDS = ('orig_col_name', 'field_name')

# Aligned one-per-position arrays
POSITIONAL_FIELDS = (
    'field_type',
    'field_length',
    'field_attribute',
    'field_collation',
    'field_default_type',
)

# Arrays that may omit positions
SPARSE_FIELDS = ('col_extra', 'field_null', 'field_default_value')


def _sparse_get(values: Mapping | Sequence | None, position: int, default: Any = None) -> Any:
    """Value at `position` of a sparse array given as a mapping or a short list."""
    if values is None:
        return default
    if isinstance(values, Mapping):
        if position in values:
            return values[position]
        return values.get(str(position), default)
    if position < len(values):
        return values[position]
    return default


def _check_shape(params: Mapping[str, Any]) -> int:
    for field in REQUIRED_FIELDS:
        if field not in params:
            raise ValidationError(f'Missing required field {field}')

    size = len(params['orig_col_name'])
    for field in REQUIRED_FIELDS + POSITIONAL_FIELDS:
        if field in params and len(params[field]) != size:
            raise ValidationError(f'{field} has {len(params[field])} entries, expected {size}')

    for field in SPARSE_FIELDS:
        values = params.get(field)
        if isinstance(values, Mapping):
            for key in values:
                if not _valid_position(key, size):
                    raise ValidationError(f'{field} has position {key!r}, expected 0 to {size - 1}')
        elif isinstance(values, Sequence) and not isinstance(values, str) and len(values) > size:
            raise ValidationError(f'{field} has {len(values)} entries, expected at most {size}')
    return size


def _valid_position(key: Any, size: int) -> bool:
    """Whether a sparse mapping key names a row of the batch.

    >>> _valid_position('1', 2), _valid_position(2, 2), _valid_position('x', 2)
    (True, False, False)
    """
    try:
        position = int(key)
    except (TypeError, ValueError):
        return False
    return 0 <= position < size


def _default_value(params: Mapping[str, Any], position: int) -> str:
    """Resolve the default type keyword at `position` into the stored default.

    >>> _default_value({'field_default_type': ['NONE']}, 0)
    ''
    >>> _default_value({'field_default_type': ['USER_DEFINED'], 'field_default_value': ['7']}, 0)
    '7'
    >>> _default_value({'field_default_type': ['CURRENT_TIMESTAMP']}, 0)
    'CURRENT_TIMESTAMP'
    """
    default_type = _sparse_get(params.get('field_default_type'), position, '') or ''
    if default_type == DEFAULT_NONE:
        return ''
    if default_type == DEFAULT_USER_DEFINED:
        return str(_sparse_get(params.get('field_default_value'), position, '') or '')
    return default_type


def changes_from_params(params: Mapping[str, Any]) -> list[ColumnChange]:
    """Build the ordered change list described by a positional bundle.

    Raises
        ValidationError: A required array is missing or arrays differ in length
    """
    size = _check_shape(params)

    changes = []
    for i in range(size):
        changes.append(ColumnChange(
            original_name=params['orig_col_name'][i] or '',
            name=params['field_name'][i] or '',
            type=_sparse_get(params.get('field_type'), i, '') or '',
            length=str(_sparse_get(params.get('field_length'), i, '') or ''),
            collation=_sparse_get(params.get('field_collation'), i, '') or '',
            is_nullable=bool(_sparse_get(params.get('field_null'), i)),
            extra=_sparse_get(params.get('col_extra'), i, '') or '',
            attribute=_sparse_get(params.get('field_attribute'), i, '') or '',
            default=_default_value(params, i),
        ))
    logger.debug(f'Built {len(changes)} column change(s) from parameters')
    return changes


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
