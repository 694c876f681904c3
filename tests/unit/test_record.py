"""
Unit tests for the column record codec.
"""
import pytest
from central_columns.record import ColumnChange, ColumnRecord, TableColumn
from central_columns.record import denormalize_row, extract_column_spec
from central_columns.record import join_extra, normalize_record, record_from_column
from central_columns.record import split_extra


@pytest.mark.parametrize(('raw', 'expected'), [
    ('UNSIGNED,auto_increment', ('UNSIGNED', 'auto_increment')),
    ('BINARY', ('BINARY', '')),
    ('on update CURRENT_TIMESTAMP', ('on update CURRENT_TIMESTAMP', '')),
    ('UNSIGNED ZEROFILL', ('UNSIGNED ZEROFILL', '')),
    ('auto_increment', ('', 'auto_increment')),
    ('', ('', '')),
    (None, ('', '')),
])
def test_split_extra(raw, expected):
    """Test the recognized attribute is split from the remaining modifiers"""
    assert split_extra(raw) == expected


def test_split_extra_priority():
    """Test on update wins over binary, binary wins over unsigned"""
    assert split_extra('UNSIGNED,BINARY,on update NOW()') == ('on update NOW()', 'UNSIGNED,BINARY')
    assert split_extra('UNSIGNED,BINARY') == ('BINARY', 'UNSIGNED')


def test_split_extra_is_case_sensitive():
    """Test only the stored upper-case spelling counts as an attribute"""
    assert split_extra('unsigned,auto_increment') == ('', 'unsigned,auto_increment')


def test_join_extra_puts_attribute_first():
    assert join_extra('UNSIGNED', 'auto_increment') == 'UNSIGNED,auto_increment'
    assert join_extra('', 'auto_increment') == 'auto_increment'
    assert join_extra('BINARY', '') == 'BINARY'
    assert join_extra('', '') == ''


def test_denormalize_rows(column_data, column_records):
    """Test stored rows become records with attribute and extra split"""
    assert [denormalize_row(row) for row in column_data] == column_records


def test_denormalize_lower_case_keys():
    """Test rows from engines that fold identifiers to lower case"""
    record = denormalize_row({
        'db_name': 'shop', 'col_name': 'id', 'col_type': 'int',
        'col_length': '11', 'col_isnull': 1, 'col_extra': 'UNSIGNED',
    })
    assert record.is_nullable is True
    assert record.attribute == 'UNSIGNED'
    assert record.length == '11'


def test_denormalize_already_split_row():
    """Test a row carrying col_attribute is not split again"""
    record = denormalize_row({'col_name': 'id', 'col_extra': 'auto_increment',
                              'col_attribute': 'UNSIGNED'})
    assert (record.attribute, record.extra) == ('UNSIGNED', 'auto_increment')


def test_normalize_record():
    record = ColumnRecord(database='phpmyadmin', name='id', type='int', length='10',
                          is_nullable=False, extra='auto_increment', attribute='UNSIGNED')
    assert normalize_record(record) == {
        'db_name': 'phpmyadmin',
        'col_name': 'id',
        'col_type': 'int',
        'col_length': '10',
        'col_collation': '',
        'col_isNull': 0,
        'col_extra': 'UNSIGNED,auto_increment',
        'col_default': '',
    }


def test_normalize_empty_record():
    """Test normalizing never raises on empty values"""
    row = normalize_record(ColumnRecord(database='', name=''))
    assert row['col_extra'] == ''
    assert row['col_isNull'] == 0


def test_codec_round_trip_is_idempotent(column_data):
    """Test re-denormalizing a normalized record gives the same split"""
    for row in column_data:
        first = denormalize_row(row)
        second = denormalize_row(normalize_record(first))
        assert (second.attribute, second.extra) == (first.attribute, first.extra)
        assert second == first


@pytest.mark.parametrize(('column_type', 'expected'), [
    ('varchar(100)', ('varchar', '100', '')),
    ('decimal(10,2)', ('decimal', '10,2', '')),
    ('int(10) unsigned', ('int', '10', 'UNSIGNED')),
    ('int(10) unsigned zerofill', ('int', '10', 'UNSIGNED ZEROFILL')),
    ('varbinary(16)', ('varbinary', '16', '')),
    ("enum('a','b')", ('enum', "'a','b'", '')),
    ('DATETIME', ('DATETIME', '', '')),
    ('double precision', ('double precision', '', '')),
    ('bigint unsigned', ('bigint', '', 'UNSIGNED')),
    ('BINARY', ('BINARY', '', '')),
    ('', ('', '', '')),
])
def test_extract_column_spec(column_type, expected):
    assert extract_column_spec(column_type) == expected


def test_record_from_live_column():
    column = TableColumn(name='id', type='int(10) unsigned', nullable=False,
                         extra='auto_increment', key='PRI')
    record = record_from_column('shop', column)
    assert record == ColumnRecord(database='shop', name='id', type='int', length='10',
                                  is_nullable=False, extra='auto_increment', attribute='UNSIGNED')


def test_record_from_live_column_with_on_update():
    """Test an on update clause in the live extra becomes the attribute"""
    column = TableColumn(name='changed', type='timestamp', nullable=True,
                         default='CURRENT_TIMESTAMP', extra='on update CURRENT_TIMESTAMP')
    record = record_from_column('shop', column)
    assert record.attribute == 'on update CURRENT_TIMESTAMP'
    assert record.extra == ''
    assert record.default == 'CURRENT_TIMESTAMP'


def test_record_from_live_column_keeps_both_modifiers():
    """Test the type's attribute wins and the on update clause stays in extra"""
    column = TableColumn(name='n', type='int unsigned', extra='on update 0')
    record = record_from_column('shop', column)
    assert record.attribute == 'UNSIGNED'
    assert record.extra == 'on update 0'


def test_change_from_record():
    record = ColumnRecord(database='shop', name='email', type='varchar', length='255')
    change = ColumnChange.from_record(record, original_name='mail')
    assert change.original_name == 'mail'
    assert change.name == 'email'
    assert change.length == '255'
    assert ColumnChange.from_record(record).original_name == 'email'
