"""
Unit tests for the registry store: exact statements against the bookkeeping table.
"""
from central_columns.exceptions import IntegrityViolationError
from central_columns.record import ColumnChange, ColumnRecord
from central_columns.store import RegistryStore


def test_get_params(registry):
    assert registry.get_params() == {'user': 'pma_user', 'db': 'phpmyadmin',
                                     'table': 'pma_central_columns'}


def test_get_params_disabled(disabled_registry):
    assert disabled_registry.get_params() == {}


def test_count(registry, control):
    control.queue(3)
    assert registry.count('phpmyadmin') == 3
    assert control.statements == [
        "SELECT count(db_name) FROM `pma_central_columns` WHERE db_name = 'phpmyadmin';"
    ]


def test_list_columns(registry, control, column_data, column_records):
    """Test the full list and one page of it"""
    control.queue(column_data, column_data[1:3])
    assert registry.list_columns('phpmyadmin') == column_records
    assert registry.list_columns('phpmyadmin', 1, 2) == column_records[1:3]
    assert control.statements == [
        "SELECT * FROM `pma_central_columns` WHERE db_name = 'phpmyadmin';",
        "SELECT * FROM `pma_central_columns` WHERE db_name = 'phpmyadmin' LIMIT 2 OFFSET 1;",
    ]


def test_get_from_table(registry, control):
    control.queue(['id', 'col1'])
    assert registry.get_from_table('PMA_db', 'PMA_table') == ['id', 'col1']
    assert control.statements == [
        "SELECT col_name FROM `pma_central_columns` "
        "WHERE db_name = 'PMA_db' AND col_name IN ('id','col1','col2');"
    ]


def test_get_from_table_with_all_fields(registry, control, column_data, column_records):
    control.queue(column_data[:2])
    assert registry.get_from_table('PMA_db', 'PMA_table', True) == column_records[:2]
    assert control.statements == [
        "SELECT * FROM `pma_central_columns` "
        "WHERE db_name = 'PMA_db' AND col_name IN ('id','col1','col2');"
    ]


def test_get_from_unknown_table_issues_no_query(registry, control):
    """Test a table without live columns never renders an empty IN ()"""
    assert registry.get_from_table('PMA_db', 'missing') == []
    assert control.statements == []


def test_get_list_raw(registry, control, column_data, column_records):
    control.queue(column_data)
    assert registry.get_list_raw('phpmyadmin', '') == column_records
    assert control.statements == [
        "SELECT * FROM `pma_central_columns` WHERE db_name = 'phpmyadmin';"
    ]


def test_get_list_raw_with_table(registry, control, column_data, column_records, inspector):
    """Test naming a table excludes its live columns"""
    inspector.tables['table1'] = inspector.tables['PMA_table']
    control.queue(column_data)
    assert registry.get_list_raw('phpmyadmin', 'table1') == column_records
    assert control.statements == [
        "SELECT * FROM `pma_central_columns` "
        "WHERE db_name = 'phpmyadmin' AND col_name NOT IN ('id','col1','col2');"
    ]


def test_find_existing(registry, control, column_data, column_records):
    control.queue(column_data[1:2])
    assert registry.find_existing('phpmyadmin', ['col1'], True) == column_records[1:2]
    assert control.statements == [
        "SELECT * FROM `pma_central_columns` WHERE db_name = 'phpmyadmin' AND col_name IN ('col1');"
    ]


def test_values_are_quoted(registry, control):
    registry.find_existing("it's", ["o'clock"])
    assert control.statements == [
        "SELECT col_name FROM `pma_central_columns` "
        "WHERE db_name = 'it''s' AND col_name IN ('o''clock');"
    ]


def test_create_table(registry, control):
    assert registry.create_table() is True
    assert control.statements[0].startswith('CREATE TABLE IF NOT EXISTS `pma_central_columns` (')
    assert 'PRIMARY KEY (db_name, col_name)' in control.statements[0]
    assert 'table_name varchar(64) DEFAULT NULL,' in control.statements[0]


def test_add_column(registry, control):
    record = ColumnRecord(database='phpmyadmin', name='id', type='int', length='10',
                          extra='auto_increment', attribute='UNSIGNED', default='1')
    assert registry.add_column(record) is True
    assert control.statements == [
        "INSERT INTO `pma_central_columns` (db_name, col_name, col_type, col_length, "
        "col_collation, col_isNull, col_extra, col_default) "
        "VALUES ('phpmyadmin','id','int','10','',0,'UNSIGNED,auto_increment','1');"
    ]


def test_update_one_without_original_name(registry, control):
    """Test an empty original name is skipped yet reported as success"""
    assert registry.update_one('phpmyadmin', ColumnChange(original_name='')) is True
    assert control.statements == []


def test_update_one(registry, control):
    change = ColumnChange(original_name='col1', name='col1_renamed', type='varchar',
                          length='120', is_nullable=True, attribute='BINARY', default='x')
    assert registry.update_one('phpmyadmin', change) is True
    assert control.statements == [
        "UPDATE `pma_central_columns` SET col_name = 'col1_renamed', col_type = 'varchar', "
        "col_length = '120', col_isNull = 1, col_collation = '', col_extra = 'BINARY', "
        "col_default = 'x' WHERE db_name = 'phpmyadmin' AND col_name = 'col1';"
    ]


def test_update_one_keeps_name(registry, control):
    """Test an empty new name leaves the column name unchanged"""
    assert registry.update_one('phpmyadmin', ColumnChange(original_name='col1')) is True
    assert "SET col_name = 'col1'," in control.statements[0]


def test_update_many_stops_at_first_failure(registry, control):
    control.fail_on = "col_name = 'col2'"
    changes = [ColumnChange(original_name=name) for name in ('col1', 'col2', 'col3')]
    assert registry.update_many('phpmyadmin', changes) is False
    assert len(control.statements) == 2


def test_delete_columns(registry, control):
    assert registry.delete_columns('phpmyadmin', ['col1', 'col2']) is True
    assert control.statements == [
        "DELETE FROM `pma_central_columns` WHERE db_name = 'phpmyadmin' AND col_name IN ('col1','col2');"
    ]


def test_delete_nothing(registry, control):
    assert registry.delete_columns('phpmyadmin', []) is True
    assert control.statements == []


def test_store_failures_map_to_neutral_values(registry, control):
    """Test failing statements become False or empty results"""
    control.fail_on = 'pma_central_columns'
    assert registry.count('phpmyadmin') == 0
    assert registry.list_columns('phpmyadmin') == []
    assert registry.get_from_table('PMA_db', 'PMA_table') == []
    assert registry.add_column(ColumnRecord(database='phpmyadmin', name='id')) is False
    assert registry.update_one('phpmyadmin', ColumnChange(original_name='id')) is False
    assert registry.delete_columns('phpmyadmin', ['id']) is False


def test_duplicate_insert_is_a_failure(registry, control, mocker):
    mocker.patch.object(control, 'execute',
                        side_effect=IntegrityViolationError('UNIQUE constraint failed'))
    assert registry.add_column(ColumnRecord(database='phpmyadmin', name='id')) is False


def test_disabled_registry_issues_nothing(disabled_registry, control):
    """Test a disabled registry answers with success-neutral values"""
    assert disabled_registry.count('phpmyadmin') == 0
    assert disabled_registry.list_columns('phpmyadmin') == []
    assert disabled_registry.get_list_raw('phpmyadmin', 'PMA_table') == []
    assert disabled_registry.create_table() is True
    assert disabled_registry.add_column(ColumnRecord(database='phpmyadmin', name='id')) is True
    assert disabled_registry.update_one('phpmyadmin', ColumnChange(original_name='id')) is True
    assert disabled_registry.delete_columns('phpmyadmin', ['id']) is True
    assert control.statements == []


def test_disabled_results_are_fresh(control, registry_options):
    """Test the neutral list returned when disabled is not shared between calls"""
    registry_options.enabled = False
    store = RegistryStore(control, registry_options)
    first = store.list_columns('phpmyadmin')
    first.append('x')
    assert store.list_columns('phpmyadmin') == []
