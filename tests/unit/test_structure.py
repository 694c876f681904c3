"""
Unit tests for recovering columns from CREATE TABLE text.
"""
from central_columns.record import TableColumn
from central_columns.structure import parse_create_table, split_sql_list
from central_columns.structure import unquote_default, unquote_identifier

MYSQL_CREATE = """CREATE TABLE `orders` (
  `id` int(10) unsigned NOT NULL AUTO_INCREMENT,
  `reference` varchar(32) CHARACTER SET utf8mb4 COLLATE utf8mb4_bin NOT NULL,
  `amount` decimal(10,2) NOT NULL DEFAULT '0.00' COMMENT 'total, incl. tax',
  `note` text,
  `changed` timestamp NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
  PRIMARY KEY (`id`),
  UNIQUE KEY `uq_reference` (`reference`(16)),
  KEY `ix_changed` (`changed`)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"""


def test_parse_show_create_table_output():
    """Test the name=statement text a server returns for a table"""
    columns = parse_create_table('PMA_table=CREATE table `PMA_table` (id integer)')
    assert columns == [TableColumn(name='id', type='integer')]


def test_parse_mysql_table():
    columns = {column.name: column for column in parse_create_table(MYSQL_CREATE)}
    assert list(columns) == ['id', 'reference', 'amount', 'note', 'changed']

    assert columns['id'] == TableColumn(name='id', type='int(10) unsigned', nullable=False,
                                        extra='auto_increment', key='PRI')
    assert columns['reference'].type == 'varchar(32)'
    assert columns['reference'].collation == 'utf8mb4_bin'
    assert columns['reference'].nullable is False
    assert columns['reference'].key == 'UNI'
    assert columns['amount'].type == 'decimal(10,2)'
    assert columns['amount'].default == '0.00'
    assert columns['note'].nullable is True
    assert columns['note'].default is None
    assert columns['changed'].default == 'CURRENT_TIMESTAMP'
    assert columns['changed'].extra == 'on update CURRENT_TIMESTAMP'
    assert columns['changed'].key == ''


def test_parse_sqlite_table():
    sql = """CREATE TABLE "customers" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email VARCHAR(255) NOT NULL UNIQUE,
    name TEXT COLLATE NOCASE DEFAULT 'n/a'
)"""
    columns = parse_create_table(sql)
    assert columns == [
        TableColumn(name='id', type='INTEGER', nullable=False, extra='auto_increment', key='PRI'),
        TableColumn(name='email', type='VARCHAR(255)', nullable=False, key='UNI'),
        TableColumn(name='name', type='TEXT', default='n/a', collation='NOCASE'),
    ]


def test_parse_composite_primary_key():
    sql = 'CREATE TEMPORARY TABLE t (a int, b int, c double precision, PRIMARY KEY (a, b))'
    columns = parse_create_table(sql)
    assert [(c.name, c.key, c.nullable) for c in columns] == [
        ('a', 'PRI', False), ('b', 'PRI', False), ('c', '', True)]
    assert columns[2].type == 'double precision'


def test_parse_without_statement():
    """Test text without a CREATE TABLE statement yields no columns"""
    assert parse_create_table('') == []
    assert parse_create_table(None) == []
    assert parse_create_table('SELECT 1') == []


def test_split_sql_list_respects_quotes_and_depth():
    assert split_sql_list("a enum('x,y'), b decimal(10,2)") == ["a enum('x,y')", 'b decimal(10,2)']
    assert split_sql_list('  ') == []


def test_unquote_identifier():
    assert unquote_identifier('`PMA_table`') == 'PMA_table'
    assert unquote_identifier('[dbo]') == 'dbo'
    assert unquote_identifier('plain') == 'plain'


def test_unquote_default():
    assert unquote_default("'it''s'") == "it's"
    assert unquote_default("'abc'::character varying") == 'abc'
    assert unquote_default('0') == '0'
    assert unquote_default('null') is None
    assert unquote_default(None) is None
